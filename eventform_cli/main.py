"""
EventForm CLI entry point.

Main command group for the eventform CLI.
"""

from pathlib import Path
from typing import Optional

import click

from eventform import __version__


@click.group()
@click.version_option(version=__version__, prog_name="eventform")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to the configuration file.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path]) -> None:
    """
    EventForm - create and edit events from the command line.

    Each create/edit command runs one form session: it loads the loops
    you administer, applies your edits, uploads the event image and
    submits the event to the server.

    Use 'eventform COMMAND --help' for more information on a command.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


# Import and register subcommands
from eventform_cli.config import config  # noqa: E402
from eventform_cli.form import chains, create, edit  # noqa: E402

cli.add_command(config)
cli.add_command(chains)
cli.add_command(create)
cli.add_command(edit)


def main() -> None:
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
