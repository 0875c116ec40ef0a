"""
Config CLI commands.

Shows and changes the settings stored in the configuration file.
"""

import click

from eventform.config import SETTABLE_KEYS, ConfigError, FormConfig


def load_config(ctx: click.Context) -> FormConfig:
    """Load the configuration selected by the --config group option."""
    config_path = (ctx.obj or {}).get("config_path")
    try:
        return FormConfig(config_path=config_path)
    except ConfigError as e:
        click.echo(click.style("Error: ", fg="red", bold=True) + str(e))
        ctx.exit(1)


@click.group()
@click.pass_context
def config(ctx: click.Context) -> None:
    """
    Manage eventform configuration.
    """
    ctx.ensure_object(dict)


@config.command("show")
@click.pass_context
def show(ctx: click.Context) -> None:
    """
    Display the current configuration.

    The API key is masked.

    Example:

        eventform config show
    """
    form_config = load_config(ctx)

    click.echo(f"Config file: {form_config.config_path}")
    for key in SETTABLE_KEYS:
        value = getattr(form_config, key)
        if key == "api_key" and value:
            value = value[:4] + "..." if len(value) > 4 else "***"
        if value in ("", None):
            value = click.style("(not set)", fg="yellow")
        click.echo(f"  {key}: {value}")


@config.command("set")
@click.argument("key", type=click.Choice(SETTABLE_KEYS))
@click.argument("value")
@click.pass_context
def set_value(ctx: click.Context, key: str, value: str) -> None:
    """
    Change one setting and save it.

    Example:

        eventform config set timezone Europe/Amsterdam
    """
    form_config = load_config(ctx)

    try:
        form_config.set_value(key, value)
        form_config.validate()
    except ConfigError as e:
        click.echo(click.style("Error: ", fg="red", bold=True) + str(e))
        ctx.exit(1)

    form_config.save()
    click.echo(click.style("Saved ", fg="green") + f"{key} to {form_config.config_path}")
