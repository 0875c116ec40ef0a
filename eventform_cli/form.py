"""
Form session CLI commands.

Runs event form sessions against the configured server: listing the
chains a user administers, creating events and editing events.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import click

from eventform.api_client import ApiError
from eventform.config import ConfigError
from eventform.main import FormEdits, FormRunner
from eventform.models import CATEGORY_ORDER
from eventform.notifications import error_message
from eventform_cli.config import load_config


def _form_options(func):
    """Options shared by the create and edit commands."""
    options = [
        click.option("--name", help="Event name."),
        click.option("--description", help="Event description."),
        click.option("--address", help="Event address."),
        click.option("--latitude", type=float, help="Latitude of the address."),
        click.option("--longitude", type=float, help="Longitude of the address."),
        click.option("--date", "date_text", help="Calendar date, YYYY-MM-DD."),
        click.option("--time", "time_text", help="Clock time, HH:MM."),
        click.option(
            "--category",
            "categories",
            multiple=True,
            type=click.Choice(CATEGORY_ORDER),
            help="Event category (repeatable).",
        ),
        click.option("--chain", "chain_uid", help="UID of a loop you administer."),
        click.option(
            "--image",
            "image_path",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            help="Image file to upload.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_edits(params: dict[str, Any]) -> FormEdits:
    categories = params.get("categories")
    return FormEdits(
        name=params.get("name"),
        description=params.get("description"),
        address=params.get("address"),
        latitude=params.get("latitude"),
        longitude=params.get("longitude"),
        date_text=params.get("date_text"),
        time_text=params.get("time_text"),
        categories=list(categories) if categories else None,
        chain_uid=params.get("chain_uid"),
        image_path=params.get("image_path"),
    )


def _get_runner(ctx: click.Context) -> FormRunner:
    form_config = load_config(ctx)
    try:
        form_config.validate()
    except ConfigError as e:
        click.echo(click.style("Error: ", fg="red", bold=True) + str(e))
        ctx.exit(1)

    if not form_config.is_configured:
        click.echo(
            click.style("Error: ", fg="red", bold=True)
            + "server_url and user_uid must be configured."
        )
        click.echo("Run 'eventform config set server_url URL' and 'eventform config set user_uid UID'.")
        ctx.exit(1)
    return FormRunner(form_config)


def _print_notifications(runner: FormRunner) -> None:
    for toast in runner.notifier.errors:
        status = f" [{toast.status_code}]" if toast.status_code else ""
        click.echo(click.style("Warning: ", fg="yellow") + f"{toast.message}{status}")


def _run_session(
    ctx: click.Context,
    edits: FormEdits,
    event_uid: Optional[str] = None,
    initial_values: Optional[dict[str, Any]] = None,
) -> None:
    runner = _get_runner(ctx)
    try:
        result = asyncio.run(runner.run(edits, event_uid=event_uid, initial_values=initial_values))
    except ApiError as e:
        _print_notifications(runner)
        click.echo(click.style("Error: ", fg="red", bold=True) + error_message(e))
        ctx.exit(1)
    except ValueError as e:
        _print_notifications(runner)
        click.echo(click.style("Error: ", fg="red", bold=True) + str(e))
        ctx.exit(1)

    _print_notifications(runner)
    click.echo(click.style("Event submitted", fg="green"))
    if isinstance(result, dict) and result.get("uid"):
        click.echo(f"  UID: {result['uid']}")


@click.command()
@click.pass_context
def chains(ctx: click.Context) -> None:
    """
    List the loops the configured user administers.

    Example:

        eventform chains
    """
    runner = _get_runner(ctx)
    try:
        loaded = asyncio.run(runner.list_chains())
    except ApiError as e:
        click.echo(click.style("Error: ", fg="red", bold=True) + error_message(e))
        ctx.exit(1)

    if not loaded:
        click.echo("No loops found.")
        return
    for chain in loaded:
        click.echo(f"  {chain.uid}  {chain.name}")


@click.command()
@_form_options
@click.pass_context
def create(ctx: click.Context, **params: Any) -> None:
    """
    Create an event.

    Example:

        eventform create --name "Swap party" --address "Main st 1" \\
            --date 2024-03-01 --time 14:30 --category women --image poster.jpg
    """
    _run_session(ctx, _build_edits(params))


@click.command()
@click.argument("event_uid")
@click.option(
    "--from-json",
    "from_json",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Initial values from a JSON file instead of the server copy.",
)
@_form_options
@click.pass_context
def edit(ctx: click.Context, event_uid: str, from_json: Optional[Path], **params: Any) -> None:
    """
    Edit an existing event.

    Fields that are not given keep their current value.

    Example:

        eventform edit 3b2f... --time 15:00
    """
    initial_values = None
    if from_json is not None:
        try:
            initial_values = json.loads(from_json.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            click.echo(click.style("Error: ", fg="red", bold=True) + f"Invalid JSON: {e}")
            ctx.exit(1)
    _run_session(ctx, _build_edits(params), event_uid=event_uid, initial_values=initial_values)
