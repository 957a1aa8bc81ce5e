"""Cadence CLI: scheduling commands and the config subgroup."""

import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from cadence.application.config import generate_parameters
from cadence.application.scheduler import RescheduleOptions, create_empty_card
from cadence.application.utils.dates import format_date, show_diff_message
from cadence.application.utils.normalize import fix_rating
from cadence.domain.errors import InvalidInputError, SchedulerError
from cadence.domain.models import GRADES
from cadence.interface._common import build_scheduler, fail, load_document, to_jsonable

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="cadence: FSRS spaced-repetition scheduler.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

config_app = typer.Typer(help="Inspect scheduler parameters.")
app.add_typer(config_app, name="config")


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    request_retention: Annotated[
        float | None, typer.Option(help="Target recall probability, in (0, 1].")
    ] = None,
    maximum_interval: Annotated[
        int | None, typer.Option(help="Longest interval to schedule, in days.")
    ] = None,
    fuzz: Annotated[
        bool | None, typer.Option("--fuzz/--no-fuzz", help="Spread intervals randomly.")
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for cadence."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {
        k: v
        for k, v in {
            "request_retention": request_retention,
            "maximum_interval": maximum_interval,
            "enable_fuzz": fuzz,
        }.items()
        if v is not None
    }
    if verbose:
        logging.getLogger("cadence").setLevel(logging.DEBUG)


def _echo_json(value) -> None:
    typer.echo(json.dumps(to_jsonable(value), indent=2))


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def new(
    now: Annotated[str | None, typer.Option(help="Creation time (ISO 8601).")] = None,
):
    """Print an empty, never-reviewed card."""
    try:
        _echo_json(create_empty_card(now))
    except SchedulerError as e:
        fail(e)


@app.command()
def repeat(
    ctx: typer.Context,
    card_path: Annotated[Path, typer.Argument(help="Card file (YAML or JSON).")],
    now: Annotated[str | None, typer.Option(help="Review time (ISO 8601).")] = None,
    rating: Annotated[
        str | None, typer.Option(help="Only show this grade (Again, Hard, Good, Easy).")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """[bold green]Forecast[/bold green] the next state of a card for every grade."""
    scheduler = build_scheduler(ctx)
    try:
        record_log = scheduler.repeat(load_document(card_path), now)
        grades = [fix_rating(rating)] if rating else list(GRADES)
        if grades[0] not in GRADES:
            raise InvalidInputError("rating", rating, "not a schedulable grade")
    except SchedulerError as e:
        fail(e)

    if json_output:
        _echo_json({g: record_log[g] for g in grades})
        return

    for grade in grades:
        item = record_log[grade]
        wait = show_diff_message(item.card.due, item.log.review, unit=True)
        typer.echo(
            f"{grade.label:<6} -> {item.card.state.label:<10} "
            f"due {format_date(item.card.due)} ({wait})  "
            f"S={item.card.stability:.2f} D={item.card.difficulty:.2f}"
        )


@app.command()
def rollback(
    ctx: typer.Context,
    card_path: Annotated[Path, typer.Argument(help="Card after the review.")],
    log_path: Annotated[Path, typer.Argument(help="Review log of that review.")],
):
    """Undo the review recorded in a log."""
    scheduler = build_scheduler(ctx)
    try:
        _echo_json(scheduler.rollback(load_document(card_path), load_document(log_path)))
    except SchedulerError as e:
        fail(e)


@app.command()
def forget(
    ctx: typer.Context,
    card_path: Annotated[Path, typer.Argument(help="Card file (YAML or JSON).")],
    now: Annotated[str | None, typer.Option(help="Time of the reset (ISO 8601).")] = None,
    reset_count: Annotated[
        bool, typer.Option("--reset-count", help="Also zero reps and lapses.")
    ] = False,
):
    """Mark a card as forgotten."""
    scheduler = build_scheduler(ctx)
    try:
        _echo_json(scheduler.forget(load_document(card_path), now, reset_count=reset_count))
    except SchedulerError as e:
        fail(e)


@app.command()
def reschedule(
    ctx: typer.Context,
    cards_path: Annotated[Path, typer.Argument(help="File holding a list of cards.")],
):
    """Recompute due dates of reviewed cards with the current parameters."""
    scheduler = build_scheduler(ctx)
    try:
        cards = load_document(cards_path)
        if not isinstance(cards, list):
            typer.secho("Expected a list of cards.", fg="red", err=True)
            raise typer.Exit(1)
        options = RescheduleOptions(enable_fuzz=scheduler.parameters.enable_fuzz)
        _echo_json(scheduler.reschedule(cards, options))
    except SchedulerError as e:
        fail(e)


@app.command()
def retrievability(
    ctx: typer.Context,
    card_path: Annotated[Path, typer.Argument(help="Card file (YAML or JSON).")],
    now: Annotated[str | None, typer.Option(help="Evaluation time (ISO 8601).")] = None,
):
    """Show the current recall probability of a card."""
    scheduler = build_scheduler(ctx)
    try:
        value = scheduler.get_retrievability(load_document(card_path), now)
    except SchedulerError as e:
        fail(e)
    typer.echo(value if value is not None else "n/a (card has not been reviewed)")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display the resolved scheduler parameters."""
    overrides = (ctx.obj or {}).get("overrides", {})
    try:
        params = generate_parameters(**overrides)
    except SchedulerError as e:
        fail(e)
    typer.echo(json.dumps(params.model_dump(), indent=2))
