# src/calctl/cli.py
"""
calctl Command Line Interface (CLI).

This module implements the user-facing terminal interface using `typer` and `rich`.
Every command is one-shot: it loads the event file, performs a single
operation through :class:`~calctl.services.calendar.CalendarService`, writes
the file back if something changed, and exits.

Global options
--------------
- ``--force``: skip conflict checks (add/edit) and delete confirmations.
- ``--no-color``: render tables without ANSI colors.
- ``--data-file PATH``: use another event file (default from settings,
  ``~/.calctl/events.json``).

Exit codes
----------
0 on success, including "No events found." and an aborted delete;
1 on validation, not-found, conflict and storage errors.

Usage
-----
    $ calctl add --title "Meeting" --date 2023-10-10 --time 14:00 --duration "1h 30m"
    $ calctl list --from 2023-10-01 --to 2023-10-31
    $ calctl --force delete --date 2023-10-10
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from itertools import groupby
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from calctl import __version__
from calctl.core.contracts.event import Event
from calctl.core.errors import CalctlError, ConflictError, ValidationError
from calctl.core.settings import get_logger, load_settings
from calctl.services.calendar import CalendarService, parse_date

# Ensure env vars (like CALCTL_DATA_FILE) are loaded before any logic runs
load_dotenv()

app = typer.Typer(
    help="calctl: a simple calendar for the command line.",
    rich_markup_mode="markdown",
)
console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

logger = get_logger(__name__)

_DATETIME_FMT = "%Y-%m-%d %H:%M"


@dataclass
class AppState:
    """Options given before the subcommand, shared with every command."""

    data_file: Path
    force: bool = False


# --------------------------------------------------------------------------- #
# Helpers: Rendering
# --------------------------------------------------------------------------- #


def _fmt(value: object) -> str:
    """Helper: Display form of an optional table cell."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime(_DATETIME_FMT)
    return str(value)


def _events_table(events: Sequence[Event], detailed: bool = False) -> Table:
    """
    Helper: Build the event table used by list/add/delete (and, detailed, by show/edit/search).

    The detailed variant adds the created/updated timestamps.
    """
    table = Table(show_lines=detailed)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Start", no_wrap=True)
    table.add_column("Duration", no_wrap=True)
    table.add_column("Description")
    table.add_column("Location")
    if detailed:
        table.add_column("Created At", style="dim")
        table.add_column("Updated At", style="dim")

    for event in events:
        row = [
            escape(event.id),
            escape(event.title),
            _fmt(event.start_date_time),
            str(event.duration),
            escape(_fmt(event.description)),
            escape(_fmt(event.location)),
        ]
        if detailed:
            row += [_fmt(event.time_created), _fmt(event.time_updated)]
        table.add_row(*row)
    return table


def _render_conflicts(events: Sequence[Event], target: Console) -> None:
    """Helper: One line per conflicting event: ``- "Title" (start -> end)``."""
    for event in events:
        target.print(
            f'- "{escape(event.title)}" '
            f"({_fmt(event.start_date_time)} -> {_fmt(event.end_date_time)})"
        )


def _render_agenda(events: Sequence[Event]) -> None:
    """Helper: Print events grouped under one heading per day."""
    for day, day_events in groupby(events, key=lambda e: e.start_date):
        console.rule(f"[bold]{day.strftime('%A, %Y-%m-%d')}[/bold]")
        table = Table(show_header=False, box=None, pad_edge=False)
        table.add_column("When", style="cyan", no_wrap=True)
        table.add_column("Title", style="bold")
        table.add_column("Location", style="dim")
        for event in day_events:
            table.add_row(
                f"{event.start_date_time:%H:%M}-{event.end_date_time:%H:%M}",
                escape(event.title),
                escape(_fmt(event.location)),
            )
        console.print(table)


def _echo_json(events: Sequence[Event]) -> None:
    """Helper: Plain JSON output (no rich wrapping) for scripting."""
    typer.echo(json.dumps([event.to_record() for event in events], indent=2))


def _print_results(events: Sequence[Event], as_json: bool, detailed: bool = False) -> None:
    if as_json:
        _echo_json(events)
    elif not events:
        console.print("No events found.")
    else:
        console.print(_events_table(events, detailed=detailed))


# --------------------------------------------------------------------------- #
# Helpers: State & Errors
# --------------------------------------------------------------------------- #


def _state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if not isinstance(state, AppState):
        state = AppState(data_file=load_settings().resolved_data_file())
        ctx.obj = state
    return state


def _open(ctx: typer.Context) -> CalendarService:
    """Helper: Load the calendar for this invocation."""
    return CalendarService.open(_state(ctx).data_file)


@contextmanager
def _reported_errors() -> Iterator[None]:
    """
    Helper: Turn calctl errors into a message on stderr and exit code 1.

    Conflicts additionally list the overlapping events and hint at ``--force``.
    """
    try:
        yield
    except ConflictError as e:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        _render_conflicts(e.conflicts, err_console)
        err_console.print("Consider using calctl --force to proceed anyway.")
        raise typer.Exit(code=e.exit_code) from e
    except CalctlError as e:
        logger.debug("Command failed: %r", e)
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=e.exit_code) from e


# --------------------------------------------------------------------------- #
# Root
# --------------------------------------------------------------------------- #


@app.callback(invoke_without_command=True)  # type: ignore[misc]
def main(
    ctx: typer.Context,
    force: Annotated[
        bool,
        typer.Option("--force", help="Skip conflict checks and delete confirmations."),
    ] = False,
    no_color: Annotated[
        bool,
        typer.Option("--no-color", help="Disable colored output."),
    ] = False,
    data_file: Annotated[
        Path | None,
        typer.Option(
            "--data-file",
            dir_okay=False,
            help="Event file to use instead of the configured default.",
        ),
    ] = None,
    version: Annotated[
        bool,
        typer.Option("--version", "-v", help="Show the version and exit."),
    ] = False,
) -> None:
    """calctl: add, list, search, edit and delete calendar events."""
    if version:
        typer.echo(f"calctl {__version__}")
        raise typer.Exit()

    if no_color:
        console.no_color = True
        err_console.no_color = True

    path = data_file.expanduser() if data_file else load_settings().resolved_data_file()
    ctx.obj = AppState(data_file=path, force=force)

    if ctx.invoked_subcommand is None:
        console.print(
            Panel.fit(
                "Hello from calctl, you can use [bold]--help[/bold] to find out how to use it.",
                border_style="cyan",
            )
        )


# --------------------------------------------------------------------------- #
# Commands: Mutations
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def add(
    ctx: typer.Context,
    title: Annotated[str, typer.Option("--title", help="Title of the event.")] = "",
    date: Annotated[str, typer.Option("--date", help="Date in YYYY-MM-DD format.")] = "",
    time: Annotated[str, typer.Option("--time", help="Start time in HH:MM format.")] = "",
    duration: Annotated[
        str, typer.Option("--duration", help="Duration in Ww Dd Hh Mm format, e.g. '1h 30m'.")
    ] = "",
    description: Annotated[str, typer.Option("--description", help="Description.")] = "",
    location: Annotated[str, typer.Option("--location", help="Location.")] = "",
) -> None:
    """Add a new event to the calendar."""
    state = _state(ctx)
    with _reported_errors():
        svc = _open(ctx)
        if state.force:
            console.print("Warning: --force option is set. Skipping event conflict checking.")
        event = svc.add_event(
            title,
            date,
            time,
            duration,
            description=description,
            location=location,
            force=state.force,
        )

    console.print("[green]Event added successfully.[/green]")
    console.print(_events_table([event]))


@app.command()  # type: ignore[misc]
def edit(
    ctx: typer.Context,
    event_id: Annotated[str | None, typer.Argument(help="ID of the event to edit.")] = None,
    title: Annotated[str | None, typer.Option("--title", help="New title.")] = None,
    date: Annotated[str | None, typer.Option("--date", help="New date (YYYY-MM-DD).")] = None,
    time: Annotated[str | None, typer.Option("--time", help="New start time (HH:MM).")] = None,
    duration: Annotated[
        str | None, typer.Option("--duration", help="New duration (Ww Dd Hh Mm).")
    ] = None,
    description: Annotated[
        str | None, typer.Option("--description", help="New description.")
    ] = None,
    location: Annotated[str | None, typer.Option("--location", help="New location.")] = None,
) -> None:
    """Edit an existing event in the calendar."""
    state = _state(ctx)
    with _reported_errors():
        if not event_id:
            raise ValidationError("Please specify the ID of the event to edit.")
        svc = _open(ctx)
        if state.force:
            console.print("Warning: --force option is set. Skipping event conflict checking.")
        event = svc.edit_event(
            event_id,
            title=title,
            date_text=date,
            time_text=time,
            duration_text=duration,
            description=description,
            location=location,
            force=state.force,
        )

    console.print(
        f'[green]The event with ID "{escape(event.id)}" was updated successfully.[/green]'
    )
    console.print(_events_table([event], detailed=True))


@app.command()  # type: ignore[misc]
def delete(
    ctx: typer.Context,
    event_id: Annotated[str | None, typer.Argument(help="ID of the event to delete.")] = None,
    date: Annotated[
        str, typer.Option("--date", help="Delete every event on this date (YYYY-MM-DD).")
    ] = "",
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be deleted without changing anything."),
    ] = False,
) -> None:
    """Delete an event by ID, or every event on a date."""
    state = _state(ctx)
    with _reported_errors():
        day = parse_date(date) if date else None
        svc = _open(ctx)
        targets = svc.delete_targets(event_id or None, day)

        if not state.force:
            console.print(_events_table(targets))
            console.print("You can use calctl --force to skip this confirmation.")
            try:
                confirmed = Confirm.ask(
                    f"Are you sure you want to delete {len(targets)} event(s)?",
                    default=False,
                    console=console,
                )
            except EOFError as e:
                raise ValidationError("Unable to read confirmation from standard input.") from e
            if not confirmed:
                console.print("Aborting delete operation.")
                return

        deleted = svc.delete(event_id or None, day, dry_run=dry_run)

    if dry_run:
        console.print("Dry run enabled. No changes were made to the following events.")
    else:
        console.print("[green]The following events were deleted successfully.[/green]")
    console.print(_events_table(deleted))


# --------------------------------------------------------------------------- #
# Commands: Queries
# --------------------------------------------------------------------------- #


@app.command("list")  # type: ignore[misc]
def list_events(
    ctx: typer.Context,
    from_date: Annotated[
        str, typer.Option("--from", help="Only events on or after this date (YYYY-MM-DD).")
    ] = "",
    to_date: Annotated[
        str, typer.Option("--to", help="Only events on or before this date (YYYY-MM-DD).")
    ] = "",
    today: Annotated[bool, typer.Option("--today", help="List today's events.")] = False,
    week: Annotated[bool, typer.Option("--week", help="List this week's events.")] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Output JSON.")] = False,
) -> None:
    """List events, optionally limited to a date range, today or this week."""
    with _reported_errors():
        start = parse_date(from_date) if from_date else None
        end = parse_date(to_date) if to_date else None
        events = _open(ctx).list_events(start, end, today=today, week=week)
    _print_results(events, as_json)


@app.command()  # type: ignore[misc]
def agenda(
    ctx: typer.Context,
    date: Annotated[
        str, typer.Option("--date", help="Show the agenda for this date (YYYY-MM-DD).")
    ] = "",
    week: Annotated[bool, typer.Option("--week", help="Show this week's agenda.")] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Output JSON.")] = False,
) -> None:
    """View the agenda for a specific day or for the current week."""
    with _reported_errors():
        day = parse_date(date) if date else None
        events = _open(ctx).agenda(day, week=week)

    if as_json:
        _echo_json(events)
    elif not events:
        console.print("No events found.")
    else:
        _render_agenda(events)


@app.command()  # type: ignore[misc]
def search(
    ctx: typer.Context,
    keyword: Annotated[
        str | None,
        typer.Argument(help="Keyword to look for in titles and descriptions."),
    ] = None,
    title: Annotated[
        str | None, typer.Option("--title", help="Search in event titles only.")
    ] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Output JSON.")] = False,
) -> None:
    """Search events by keyword (case-insensitive)."""
    with _reported_errors():
        events = _open(ctx).search(keyword=keyword, title=title)

    if as_json:
        _echo_json(events)
        return
    where = (
        f'title containing "{title}"'
        if title
        else f'keyword "{keyword}" in title or description'
    )
    if not events:
        console.print(f"No events found with {escape(where)}.")
    else:
        console.print(f"Events found with {escape(where)}:")
        console.print(_events_table(events, detailed=True))


@app.command()  # type: ignore[misc]
def show(
    ctx: typer.Context,
    event_id: Annotated[str | None, typer.Argument(help="ID of the event to show.")] = None,
    as_json: Annotated[bool, typer.Option("--json", "-j", help="Output JSON.")] = False,
) -> None:
    """Show details of a specific event, including any conflicts."""
    with _reported_errors():
        if not event_id:
            raise ValidationError("Please specify the ID of the event to show.")
        event, conflicts = _open(ctx).show(event_id)

    if as_json:
        typer.echo(event.to_json())
    else:
        console.print(_events_table([event], detailed=True))
    if conflicts:
        # Keep stdout parseable when emitting JSON.
        target = err_console if as_json else console
        target.print("[yellow]Warning: The following events conflict with this event:[/yellow]")
        _render_conflicts(conflicts, target)


if __name__ == "__main__":
    app()
