"""
Calendar service: the operations behind each calctl command.

A command opens the service once, performs exactly one logical operation and
exits. This module owns the rules that sit between raw user input and the
:class:`~calctl.core.store.memory.EventStore`:

- **Validation first**: date/time/duration strings and required fields are
  checked before the store is touched, raising
  :class:`~calctl.core.errors.ValidationError`.
- **Conflict policy**: new and edited events are checked against the store
  and rejected with :class:`~calctl.core.errors.ConflictError` unless the
  caller passes ``force=True``.
- **Build before remove**: an edit builds and validates the replacement event
  completely before the original leaves the store, so a failed edit never
  leaves the calendar one event short.
- **Persistence**: mutations save the store before returning. Queries never
  write.

Usage
-----
>>> svc = CalendarService.open(Path("~/.calctl/events.json").expanduser())
>>> event = svc.add_event("Standup", "2023-10-10", "09:00", "15m")
>>> svc.search(keyword="stand")
[Event(id='evt-...', title='Standup', ...)]
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import date, datetime, time, timedelta
from pathlib import Path

import pydantic

from calctl.core.contracts.event import Event, EventOptions, EventPatch
from calctl.core.duration import FORMAT_HINT, Duration, DurationError
from calctl.core.errors import ConflictError, NotFoundError, ValidationError
from calctl.core.settings import get_logger
from calctl.core.store.memory import EventStore

logger = get_logger(__name__)

Clock = Callable[[], datetime]
IdFactory = Callable[[], str]


# --------------------------------------------------------------------------- #
# Input parsing
# --------------------------------------------------------------------------- #


def parse_date(value: str) -> date:
    """Parse ``YYYY-MM-DD``; raise :class:`ValidationError` otherwise."""
    text = value.strip()
    try:
        if len(text) != 10:
            raise ValueError(text)
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError as e:
        raise ValidationError(f'Invalid date format "{value}". Please use YYYY-MM-DD.') from e


def parse_time(value: str) -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS`` as a naive wall-clock time."""
    text = value.strip()
    try:
        if len(text) not in (5, 8):
            raise ValueError(text)
        return datetime.strptime(text, "%H:%M" if len(text) == 5 else "%H:%M:%S").time()
    except ValueError as e:
        raise ValidationError(f'Invalid time format "{value}". Please use HH:MM.') from e


def parse_duration(value: str) -> Duration:
    try:
        return Duration.parse(value)
    except DurationError as e:
        raise ValidationError(
            f'Invalid duration format "{value}" ({e}). Please use {FORMAT_HINT}.'
        ) from e


def new_event_id() -> str:
    """Return a fresh, short event id such as ``evt-1a2b3c4d``."""
    return f"evt-{uuid.uuid4().hex[:8]}"


def week_bounds(today: date) -> tuple[date, date]:
    """Return the Monday and Sunday of the week containing ``today``."""
    monday = today - timedelta(days=today.weekday())
    return monday, monday + timedelta(days=6)


def _first_error(exc: pydantic.ValidationError) -> str:
    """Short, user-facing text for the first pydantic error."""
    errors = exc.errors()
    return str(errors[0]["msg"]) if errors else str(exc)


def _optional(value: str | None) -> str | None:
    """Map empty strings to ``None`` for optional free-text fields."""
    if value is None or not value.strip():
        return None
    return value


# --------------------------------------------------------------------------- #
# Service
# --------------------------------------------------------------------------- #


class CalendarService:
    """
    One command's view of the calendar.

    Parameters
    ----------
    store:
        The loaded event store. Mutating operations call ``store.save()``.
    clock:
        Source of "now" for timestamps and relative ranges (today, this week).
    id_factory:
        Generator for new event ids; retried until the id is unused.
    """

    def __init__(
        self,
        store: EventStore,
        clock: Clock = datetime.now,
        id_factory: IdFactory = new_event_id,
    ) -> None:
        self.store = store
        self._clock = clock
        self._id_factory = id_factory

    @classmethod
    def open(cls, path: Path, clock: Clock = datetime.now) -> CalendarService:
        """Load the store at ``path`` and wrap it in a service."""
        return cls(EventStore.load(path), clock=clock)

    def _now(self) -> datetime:
        return self._clock().replace(microsecond=0)

    def _today(self) -> date:
        return self._clock().date()

    def _unused_id(self) -> str:
        event_id = self._id_factory()
        while event_id in self.store:
            event_id = self._id_factory()
        return event_id

    def _require(self, event_id: str) -> Event:
        event = self.store.find_by_id(event_id)
        if event is None:
            raise NotFoundError(f'No event found with ID "{event_id}".')
        return event

    def _ensure_no_conflicts(self, candidate: Event, action: str) -> None:
        conflict_ids = self.store.check_conflicts(candidate)
        if conflict_ids:
            conflicts = self.store.find_by_ids(conflict_ids)
            raise ConflictError(
                f"The {action} event conflicts with {len(conflicts)} existing event(s).",
                conflicts,
            )

    # ------------------------------ Mutations -------------------------------

    def add_event(
        self,
        title: str,
        date_text: str,
        time_text: str,
        duration_text: str,
        description: str | None = None,
        location: str | None = None,
        force: bool = False,
    ) -> Event:
        """Validate, conflict-check and persist a new event."""
        if not all(v.strip() for v in (title, date_text, time_text, duration_text)):
            raise ValidationError("--title, --date, --time, and --duration are required fields.")

        start = datetime.combine(parse_date(date_text), parse_time(time_text))
        duration = parse_duration(duration_text)
        now = self._now()
        try:
            event = Event.create(
                self._unused_id(),
                title,
                start,
                duration,
                EventOptions(
                    description=_optional(description),
                    location=_optional(location),
                    time_created=now,
                    time_updated=now,
                ),
            )
        except pydantic.ValidationError as e:
            raise ValidationError(f"New event is invalid: {_first_error(e)}") from e

        if force:
            logger.info("Skipping conflict check for %s (force)", event.id)
        else:
            self._ensure_no_conflicts(event, "new")

        self.store.add_event(event)
        self.store.save()
        logger.info("Added event %s at %s", event.id, event.start_date_time.isoformat())
        return event

    def edit_event(
        self,
        event_id: str,
        *,
        title: str | None = None,
        date_text: str | None = None,
        time_text: str | None = None,
        duration_text: str | None = None,
        description: str | None = None,
        location: str | None = None,
        force: bool = False,
    ) -> Event:
        """Apply the given field changes to ``event_id`` and persist the result."""
        original = self._require(event_id)

        if title is not None and not title.strip():
            raise ValidationError("Title cannot be empty.")
        patch = EventPatch(
            title=title,
            description=description,
            start_date=parse_date(date_text) if date_text else None,
            start_time=parse_time(time_text) if time_text else None,
            duration=parse_duration(duration_text) if duration_text else None,
            location=location,
        )
        if patch.is_empty():
            raise ValidationError(
                "Nothing to edit. Provide at least one of --title, --date, --time, "
                "--duration, --description or --location."
            )

        try:
            updated = original.apply(patch, updated_at=self._now())
        except pydantic.ValidationError as e:
            raise ValidationError(f"Edited event is invalid: {_first_error(e)}") from e

        if force:
            logger.info("Skipping conflict check for %s (force)", event_id)
        else:
            self._ensure_no_conflicts(updated, "edited")

        self.store.remove_by_id(event_id)
        self.store.add_event(updated)
        self.store.save()
        logger.info("Updated event %s", event_id)
        return updated

    def delete_targets(self, event_id: str | None = None, day: date | None = None) -> list[Event]:
        """Return the events a delete with these selectors would remove."""
        if event_id is not None and day is None:
            return [self._require(event_id)]
        if day is None or event_id is not None:
            raise ValidationError(
                'Please provide either an event ID "calctl delete <EVENTID>" '
                'or a date "calctl delete --date DATE".'
            )

        events = self.store.find_by_date(day)
        if not events:
            raise NotFoundError(f'No events found on date "{day.isoformat()}".')
        return events

    def delete(
        self,
        event_id: str | None = None,
        day: date | None = None,
        dry_run: bool = False,
    ) -> list[Event]:
        """Remove the selected events; with ``dry_run`` the file is left unchanged."""
        targets = self.delete_targets(event_id, day)
        if day is not None:
            removed = self.store.remove_by_date(day)
        else:
            removed = self.store.remove_by_events(targets)
        if not removed:
            raise NotFoundError("Unable to delete the selected events.")
        if dry_run:
            logger.info("Dry run; not writing %d deletions", len(targets))
        else:
            self.store.save()
            logger.info("Deleted %d event(s)", len(targets))
        return targets

    # ------------------------------ Queries ---------------------------------

    def list_events(
        self,
        start: date | None = None,
        end: date | None = None,
        today: bool = False,
        week: bool = False,
    ) -> list[Event]:
        """Events in an explicit range, today, this week, or all of them."""
        if start is not None and end is not None and start > end:
            raise ValidationError("--from date cannot be after --to date.")
        if start is not None or end is not None:
            return self.store.find_by_date_range(start, end)
        if today:
            return self.store.find_by_date(self._today())
        if week:
            return self.store.find_by_date_range(*week_bounds(self._today()))
        return self.store.get_all_events()

    def agenda(self, day: date | None = None, week: bool = False) -> list[Event]:
        """Events for one day, for this week, or all of them."""
        if day is not None:
            return self.store.find_by_date(day)
        if week:
            return self.store.find_by_date_range(*week_bounds(self._today()))
        return self.store.get_all_events()

    def search(self, keyword: str | None = None, title: str | None = None) -> list[Event]:
        """Title-only search when ``title`` is given, else title and description."""
        if title:
            return self.store.search_in_title(title)
        if keyword:
            return self.store.search_in_title_and_description(keyword)
        raise ValidationError(
            'Please provide a keyword "calctl search <KEYWORD>" to search in title and '
            'description, or "calctl search --title TITLE" to search in title only.'
        )

    def show(self, event_id: str) -> tuple[Event, list[Event]]:
        """Return the event and the stored events that conflict with it."""
        event = self._require(event_id)
        conflicts = self.store.find_by_ids(self.store.check_conflicts(event))
        return event, conflicts


__all__ = [
    "CalendarService",
    "new_event_id",
    "parse_date",
    "parse_duration",
    "parse_time",
    "week_bounds",
]
