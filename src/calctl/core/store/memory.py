"""
In-memory event store with conflict detection and date/keyword queries.

This module implements the collection every calctl command works against.
A command loads the store from disk, performs one logical operation and,
for mutations, saves it back before exiting.

- ``add_event`` / ``remove_by_*``: mutate, always leaving the list sorted.
- ``check_conflicts``: ids of stored events overlapping a candidate.
- ``find_by_*`` / ``search_in_*``: read-only queries, results in store order.

Invariants
----------
- **Sorted**: events are ordered by ``(start_date_time, id)`` whenever the
  store is observed from outside. Every mutating method re-sorts before
  returning.
- **All-or-nothing removal**: a batch removal either removes every target or
  returns ``False`` and leaves the store exactly as it was.
- **Sole owner**: query results are new lists; events themselves are frozen,
  so callers cannot disturb the ordering.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import date
from pathlib import Path

from calctl.core.contracts.event import Event
from calctl.core.settings import get_logger

from .storage import EventFile

logger = get_logger(__name__)


class EventStore:
    """
    Sorted collection of events bound to a backing JSON file.

    Attributes
    ----------
    path : Path
        Location of the backing document used by :meth:`load` and :meth:`save`.
    _events : list[Event]
        The events, sorted by :meth:`Event.sort_key`.
    """

    __slots__ = ("path", "_events")

    def __init__(self, path: Path, events: Iterable[Event] = ()) -> None:
        self.path: Path = path
        self._events: list[Event] = list(events)
        self._sort()

    # ------------------------------ Persistence -----------------------------

    @classmethod
    def load(cls, path: Path) -> EventStore:
        """
        Load the store backed by ``path``.

        A missing file yields an empty store. A malformed file raises
        :class:`~calctl.core.errors.CorruptStoreError`.
        """
        return cls(path, EventFile(path).read())

    def save(self) -> Path:
        """Re-sort and atomically write the store to :attr:`path`."""
        self._sort()
        return EventFile(self.path).write(self._events)

    def _sort(self) -> None:
        self._events.sort(key=Event.sort_key)

    # ------------------------------ Mutation --------------------------------

    def add_event(self, event: Event) -> None:
        """Insert ``event``. Identity and conflict checks are the caller's job."""
        self._events.append(event)
        self._sort()

    def check_conflicts(self, candidate: Event) -> list[str]:
        """Return ids of stored events overlapping ``candidate``, excluding its own id."""
        return [
            event.id
            for event in self._events
            if event.id != candidate.id and event.is_conflict(candidate)
        ]

    def remove_by_id(self, event_id: str) -> bool:
        return self.remove_by_ids([event_id])

    def remove_by_ids(self, event_ids: Iterable[str]) -> bool:
        """Remove every event in ``event_ids``, or nothing if any id is unknown."""
        targets = set(event_ids)
        known = {event.id for event in self._events}
        if not targets <= known:
            logger.debug("Refusing removal; unknown ids: %s", sorted(targets - known))
            return False
        self._events = [event for event in self._events if event.id not in targets]
        self._sort()
        return True

    def remove_by_date(self, day: date) -> bool:
        return self.remove_by_dates([day])

    def remove_by_dates(self, days: Iterable[date]) -> bool:
        """Remove all events on ``days``, or nothing if any day has no events."""
        targets = set(days)
        occupied = {event.start_date for event in self._events}
        if not targets <= occupied:
            logger.debug("Refusing removal; empty dates: %s", sorted(targets - occupied))
            return False
        self._events = [event for event in self._events if event.start_date not in targets]
        self._sort()
        return True

    def remove_by_event(self, event: Event) -> bool:
        return self.remove_by_events([event])

    def remove_by_events(self, events: Iterable[Event]) -> bool:
        """Remove ``events`` (matched by id), or nothing if any is not stored."""
        return self.remove_by_ids(event.id for event in events)

    # ------------------------------ Queries ---------------------------------

    def find_by_id(self, event_id: str) -> Event | None:
        for event in self._events:
            if event.id == event_id:
                return event
        return None

    def find_by_ids(self, event_ids: Iterable[str]) -> list[Event]:
        """Return the stored events whose ids are in ``event_ids``; unknown ids are skipped."""
        wanted = set(event_ids)
        return [event for event in self._events if event.id in wanted]

    def find_by_date(self, day: date) -> list[Event]:
        return self.find_by_date_range(day, day)

    def find_by_date_range(
        self, start: date | None = None, end: date | None = None
    ) -> list[Event]:
        """
        Return events whose start *date* lies in ``[start, end]``.

        Both bounds are inclusive and either may be ``None`` for a one-sided
        range: ``(None, bound)`` gives everything up to and including
        ``bound``, ``(bound, None)`` everything from ``bound`` on. A reversed
        range (``start > end``) simply matches nothing.
        """
        return [
            event
            for event in self._events
            if (start is None or event.start_date >= start)
            and (end is None or event.start_date <= end)
        ]

    def search_in_title(self, keyword: str) -> list[Event]:
        needle = keyword.lower()
        return [event for event in self._events if needle in event.title.lower()]

    def search_in_title_and_description(self, keyword: str) -> list[Event]:
        """Case-insensitive match on title or description; absent descriptions never match."""
        needle = keyword.lower()
        return [
            event
            for event in self._events
            if needle in event.title.lower()
            or (event.description is not None and needle in event.description.lower())
        ]

    def get_all_events(self) -> list[Event]:
        return list(self._events)

    # ------------------------------ Dunders ---------------------------------

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(list(self._events))

    def __contains__(self, event_id: object) -> bool:
        return any(event.id == event_id for event in self._events)


__all__ = ["EventStore"]
