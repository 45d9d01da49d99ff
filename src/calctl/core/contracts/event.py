"""
Event contracts: the calendar entry and the structures used to build and edit it.

This module defines three Pydantic v2 models:

- :class:`Event`: an immutable snapshot of one calendar entry.
- :class:`EventOptions`: the optional fields accepted by :meth:`Event.create`.
- :class:`EventPatch`: a sparse set of field updates applied by :meth:`Event.apply`.

Time model
----------
All datetimes are naive local wall-clock values. An event occupies the
half-open interval ``[start_date_time, start_date_time + duration)``; two
events conflict when those intervals overlap. Timezone-aware datetimes are
rejected, as is an event that would end past ``datetime.max``.

Serialization
-------------
Records use camelCase keys (``startDateTime``, ``timeCreated``, ...) so the
on-disk document stays compatible with earlier calctl releases. Python code
uses the snake_case attribute names.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, NaiveDatetime, model_validator
from pydantic.alias_generators import to_camel

from calctl.core.duration import Duration

_RECORD_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
)

_CLEARABLE = ("description", "location")


class EventOptions(BaseModel):
    """Optional fields for :meth:`Event.create`, all absent by default."""

    model_config = ConfigDict(frozen=True)

    description: str | None = None
    location: str | None = None
    time_created: NaiveDatetime | None = None
    time_updated: NaiveDatetime | None = None


class EventPatch(BaseModel):
    """
    A sparse edit: every field left as ``None`` keeps the event's current value.

    ``start_date`` and ``start_time`` replace the date part and the time-of-day
    part of ``start_date_time`` independently, so moving an event to another day
    keeps its start time. A blank ``description`` or ``location`` clears that
    field.
    """

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    description: str | None = None
    start_date: date | None = None
    start_time: time | None = None
    duration: Duration | None = None
    location: str | None = None

    def is_empty(self) -> bool:
        """Return True when the patch would change nothing."""
        return not self.model_dump(exclude_none=True)


class Event(BaseModel):
    """
    One calendar entry.

    Instances are frozen; use :meth:`apply` to derive an edited copy. Equality
    is structural (all fields), while the natural ordering (``<``) compares
    start times only. Stores sort with :meth:`sort_key`, which breaks start
    time ties by id.
    """

    model_config = ConfigDict(frozen=True, **_RECORD_CONFIG)

    id: str = Field(min_length=1, description="Unique, immutable identifier")
    title: str
    description: str | None = None
    start_date_time: NaiveDatetime
    duration: Duration
    location: str | None = None
    time_created: NaiveDatetime | None = None
    time_updated: NaiveDatetime | None = None

    @model_validator(mode="after")
    def _end_is_representable(self) -> Event:
        if self.duration.to_timedelta() > datetime.max - self.start_date_time:
            raise ValueError("event would end after 9999-12-31")
        return self

    # ----- Construction ------------------------------------------------------
    @classmethod
    def create(
        cls,
        id: str,
        title: str,
        start_date_time: datetime,
        duration: Duration,
        options: EventOptions | None = None,
    ) -> Event:
        """Build an event from its required fields plus optional extras."""
        extras = (options or EventOptions()).model_dump()
        return cls(
            id=id,
            title=title,
            start_date_time=start_date_time,
            duration=duration,
            **extras,
        )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Event:
        """Validate a stored record (camelCase keys) into an :class:`Event`."""
        return cls.model_validate(dict(record))

    # ----- Derived values ----------------------------------------------------
    @property
    def end_date_time(self) -> datetime:
        return self.start_date_time + self.duration.to_timedelta()

    @property
    def start_date(self) -> date:
        return self.start_date_time.date()

    def sort_key(self) -> tuple[datetime, str]:
        """Deterministic store ordering: start time, then id."""
        return (self.start_date_time, self.id)

    def __lt__(self, other: Event) -> bool:
        return self.start_date_time < other.start_date_time

    # ----- Behaviour ---------------------------------------------------------
    def is_conflict(self, other: Event | None) -> bool:
        """
        Return True if the two events' time intervals overlap.

        Intervals are half-open, so an event ending at 15:00 does not
        conflict with one starting at 15:00. Identity is not considered: an
        event always conflicts with itself.
        """
        if other is None:
            return False
        return (
            self.start_date_time < other.end_date_time
            and other.start_date_time < self.end_date_time
        )

    def apply(self, patch: EventPatch, updated_at: datetime | None = None) -> Event:
        """
        Return a new event with ``patch`` applied; ``self`` is left untouched.

        Parameters
        ----------
        patch:
            Fields to change. ``None`` entries are ignored; a blank
            ``description`` or ``location`` clears the field.
        updated_at:
            New ``time_updated`` value, if given.
        """
        changes: dict[str, Any] = patch.model_dump(
            exclude_none=True, exclude={"start_date", "start_time"}
        )
        for key in _CLEARABLE:
            if key in changes and not changes[key].strip():
                changes[key] = None
        if patch.start_date is not None or patch.start_time is not None:
            changes["start_date_time"] = datetime.combine(
                patch.start_date if patch.start_date is not None else self.start_date,
                patch.start_time if patch.start_time is not None else self.start_date_time.time(),
            )
        if updated_at is not None:
            changes["time_updated"] = updated_at
        return self.model_validate(self.model_dump() | changes)

    # ----- Serialization -----------------------------------------------------
    def to_record(self) -> dict[str, Any]:
        """Return the flat, JSON-safe mapping stored on disk."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self, indent: int | None = 2) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)


__all__ = ["Event", "EventOptions", "EventPatch"]
