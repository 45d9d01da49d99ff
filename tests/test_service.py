"""
Tests for the calendar service.

The service is exercised with a fixed clock (Wednesday 2023-10-11 09:30) and
a predictable id factory so timestamps, relative ranges and ids are stable.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date, datetime, time
from pathlib import Path

import pytest

from calctl.core.duration import Duration
from calctl.core.errors import ConflictError, NotFoundError, ValidationError
from calctl.core.store.memory import EventStore
from calctl.services.calendar import (
    CalendarService,
    new_event_id,
    parse_date,
    parse_duration,
    parse_time,
    week_bounds,
)

NOW = datetime(2023, 10, 11, 9, 30, 15, 123456)


def _ids(prefix: str = "evt") -> Iterator[str]:
    n = 0
    while True:
        n += 1
        yield f"{prefix}-{n}"


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "events.json"


@pytest.fixture
def svc(data_file: Path) -> CalendarService:
    ids = _ids()
    return CalendarService(EventStore(data_file), clock=lambda: NOW, id_factory=lambda: next(ids))


def _reload(data_file: Path) -> EventStore:
    return EventStore.load(data_file)


# ---- Parsing helpers ----


def test_parse_helpers_accept_valid_input() -> None:
    assert parse_date("2023-10-10") == date(2023, 10, 10)
    assert parse_time("14:00") == time(14, 0)
    assert parse_time("14:00:30") == time(14, 0, 30)
    assert parse_duration("1h 30m") == Duration(5400)


@pytest.mark.parametrize(
    "text", ["2023/10/10", "10-10-2023", "2023-13-01", "2023-1-1", "2023-W41-2", ""]
)
def test_parse_date_rejects_bad_input(text: str) -> None:
    with pytest.raises(ValidationError, match="YYYY-MM-DD"):
        parse_date(text)


@pytest.mark.parametrize("text", ["2pm", "25:00", "9:00", "14:00:00.5", "14:00+01", "14:00Z"])
def test_parse_time_rejects_bad_input(text: str) -> None:
    with pytest.raises(ValidationError, match="HH:MM"):
        parse_time(text)


def test_parse_duration_rejects_bad_input() -> None:
    with pytest.raises(ValidationError, match="Invalid duration"):
        parse_duration("ninety minutes")


def test_new_event_id_shape() -> None:
    event_id = new_event_id()
    assert event_id.startswith("evt-")
    assert len(event_id) == len("evt-") + 8


def test_week_bounds_monday_to_sunday() -> None:
    assert week_bounds(date(2023, 10, 11)) == (date(2023, 10, 9), date(2023, 10, 15))
    assert week_bounds(date(2023, 10, 15)) == (date(2023, 10, 9), date(2023, 10, 15))


# ---- Add ----


def test_add_persists_event_with_timestamps(svc: CalendarService, data_file: Path) -> None:
    event = svc.add_event(
        "Meeting", "2023-10-10", "14:00", "1h 30m", description="Sync", location=""
    )
    assert event.id == "evt-1"
    assert event.start_date_time == datetime(2023, 10, 10, 14, 0)
    assert event.end_date_time == datetime(2023, 10, 10, 15, 30)
    assert event.time_created == NOW.replace(microsecond=0)
    assert event.time_updated == event.time_created
    assert event.location is None

    assert _reload(data_file).get_all_events() == [event]


@pytest.mark.parametrize(
    "args",
    [
        ("", "2023-10-10", "14:00", "1h"),
        ("Meeting", "", "14:00", "1h"),
        ("Meeting", "2023-10-10", " ", "1h"),
        ("Meeting", "2023-10-10", "14:00", ""),
    ],
)
def test_add_requires_all_fields(svc: CalendarService, args: tuple[str, str, str, str]) -> None:
    with pytest.raises(ValidationError, match="required"):
        svc.add_event(*args)
    assert len(svc.store) == 0


def test_add_rejects_conflict_unless_forced(svc: CalendarService, data_file: Path) -> None:
    first = svc.add_event("Meeting", "2023-10-10", "14:00", "1h 30m")

    with pytest.raises(ConflictError) as info:
        svc.add_event("Meeting2", "2023-10-10", "15:00", "30m")
    assert info.value.conflicts == [first]
    assert len(_reload(data_file)) == 1

    svc.add_event("Meeting2", "2023-10-10", "15:00", "30m", force=True)
    assert len(_reload(data_file)) == 2


def test_add_allows_touching_events(svc: CalendarService) -> None:
    svc.add_event("A", "2023-10-10", "14:00", "1h")
    svc.add_event("B", "2023-10-10", "15:00", "1h")
    assert len(svc.store) == 2


def test_add_retries_until_id_is_unused(data_file: Path) -> None:
    ids = iter(["evt-a", "evt-a", "evt-a", "evt-b"])
    svc = CalendarService(EventStore(data_file), clock=lambda: NOW, id_factory=lambda: next(ids))
    svc.add_event("One", "2023-10-10", "09:00", "1h")
    second = svc.add_event("Two", "2023-10-11", "09:00", "1h")
    assert second.id == "evt-b"


# ---- Edit ----


def test_edit_changes_only_given_fields(svc: CalendarService, data_file: Path) -> None:
    original = svc.add_event("Meeting", "2023-10-10", "14:00", "1h", location="Room 1")
    later = datetime(2023, 10, 12, 8, 0)
    svc._clock = lambda: later

    updated = svc.edit_event(original.id, date_text="2023-10-12", duration_text="2h")
    assert updated.start_date_time == datetime(2023, 10, 12, 14, 0)
    assert updated.duration == Duration.parse("2h")
    assert updated.location == "Room 1"
    assert updated.time_created == original.time_created
    assert updated.time_updated == later

    assert _reload(data_file).get_all_events() == [updated]


def test_edit_may_overlap_its_own_old_slot(svc: CalendarService) -> None:
    event = svc.add_event("Meeting", "2023-10-10", "14:00", "1h")
    updated = svc.edit_event(event.id, time_text="14:30")
    assert updated.start_date_time == datetime(2023, 10, 10, 14, 30)


def test_edit_conflict_leaves_store_unchanged(svc: CalendarService, data_file: Path) -> None:
    svc.add_event("A", "2023-10-10", "09:00", "1h")
    b = svc.add_event("B", "2023-10-10", "11:00", "1h")
    before = _reload(data_file).get_all_events()

    with pytest.raises(ConflictError):
        svc.edit_event(b.id, time_text="09:30")
    assert _reload(data_file).get_all_events() == before
    assert svc.store.get_all_events() == before

    svc.edit_event(b.id, time_text="09:30", force=True)
    assert svc.store.find_by_id(b.id) is not None
    assert len(_reload(data_file)) == 2


def test_edit_errors(svc: CalendarService) -> None:
    event = svc.add_event("Meeting", "2023-10-10", "14:00", "1h")
    with pytest.raises(NotFoundError):
        svc.edit_event("missing", title="x")
    with pytest.raises(ValidationError, match="Title cannot be empty"):
        svc.edit_event(event.id, title="  ")
    with pytest.raises(ValidationError, match="Nothing to edit"):
        svc.edit_event(event.id)
    with pytest.raises(ValidationError, match="YYYY-MM-DD"):
        svc.edit_event(event.id, date_text="tomorrow")
    assert svc.store.get_all_events() == [event]


# ---- Delete ----


@pytest.fixture
def filled(svc: CalendarService) -> CalendarService:
    svc.add_event("Standup", "2023-10-10", "09:00", "15m")
    svc.add_event("Retro", "2023-10-10", "16:00", "1h", description="Team meeting")
    svc.add_event("Review", "2023-10-12", "10:00", "1h")
    svc.add_event("Planning", "2023-10-20", "10:00", "2h")
    return svc


def test_delete_by_id(filled: CalendarService, data_file: Path) -> None:
    removed = filled.delete(event_id="evt-3")
    assert [e.title for e in removed] == ["Review"]
    assert "evt-3" not in _reload(data_file)


def test_delete_by_date_removes_every_event_that_day(
    filled: CalendarService, data_file: Path
) -> None:
    removed = filled.delete(day=date(2023, 10, 10))
    assert [e.title for e in removed] == ["Standup", "Retro"]
    assert [e.title for e in _reload(data_file).get_all_events()] == ["Review", "Planning"]


def test_delete_dry_run_does_not_write(filled: CalendarService, data_file: Path) -> None:
    removed = filled.delete(day=date(2023, 10, 10), dry_run=True)
    assert len(removed) == 2
    assert len(_reload(data_file)) == 4


def test_delete_selector_errors(filled: CalendarService) -> None:
    with pytest.raises(ValidationError):
        filled.delete()
    with pytest.raises(ValidationError):
        filled.delete(event_id="evt-1", day=date(2023, 10, 10))
    with pytest.raises(NotFoundError):
        filled.delete(event_id="missing")
    with pytest.raises(NotFoundError, match="2023-11-01"):
        filled.delete(day=date(2023, 11, 1))
    assert len(filled.store) == 4


# ---- Queries ----


def test_list_ranges(filled: CalendarService) -> None:
    titles = lambda events: [e.title for e in events]  # noqa: E731
    assert titles(filled.list_events()) == ["Standup", "Retro", "Review", "Planning"]
    assert titles(filled.list_events(date(2023, 10, 10), date(2023, 10, 12))) == [
        "Standup",
        "Retro",
        "Review",
    ]
    assert titles(filled.list_events(start=date(2023, 10, 11))) == ["Review", "Planning"]
    assert titles(filled.list_events(end=date(2023, 10, 10))) == ["Standup", "Retro"]
    assert filled.list_events(today=True) == []
    assert titles(filled.list_events(week=True)) == ["Standup", "Retro", "Review"]


def test_list_rejects_reversed_range(filled: CalendarService) -> None:
    with pytest.raises(ValidationError, match="--from"):
        filled.list_events(date(2023, 10, 12), date(2023, 10, 10))


def test_agenda(filled: CalendarService) -> None:
    assert [e.title for e in filled.agenda(day=date(2023, 10, 12))] == ["Review"]
    assert len(filled.agenda(week=True)) == 3
    assert len(filled.agenda()) == 4


def test_search(filled: CalendarService) -> None:
    assert [e.title for e in filled.search(keyword="TEAM")] == ["Retro"]
    assert filled.search(title="team") == []
    assert [e.title for e in filled.search(title="re")] == ["Retro", "Review"]
    with pytest.raises(ValidationError):
        filled.search()


def test_show_reports_conflicts(svc: CalendarService) -> None:
    a = svc.add_event("A", "2023-10-10", "09:00", "1h")
    b = svc.add_event("B", "2023-10-10", "09:30", "1h", force=True)
    event, conflicts = svc.show(a.id)
    assert event == a
    assert conflicts == [b]

    with pytest.raises(NotFoundError, match="missing"):
        svc.show("missing")


def test_queries_do_not_write(filled: CalendarService, data_file: Path) -> None:
    before = data_file.stat().st_mtime_ns
    filled.list_events()
    filled.search(keyword="x")
    filled.show("evt-1")
    assert data_file.stat().st_mtime_ns == before


def test_add_rejects_event_ending_past_max_date(svc: CalendarService, data_file: Path) -> None:
    svc.add_event("A", "9999-12-31", "22:00", "1h")
    with pytest.raises(ValidationError, match="after 9999-12-31"):
        svc.add_event("B", "9999-12-31", "23:00", "2h", force=True)
    assert len(_reload(data_file)) == 1


def test_add_with_offset_time_is_rejected_before_any_write(
    svc: CalendarService, data_file: Path
) -> None:
    """Only naive wall-clock times are stored, so later adds can still compare starts."""
    with pytest.raises(ValidationError, match="HH:MM"):
        svc.add_event("B", "2023-10-10", "14:00+01", "1h", force=True)
    assert not data_file.exists()
    svc.add_event("A", "2023-10-10", "09:00", "1h")
    assert len(_reload(data_file)) == 1


def test_edit_rejects_event_ending_past_max_date(svc: CalendarService) -> None:
    event = svc.add_event("A", "9999-12-31", "20:00", "1h")
    with pytest.raises(ValidationError, match="after 9999-12-31"):
        svc.edit_event(event.id, duration_text="1d")
    assert svc.store.get_all_events() == [event]


def test_edit_blank_description_and_location_clear_them(
    svc: CalendarService, data_file: Path
) -> None:
    """Blank optional text is stored as absent, the same as on add."""
    event = svc.add_event("A", "2023-10-10", "09:00", "1h", description="Sync", location="Lab")
    updated = svc.edit_event(event.id, description="", location="  ")
    assert updated.description is None
    assert updated.location is None
    stored = _reload(data_file).find_by_id(event.id)
    assert stored is not None and stored.description is None and stored.location is None


def test_delete_targets_by_id_or_date(filled: CalendarService) -> None:
    assert [e.title for e in filled.delete_targets(day=date(2023, 10, 12))] == ["Review"]
    assert [e.id for e in filled.delete_targets(event_id="evt-4")] == ["evt-4"]
