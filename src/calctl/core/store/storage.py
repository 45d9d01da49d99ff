"""Disk-backed JSON codec for the event store.

This module persists a list of :class:`~calctl.core.contracts.event.Event`
objects as a single JSON document.

- Location: passed in explicitly (the CLI resolves it from settings)
- Shape:    ``{"version": 1, "events": [<record>, ...]}``
- Records:  camelCase keys, ISO-8601 datetimes, duration in string form

Atomic writes
-------------
`EventFile.write` never writes the canonical path in place. It writes a
temporary sibling file, flushes and fsyncs it, then ``os.replace``-s it over
the canonical path. A crash or a failed write therefore leaves either the
old document or the new one, never a truncated file.

Usage
-----
>>> doc = EventFile(Path("~/.calctl/events.json").expanduser())
>>> events = doc.read()   # [] when the file does not exist yet
>>> doc.write(events)
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pydantic

from calctl.core.contracts.event import Event
from calctl.core.errors import CorruptStoreError, StoreIOError
from calctl.core.settings import get_logger

SCHEMA_VERSION = 1

logger = get_logger(__name__)


class EventFile:
    """Read and atomically replace the JSON event document at `path`."""

    def __init__(self, path: Path) -> None:
        self.path: Path = path

    # ------------------------------- Read -----------------------------------

    def read(self) -> list[Event]:
        """Return the events stored at `path`.

        A missing or blank file yields an empty list. Anything else that is
        not a valid event document raises :class:`CorruptStoreError`.
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No event file at %s; starting empty", self.path)
            return []
        except (OSError, UnicodeDecodeError) as e:
            raise StoreIOError(f"Unable to read event file {self.path}: {e}") from e

        if not text.strip():
            logger.warning("Event file %s is empty; treating it as an empty calendar", self.path)
            return []

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise CorruptStoreError(self.path, f"invalid JSON ({e})") from e

        events = self._decode(payload)
        logger.debug("Loaded %d events from %s", len(events), self.path)
        return events

    def _decode(self, payload: Any) -> list[Event]:
        if not isinstance(payload, dict) or not isinstance(payload.get("events"), list):
            raise CorruptStoreError(self.path, "expected an object with an 'events' list")

        events: list[Event] = []
        seen: set[str] = set()
        for index, record in enumerate(payload["events"]):
            if not isinstance(record, dict):
                raise CorruptStoreError(self.path, f"event #{index} is not an object")
            try:
                event = Event.from_record(record)
            except pydantic.ValidationError as e:
                raise CorruptStoreError(self.path, f"event #{index} is invalid: {e}") from e
            if event.id in seen:
                raise CorruptStoreError(self.path, f"duplicate event id {event.id!r}")
            seen.add(event.id)
            events.append(event)
        return events

    # ------------------------------- Write ----------------------------------

    def write(self, events: Iterable[Event]) -> Path:
        """Atomically replace the document with `events` and return its path."""
        payload = {
            "version": SCHEMA_VERSION,
            "events": [event.to_record() for event in events],
        }
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise StoreIOError(f"Unable to write events to {self.path}: {e}") from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

        logger.debug("Wrote %d events to %s", len(payload["events"]), self.path)
        return self.path


__all__ = ["EventFile", "SCHEMA_VERSION"]
