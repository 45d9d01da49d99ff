"""Exception taxonomy for calctl.

Every failure a command can report derives from :class:`CalctlError`. The
store and service layers raise these; only the CLI turns them into a
message and a non-zero exit status.

- :class:`NotFoundError`     : an id or date has no matching event.
- :class:`ValidationError`   : malformed input, caught before any mutation.
- :class:`ConflictError`     : a new/edited event overlaps existing ones.
- :class:`CorruptStoreError` : the backing file exists but cannot be parsed.
- :class:`StoreIOError`      : the backing file cannot be read or written.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from calctl.core.contracts.event import Event


class CalctlError(Exception):
    """Base class for all errors surfaced to the user."""

    exit_code: int = 1


class NotFoundError(CalctlError):
    """Raised when an id or date has no matching event."""


class ValidationError(CalctlError, ValueError):
    """Raised when user input is malformed or incomplete."""


class ConflictError(CalctlError):
    """Raised when an event overlaps existing events and no override was given."""

    def __init__(self, message: str, conflicts: Sequence[Event]) -> None:
        super().__init__(message)
        self.conflicts: list[Event] = list(conflicts)


class CorruptStoreError(CalctlError):
    """Raised when the backing file is present but not a valid event document."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Event file {path} is corrupt: {reason}")
        self.path = path
        self.reason = reason


class StoreIOError(CalctlError, OSError):
    """Raised when the backing file cannot be read or written."""


__all__ = [
    "CalctlError",
    "ConflictError",
    "CorruptStoreError",
    "NotFoundError",
    "StoreIOError",
    "ValidationError",
]
