"""Event store: the in-memory collection and its JSON persistence."""

from __future__ import annotations

from .memory import EventStore
from .storage import EventFile

__all__ = ["EventFile", "EventStore"]
