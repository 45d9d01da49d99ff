"""Service layer: one logical calendar operation per command invocation."""

from __future__ import annotations

from .calendar import CalendarService

__all__ = ["CalendarService"]
