"""Pydantic contracts shared by the store, the service layer and the CLI."""

from __future__ import annotations

from .event import Event, EventOptions, EventPatch

__all__ = ["Event", "EventOptions", "EventPatch"]
