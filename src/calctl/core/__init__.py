"""Core package for calctl: settings, errors, contracts and the event store.

Downstream code imports from the submodules directly, e.g.:
    from calctl.core.settings import settings, get_logger
    from calctl.core.store.memory import EventStore
"""

from __future__ import annotations

__all__ = ["__doc__"]
