"""calctl: a local, single-user calendar manager for the terminal.

Events live in a single JSON document on disk and are managed through
one-shot commands (`add`, `list`, `agenda`, `search`, `show`, `edit`,
`delete`). See :mod:`calctl.cli` for the command surface and
:mod:`calctl.core.store` for the event store.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.1.0"
