"""Duration value type for event lengths.

A :class:`Duration` is an immutable, strictly positive time span
written as space-separated ``<number><unit>`` tokens, largest unit first::

    >>> str(Duration.parse("90m"))
    '1h 30m'
    >>> Duration.parse("1w 2d").to_seconds()
    777600

Units
-----
``w`` (weeks), ``d`` (days), ``h`` (hours), ``m`` (minutes) and ``s`` (seconds);
case-insensitive, each at most once, in any order. The string form produced by ``str()`` is
canonical and parses back to an equal value.

Pydantic
--------
``Duration`` plugs into Pydantic v2 models directly: a field typed as
``Duration`` accepts a ``Duration``, a string in the format above, or a
positive number of seconds, and dumps to its string form in JSON mode.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

_TOKEN = re.compile(r"^(\d+)([wdhms])$", re.IGNORECASE)

#: Seconds per unit, largest first (this order drives formatting).
UNIT_SECONDS: dict[str, int] = {
    "w": 7 * 24 * 3600,
    "d": 24 * 3600,
    "h": 3600,
    "m": 60,
    "s": 1,
}

FORMAT_HINT = "Ww Dd Hh Mm (e.g. '1h 30m')"


class DurationError(ValueError):
    """Raised when a duration string cannot be parsed or is not positive."""


@dataclass(frozen=True, slots=True)
class Duration:
    """A positive time span, stored as a whole number of seconds."""

    seconds: int

    def __post_init__(self) -> None:
        if isinstance(self.seconds, bool) or not isinstance(self.seconds, int):
            raise DurationError(f"duration seconds must be an int, got {self.seconds!r}")
        if self.seconds <= 0:
            raise DurationError("duration must be greater than zero")

    # ----- Construction ------------------------------------------------------
    @classmethod
    def parse(cls, text: str) -> Duration:
        """Parse ``text`` such as ``"1h 30m"`` into a :class:`Duration`."""
        tokens = text.split()
        if not tokens:
            raise DurationError(f"empty duration; expected {FORMAT_HINT}")

        seen: set[str] = set()
        total = 0
        for token in tokens:
            match = _TOKEN.match(token)
            if match is None:
                raise DurationError(f"invalid duration token {token!r}; expected {FORMAT_HINT}")
            amount, unit = int(match.group(1)), match.group(2).lower()
            if unit in seen:
                raise DurationError(f"unit {unit!r} given more than once in {text!r}")
            seen.add(unit)
            total += amount * UNIT_SECONDS[unit]
        return cls(total)

    @classmethod
    def from_minutes(cls, minutes: int) -> Duration:
        return cls(minutes * 60)

    # ----- Conversions -------------------------------------------------------
    def to_seconds(self) -> int:
        """Return the total length in seconds."""
        return self.seconds

    def to_timedelta(self) -> timedelta:
        return timedelta(seconds=self.seconds)

    def __str__(self) -> str:
        parts: list[str] = []
        remaining = self.seconds
        for unit, size in UNIT_SECONDS.items():
            amount, remaining = divmod(remaining, size)
            if amount:
                parts.append(f"{amount}{unit}")
        return " ".join(parts)

    # ----- Pydantic integration ----------------------------------------------
    @classmethod
    def _coerce(cls, value: Any) -> Duration:
        if isinstance(value, Duration):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        if isinstance(value, int) and not isinstance(value, bool):
            return cls(value)
        raise DurationError(f"cannot interpret {value!r} as a duration")

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._coerce,
            serialization=core_schema.to_string_ser_schema(),
        )


__all__ = ["Duration", "DurationError", "FORMAT_HINT", "UNIT_SECONDS"]
