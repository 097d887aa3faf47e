"""Time-of-day value used by weekly availability rules."""

from __future__ import annotations

from dataclasses import dataclass
import re

_HHMM_RE = re.compile(r"^(\d{2}):(\d{2})$")

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """
    Wall-clock time without a date, stored as minutes past midnight.

    ``24:00`` is accepted so a rule can run to the end of the day.
    """

    minutes: int

    def __post_init__(self) -> None:
        if not 0 <= self.minutes <= MINUTES_PER_DAY:
            raise ValueError(f"Time of day out of range: {self.minutes} minutes")

    @classmethod
    def of(cls, hour: int, minute: int = 0) -> "TimeOfDay":
        if not 0 <= minute < 60:
            raise ValueError(f"Invalid minute: {minute}")
        return cls(hour * 60 + minute)

    @classmethod
    def parse(cls, value: str) -> "TimeOfDay":
        """Parse a zero-padded ``HH:MM`` string."""
        match = _HHMM_RE.match(value.strip()) if isinstance(value, str) else None
        if not match:
            raise ValueError(f"Expected HH:MM, got {value!r}")
        return cls.of(int(match.group(1)), int(match.group(2)))

    @property
    def hour(self) -> int:
        return self.minutes // 60

    @property
    def minute(self) -> int:
        return self.minutes % 60

    def isoformat(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"

    def __str__(self) -> str:
        return self.isoformat()
