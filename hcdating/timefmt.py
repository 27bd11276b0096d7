from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import math


@dataclass(frozen=True)
class GestationalTime:
    """Completed weeks plus remaining days (0-6)."""

    weeks: int
    days: int

    @property
    def decimal_weeks(self) -> float:
        return to_decimal_weeks(self.weeks, self.days)

    def as_dict(self) -> dict:
        return {"weeks": self.weeks, "days": self.days}

    def __str__(self) -> str:
        return format_time(self)


def round_half_up(x: float) -> int:
    # builtin round() is banker's rounding; 2.5 must become 3 here
    return int(math.floor(x + 0.5))


def to_decimal_weeks(weeks: float, days: float = 0) -> float:
    return weeks + days / 7.0


def to_weeks_days(decimal_weeks: Optional[float]) -> Optional[GestationalTime]:
    """Split decimal weeks into (weeks, days); ``None`` stays ``None``.

    Days are rounded half-up, and a rounded 7 rolls over into the next
    week, so 19.999 gives 20w 0d rather than 19w 7d.
    """
    if decimal_weeks is None:
        return None
    w = math.floor(decimal_weeks)
    d = round_half_up((decimal_weeks - w) * 7.0)
    if d == 7:
        return GestationalTime(int(w) + 1, 0)
    return GestationalTime(int(w), d)


def format_time(t: Optional[GestationalTime]) -> str:
    if t is None:
        return "-"
    return f"{t.weeks}w {t.days}d"


__all__ = ["GestationalTime", "round_half_up", "to_decimal_weeks", "to_weeks_days", "format_time"]
