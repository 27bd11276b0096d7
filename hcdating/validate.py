from __future__ import annotations
from typing import Any, Optional, Tuple
import math

from .table import ReferenceTable, valid_measurement_range


class InputError(ValueError):
    """User input rejected before it reaches the engine."""


def coerce_number(value: Any, message: str = "Please enter a numeric value") -> float:
    """Float from a number or numeric string; blanks, NaN and infinities are rejected."""
    if isinstance(value, bool) or value is None:
        raise InputError(message)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise InputError(message)
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise InputError(message) from None
    if not math.isfinite(v):
        raise InputError(message)
    return v


def check_measurement(value: Any, table: ReferenceTable, sd_multiplier: float = 4.0) -> float:
    """Return the measurement in mm if it lies inside the table's valid band."""
    v = coerce_number(value)
    lo, hi = valid_measurement_range(table, sd_multiplier)
    if v < lo:
        raise InputError(f"Measurement value must be at least {lo:.1f}mm")
    if v > hi:
        raise InputError(f"Measurement value must be at most {hi:.1f}mm")
    return v


def check_age(weeks: Any, days: Optional[Any] = None, *,
              lower_week: float = 14.0, upper_week: float = 40.0) -> Tuple[int, int]:
    """Validate (weeks, days) the way the form parsed them.

    Both parts are truncated to whole numbers; missing or unreadable days
    count as 0.
    """
    w = math.trunc(coerce_number(weeks, "Please enter week and head circumference"))
    if w < lower_week or w > upper_week:
        raise InputError(f"Week must be between {lower_week:g}-{upper_week:g}")
    try:
        d = math.trunc(coerce_number(days))
    except InputError:
        d = 0
    if d < 0 or d > 6:
        raise InputError("Days must be between 0-6")
    return w, d


__all__ = ["InputError", "coerce_number", "check_measurement", "check_age"]
