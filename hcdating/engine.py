"""Gestational dating and percentile engine.

Two entry points compose the interpolation primitives:

* :func:`get_percentile` - population percentile of a measurement at a
  given gestational age.
* :func:`estimate_age` - gestational age whose mean curve matches the
  measurement, with a confidence interval read off the mean ± k·SD curves.

Failures on valid input are soft: an age outside the table gives ``None`` and an
implausible point estimate is replaced by a :class:`RangeFlag`.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union
import logging

from .config import DEFAULT_CONFIG, EngineConfig
from .interp import interpolate, inverse_estimate, mean_curve, sd_curve
from .normal import pnorm, zscore
from .table import ReferenceTable
from .timefmt import GestationalTime, round_half_up, to_decimal_weeks, to_weeks_days

logger = logging.getLogger(__name__)


class RangeFlag(str, Enum):
    ABOVE_UPPER = "above_upper_bound"
    BELOW_LOWER = "below_lower_bound"


@dataclass(frozen=True)
class ConfidenceInterval:
    lower: Optional[GestationalTime]  # youngest plausible age (mean + k·sd curve)
    upper: Optional[GestationalTime]  # oldest plausible age (mean - k·sd curve)

    def as_dict(self) -> dict:
        return {
            "lower": self.lower.as_dict() if self.lower else None,
            "upper": self.upper.as_dict() if self.upper else None,
        }


@dataclass(frozen=True)
class GestationalAgeEstimate:
    """Result of :func:`estimate_age`.

    ``point`` is a :class:`GestationalTime` when the mean-curve estimate lies
    within ``[lower_week, upper_week]`` and a :class:`RangeFlag` otherwise.
    The interval bounds are never flagged; check them against the same
    limits before display.
    """

    point: Union[GestationalTime, RangeFlag, None]
    interval: ConfidenceInterval
    exact_weeks: Optional[float] = None
    lower_week: float = 14.0
    upper_week: float = 40.0

    @property
    def flag(self) -> Optional[RangeFlag]:
        return self.point if isinstance(self.point, RangeFlag) else None

    @property
    def in_range(self) -> bool:
        return isinstance(self.point, GestationalTime)

    def describe_point(self) -> str:
        if self.point is RangeFlag.ABOVE_UPPER:
            return f"More than {self.upper_week:g} weeks"
        if self.point is RangeFlag.BELOW_LOWER:
            return f"Less than {self.lower_week:g} weeks"
        if self.point is None:
            return "-"
        return str(self.point)

    def as_dict(self) -> dict:
        if isinstance(self.point, GestationalTime):
            point = self.point.as_dict()
        elif isinstance(self.point, RangeFlag):
            point = self.point.value
        else:
            point = None
        return {
            "estimated_age": point,
            "estimated_age_text": self.describe_point(),
            "exact_weeks": self.exact_weeks,
            "confidence_interval": self.interval.as_dict(),
        }


def _resolve(table: Optional[ReferenceTable], config: Optional[EngineConfig]):
    cfg = config or DEFAULT_CONFIG
    return (table if table is not None else cfg.resolve_table()), cfg


def get_percentile(weeks: float, days: float, measurement: float,
                   table: Optional[ReferenceTable] = None,
                   config: Optional[EngineConfig] = None) -> Optional[int]:
    """Percentile (rounded, not clamped) of ``measurement`` at ``weeks + days/7``.

    Returns ``None`` when the age lies outside the table's week span.
    """
    tbl, _ = _resolve(table, config)
    ga = to_decimal_weeks(weeks, days)
    mu = interpolate(ga, tbl, "week", "mean")
    sd = interpolate(ga, tbl, "week", "sd")
    if mu is None or sd is None:
        logger.debug("GA %.3f outside table week span", ga)
        return None
    z = zscore(measurement, mu, sd)
    pct = round_half_up(pnorm(z) * 100.0)
    logger.debug("GA=%.3f mu=%.3f sd=%.3f z=%.4f -> P%d", ga, mu, sd, z, pct)
    return pct


def estimate_age(measurement: float,
                 table: Optional[ReferenceTable] = None,
                 config: Optional[EngineConfig] = None) -> GestationalAgeEstimate:
    """Gestational age estimate with confidence interval from one measurement.

    Raises :class:`~hcdating.table.ReferenceTableError` if the table's
    ``mean ± k·sd`` curves are not strictly increasing for the configured
    ``ci_sd_multiplier``.
    """
    tbl, cfg = _resolve(table, config)
    k = cfg.ci_sd_multiplier
    if isinstance(tbl, ReferenceTable):
        tbl.check_curves(k)

    exact = inverse_estimate(measurement, mean_curve, tbl)
    point: Union[GestationalTime, RangeFlag, None]
    if exact > cfg.upper_week:
        point = RangeFlag.ABOVE_UPPER
    elif exact < cfg.lower_week:
        point = RangeFlag.BELOW_LOWER
    else:
        point = to_weeks_days(exact)
    if isinstance(point, RangeFlag):
        logger.warning("Point estimate %.2f weeks outside %g..%g; flagged %s",
                       exact, cfg.lower_week, cfg.upper_week, point.value)

    # A large head at a given age reads as younger: the +k·sd curve gives the
    # youngest plausible age and the -k·sd curve the oldest.
    youngest = inverse_estimate(measurement, sd_curve(+k), tbl)
    oldest = inverse_estimate(measurement, sd_curve(-k), tbl)
    logger.debug("HC=%.2f -> %.3f weeks (CI %.3f..%.3f)", measurement, exact, youngest, oldest)

    return GestationalAgeEstimate(
        point=point,
        interval=ConfidenceInterval(to_weeks_days(youngest), to_weeks_days(oldest)),
        exact_weeks=exact,
        lower_week=cfg.lower_week,
        upper_week=cfg.upper_week,
    )


__all__ = [
    "RangeFlag",
    "ConfidenceInterval",
    "GestationalAgeEstimate",
    "get_percentile",
    "estimate_age",
]
