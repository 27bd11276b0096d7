import logging

import numpy as np
import pytest

from hcdating.config import EngineConfig
from hcdating.engine import (
    ConfidenceInterval,
    GestationalAgeEstimate,
    RangeFlag,
    estimate_age,
    get_percentile,
)
from hcdating.interp import interpolate
from hcdating.table import ReferenceTableError
from hcdating.timefmt import GestationalTime


def test_percentile_at_mean_is_50(table):
    assert get_percentile(20, 0, 172.5, table) == 50
    assert get_percentile(40, 0, 333.9, table) == 50
    mu = interpolate(27 + 4 / 7, table)
    assert get_percentile(27, 4, mu, table) == 50


def test_percentile_from_z(table):
    assert get_percentile(20, 0, 172.5 + 7.44, table) == 84
    assert get_percentile(20, 0, 172.5 - 2 * 7.44, table) == 2


def test_percentile_is_not_clamped_but_saturates(table):
    assert get_percentile(20, 0, 400.0, table) == 100
    assert get_percentile(20, 0, 60.0, table) == 0


def test_percentile_outside_table_weeks(table):
    assert get_percentile(13, 6, 100.0, table) is None
    assert get_percentile(40, 1, 330.0, table) is None


def test_percentile_uses_builtin_table_by_default():
    assert get_percentile(20, 0, 172.5) == 50


def test_estimate_inside_range(table):
    est = estimate_age(172.5, table)
    assert est.point == GestationalTime(20, 0)
    assert est.in_range and est.flag is None
    assert np.isclose(est.exact_weeks, 20.0)
    # youngest from the +2 SD curve, oldest from the -2 SD curve
    assert est.interval == ConfidenceInterval(GestationalTime(18, 6), GestationalTime(21, 2))


def test_estimate_flags_beyond_upper_bound(table):
    # mean curve extrapolates to 41.2 weeks
    est = estimate_age(336.9, table)
    assert np.isclose(est.exact_weeks, 41.2)
    assert est.point is RangeFlag.ABOVE_UPPER
    assert est.flag is RangeFlag.ABOVE_UPPER
    assert est.describe_point() == "More than 40 weeks"
    assert est.interval.lower == GestationalTime(35, 2)
    assert est.interval.upper == GestationalTime(64, 6)


def test_estimate_flags_below_lower_bound(table):
    est = estimate_age(90.0, table)
    assert est.point is RangeFlag.BELOW_LOWER
    assert est.describe_point() == "Less than 14 weeks"
    assert est.interval.lower == GestationalTime(12, 4)
    assert est.interval.upper == GestationalTime(14, 2)


def test_estimate_respects_configured_bounds(table):
    cfg = EngineConfig(upper_week=42.0)
    est = estimate_age(336.9, table, cfg)
    assert est.point == GestationalTime(41, 1)
    assert est.upper_week == 42.0


def test_wider_interval_with_larger_multiplier(table):
    narrow = estimate_age(250.6, table)
    wide = estimate_age(250.6, table, EngineConfig(ci_sd_multiplier=3.0))
    assert wide.interval.lower.decimal_weeks < narrow.interval.lower.decimal_weeks
    assert wide.interval.upper.decimal_weeks > narrow.interval.upper.decimal_weeks


def test_as_dict_shapes(table):
    d = estimate_age(172.5, table).as_dict()
    assert d["estimated_age"] == {"weeks": 20, "days": 0}
    assert d["estimated_age_text"] == "20w 0d"
    assert d["confidence_interval"] == {
        "lower": {"weeks": 18, "days": 6},
        "upper": {"weeks": 21, "days": 2},
    }
    flagged = estimate_age(336.9, table).as_dict()
    assert flagged["estimated_age"] == "above_upper_bound"


def test_absent_bounds_serialize_as_none():
    est = GestationalAgeEstimate(point=None, interval=ConfidenceInterval(None, None))
    assert est.describe_point() == "-"
    assert est.as_dict()["confidence_interval"] == {"lower": None, "upper": None}
    assert not est.in_range


def test_estimate_is_frozen(table):
    est = estimate_age(172.5, table)
    with pytest.raises(AttributeError):
        est.point = None


def test_percentile_with_raw_rows_outside_span():
    rows = [{"week": 20, "mean": 172.5, "sd": 7.44}, {"week": 21, "mean": 184.5, "sd": 7.68}]
    assert get_percentile(22, 0, 180.0, rows) is None
    assert get_percentile(20, 0, 172.5, rows) == 50


def test_interval_width_must_keep_curves_increasing(table):
    # mean - 4 sd falls between weeks 39 and 40 of the bundled table
    with pytest.raises(ReferenceTableError, match=r"mean-4sd"):
        estimate_age(330.0, table, EngineConfig(ci_sd_multiplier=4.0))


def test_flagged_estimate_logs_warning(table, caplog):
    with caplog.at_level(logging.WARNING, logger="hcdating.engine"):
        estimate_age(336.9, table)
    assert any(r.levelno == logging.WARNING and "above_upper_bound" in r.getMessage()
               for r in caplog.records)
