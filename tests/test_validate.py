import math

import pytest

from hcdating.validate import InputError, check_age, check_measurement, coerce_number


@pytest.mark.parametrize("bad", [None, "", "  ", "abc", float("nan"), math.inf, True])
def test_coerce_rejects_non_numeric(bad):
    with pytest.raises(InputError, match="Please enter a numeric value"):
        coerce_number(bad)


def test_coerce_accepts_strings():
    assert coerce_number(" 172.5 ") == 172.5


def test_measurement_band(table):
    assert check_measurement("172.5", table) == 172.5
    with pytest.raises(InputError, match=r"at least 75\.6mm"):
        check_measurement(75.0, table)
    with pytest.raises(InputError, match=r"at most 385\.6mm"):
        check_measurement(386.0, table)


def test_measurement_band_multiplier(table):
    # +-2 SD band is 86.7..359.7 mm
    with pytest.raises(InputError):
        check_measurement(80.0, table, sd_multiplier=2.0)


def test_check_age():
    assert check_age(20, 3) == (20, 3)
    assert check_age("20", None) == (20, 0)
    assert check_age("20", "") == (20, 0)


def test_check_age_truncates_like_form_input():
    assert check_age("20.5", "3.5") == (20, 3)
    assert check_age(40.9, 6.9) == (40, 6)
    assert check_age(20, "abc") == (20, 0)


@pytest.mark.parametrize(
    "weeks, days, msg",
    [
        ("x", 0, "Please enter week and head circumference"),
        (13, 0, "Week must be between 14-40"),
        (13.9, 0, "Week must be between 14-40"),
        (41, 0, "Week must be between 14-40"),
        (20, 7, "Days must be between 0-6"),
        (20, -1, "Days must be between 0-6"),
    ],
)
def test_check_age_rejects(weeks, days, msg):
    with pytest.raises(InputError, match=msg):
        check_age(weeks, days)


def test_input_error_is_value_error():
    assert issubclass(InputError, ValueError)
