from hcdating.timefmt import (
    GestationalTime,
    format_time,
    round_half_up,
    to_decimal_weeks,
    to_weeks_days,
)


def test_whole_weeks():
    assert to_weeks_days(20.0) == GestationalTime(20, 0)


def test_days_round_half_up():
    # 3.5 days
    assert to_weeks_days(20.5) == GestationalTime(20, 4)
    assert round_half_up(2.5) == 3
    assert round_half_up(84.13) == 84


def test_seven_days_roll_over():
    assert to_weeks_days(19.999) == GestationalTime(20, 0)
    assert to_weeks_days(19.95) == GestationalTime(20, 0)


def test_round_trip_through_decimal():
    for w in (14, 20, 39):
        for d in range(7):
            assert to_weeks_days(to_decimal_weeks(w, d)) == GestationalTime(w, d)


def test_none_propagates():
    assert to_weeks_days(None) is None
    assert format_time(None) == "-"


def test_format_and_dict():
    t = GestationalTime(20, 3)
    assert format_time(t) == "20w 3d"
    assert str(t) == "20w 3d"
    assert t.as_dict() == {"weeks": 20, "days": 3}
    assert abs(t.decimal_weeks - (20 + 3 / 7)) < 1e-12
