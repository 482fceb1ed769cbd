from datetime import datetime

import pytest

from rate_backtest.aggregates import aggregate_usage
from rate_backtest.models import UsageObservation


def _obs(*args, usage):
    return UsageObservation(datetime(*args), usage)


def test_month_buckets(schedule):
    observations = [
        _obs(2024, 6, 28, 10, usage=1.0),
        _obs(2024, 6, 28, 11, usage=3.0),
        _obs(2024, 6, 30, 3, usage=0.5),
        _obs(2024, 7, 1, 15, usage=2.0),
    ]

    aggregates = aggregate_usage(observations, schedule)

    june, july = aggregates.months
    assert june.key == (2024, 6)
    assert june.total_usage_kwh == pytest.approx(4.5)
    assert june.active_day_count == 2
    assert june.peak_interval_kwh == 3.0
    assert july.key == (2024, 7)
    assert july.active_day_count == 1
    assert july.peak_interval_kwh == 2.0
    assert aggregates.billing_days == 3
    assert aggregates.total_usage_kwh == pytest.approx(6.5)


def test_period_totals(schedule):
    observations = [
        # Tuesday afternoon in July: on-peak under both structures.
        _obs(2024, 7, 2, 15, usage=2.0),
        # Tuesday overnight: super-off-peak.
        _obs(2024, 7, 2, 2, usage=1.0),
        # Tuesday evening: plain off-peak.
        _obs(2024, 7, 2, 20, usage=4.0),
        # Saturday afternoon in July: off-peak.
        _obs(2024, 7, 6, 15, usage=8.0),
    ]

    totals = aggregate_usage(observations, schedule).period_totals

    assert totals["two_period"] == {"on_peak": 2.0, "off_peak": 13.0}
    assert totals["three_period"] == {
        "on_peak": 2.0,
        "off_peak": 12.0,
        "super_off_peak": 1.0,
    }


def test_fuel_rider_is_seasonal(schedule):
    observations = [
        _obs(2024, 5, 31, 12, usage=10.0),
        _obs(2024, 6, 1, 12, usage=10.0),
        _obs(2024, 9, 30, 12, usage=5.0),
        _obs(2024, 10, 1, 12, usage=5.0),
    ]

    aggregates = aggregate_usage(observations, schedule)

    expected = 15.0 * schedule.fuel_rider_winter + 15.0 * schedule.fuel_rider_summer
    assert aggregates.fuel_rider_total == pytest.approx(expected)


def test_days_are_counted_per_calendar_day(schedule):
    # Same day-of-month in different months counts as two billing days.
    observations = [
        _obs(2024, 1, 5, 0, usage=1.0),
        _obs(2024, 1, 5, 23, usage=1.0),
        _obs(2024, 2, 5, 0, usage=1.0),
    ]

    aggregates = aggregate_usage(observations, schedule)

    assert aggregates.billing_days == 2
    assert [bucket.active_day_count for bucket in aggregates.months] == [1, 1]


def test_empty_series(schedule):
    aggregates = aggregate_usage([], schedule)
    assert aggregates.months == ()
    assert aggregates.billing_days == 0
    assert aggregates.fuel_rider_total == 0.0


def test_totals_are_read_only(schedule):
    aggregates = aggregate_usage([_obs(2024, 7, 2, 15, usage=2.0)], schedule)
    with pytest.raises(TypeError):
        aggregates.period_totals["two_period"]["on_peak"] = 0.0
    with pytest.raises(TypeError):
        aggregates.period_totals["extra"] = {}
