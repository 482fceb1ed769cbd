from datetime import datetime

import pytest

from rate_backtest.errors import HeaderNotFoundError, InsufficientDataError
from rate_backtest.models import UsageObservation
from rate_backtest.pipeline import analyze_rows


def test_full_year_through_the_pipeline(hourly, usage_rows, schedule):
    rows = usage_rows(hourly(datetime(2023, 1, 1), 8760))

    result = analyze_rows(rows, schedule)

    assert len(result.series.observations) == 8760
    assert result.aggregates.total_usage_kwh == pytest.approx(8760.0)
    assert result.aggregates.billing_days == 365
    assert [item.tariff_id for item in result.breakdowns] == [
        "R-30",
        "TOU-REO",
        "TOU-OA",
        "TOU-RD",
    ]
    assert result.ranking.recommended_id == "TOU-RD"
    assert result.ranking.ranked[0].tariff_id == "TOU-RD"
    assert result.ranking.savings > 0
    assert result.schedule is schedule


def test_default_schedule_is_loaded(hourly, usage_rows):
    result = analyze_rows(usage_rows(hourly(datetime(2024, 1, 1), 24 * 40)))
    assert result.schedule.standard_tariff_id == "R-30"


def test_rerun_gives_identical_breakdowns(hourly, usage_rows, schedule):
    rows = usage_rows(hourly(datetime(2024, 5, 1), 24 * 60, usage_kwh=0.8))
    assert analyze_rows(rows, schedule).breakdowns == analyze_rows(rows, schedule).breakdowns


def test_near_zero_reading_does_not_count(hourly, usage_rows, schedule):
    observations = hourly(datetime(2024, 3, 1), 24 * 40)
    baseline = analyze_rows(usage_rows(observations), schedule)

    stray = UsageObservation(datetime(2024, 3, 20, 12, 30), 0.0005)
    # Would open a new billing day and stretch the window if it were kept.
    extra_day = UsageObservation(datetime(2024, 4, 25, 9), 0.0005)
    with_noise = analyze_rows(usage_rows(observations + [stray, extra_day]), schedule)

    assert with_noise.aggregates == baseline.aggregates
    assert with_noise.breakdowns == baseline.breakdowns
    assert with_noise.aggregates.billing_days == 40


def test_errors_propagate(hourly, usage_rows, schedule):
    with pytest.raises(HeaderNotFoundError):
        analyze_rows([["Date", "Usage"]], schedule)
    with pytest.raises(InsufficientDataError):
        analyze_rows(usage_rows(hourly(datetime(2024, 1, 1), 24 * 5)), schedule)
