from __future__ import annotations

import logging
from typing import Sequence

from .aggregates import aggregate_usage
from .costs import calculate_tariff_costs
from .models import AnalysisResult, RateSchedule
from .records import Row, normalize_rows
from .reporting import compare_plans
from .tariffs import read_rate_schedule

log = logging.getLogger(__name__)


def analyze_rows(
    rows: Sequence[Row],
    schedule: RateSchedule | None = None,
) -> AnalysisResult:
    """Run one analysis pass over raw spreadsheet rows.

    Raises one of the :class:`~rate_backtest.errors.AnalysisError` subclasses
    when the rows cannot be analysed; nothing downstream of normalisation
    fails.
    """

    if schedule is None:
        schedule = read_rate_schedule()

    series = normalize_rows(rows)
    log.info(
        "Analysing %d observations from %s to %s (%.1f days)",
        len(series.observations),
        series.window.start.isoformat(),
        series.window.end.isoformat(),
        series.window.total_days,
    )

    aggregates = aggregate_usage(series.observations, schedule)
    breakdowns = tuple(calculate_tariff_costs(aggregates, schedule))
    ranking = compare_plans(breakdowns, schedule.standard_tariff_id)
    log.info(
        "Recommended %s, saving %.2f over %s",
        ranking.recommended_id,
        ranking.savings,
        ranking.standard_id,
    )

    return AnalysisResult(
        series=series,
        aggregates=aggregates,
        breakdowns=breakdowns,
        ranking=ranking,
        schedule=schedule,
    )
