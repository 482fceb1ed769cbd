"""Residential rate-plan backtest: normalise hourly usage, price it under each tariff, pick the cheapest."""

from .aggregates import aggregate_usage
from .costs import calculate_tariff_costs
from .errors import (
    AnalysisError,
    HeaderNotFoundError,
    InsufficientDataError,
    NoValidRecordsError,
    RateScheduleError,
)
from .models import (
    AnalysisResult,
    AnalysisWindow,
    MonthBucket,
    PlanRanking,
    RateSchedule,
    TariffBreakdown,
    UsageAggregates,
    UsageObservation,
)
from .pipeline import analyze_rows
from .records import normalize_rows
from .reporting import compare_plans
from .tariffs import read_rate_schedule

__all__ = [
    "aggregate_usage",
    "analyze_rows",
    "AnalysisError",
    "AnalysisResult",
    "AnalysisWindow",
    "calculate_tariff_costs",
    "compare_plans",
    "HeaderNotFoundError",
    "InsufficientDataError",
    "MonthBucket",
    "NoValidRecordsError",
    "normalize_rows",
    "PlanRanking",
    "RateSchedule",
    "RateScheduleError",
    "read_rate_schedule",
    "TariffBreakdown",
    "UsageAggregates",
    "UsageObservation",
]
