from __future__ import annotations

from datetime import date
from types import MappingProxyType
from typing import Dict, Iterable, Set

from .models import MonthBucket, MonthKey, RateSchedule, UsageAggregates, UsageObservation
from .periods import CLASSIFIERS, PERIODS


class _MonthAccumulator:
    __slots__ = ("total", "days", "peak")

    def __init__(self) -> None:
        self.total = 0.0
        self.days: Set[int] = set()
        self.peak = 0.0

    def add(self, item: UsageObservation) -> None:
        self.total += item.usage_kwh
        self.days.add(item.timestamp.day)
        self.peak = max(self.peak, item.usage_kwh)


def aggregate_usage(
    observations: Iterable[UsageObservation],
    schedule: RateSchedule,
) -> UsageAggregates:
    """Fold observations into month buckets, period totals and the fuel rider."""

    months: Dict[MonthKey, _MonthAccumulator] = {}
    period_totals: Dict[str, Dict[str, float]] = {
        structure: {period: 0.0 for period in periods}
        for structure, periods in PERIODS.items()
    }
    days: Set[date] = set()
    fuel_rider_total = 0.0
    total_usage = 0.0

    for item in observations:
        key = _month_key(item)
        bucket = months.get(key)
        if bucket is None:
            bucket = months[key] = _MonthAccumulator()
        bucket.add(item)

        for structure, classifier in CLASSIFIERS.items():
            period_totals[structure][classifier(item.timestamp)] += item.usage_kwh

        fuel_rider_total += item.usage_kwh * schedule.fuel_rider_rate(item.timestamp.month)
        total_usage += item.usage_kwh
        days.add(item.timestamp.date())

    return UsageAggregates(
        months=tuple(
            MonthBucket(
                year=year,
                month=month,
                total_usage_kwh=bucket.total,
                active_day_count=len(bucket.days),
                peak_interval_kwh=bucket.peak,
            )
            for (year, month), bucket in sorted(months.items())
        ),
        period_totals=MappingProxyType(
            {structure: MappingProxyType(totals) for structure, totals in period_totals.items()}
        ),
        fuel_rider_total=fuel_rider_total,
        billing_days=len(days),
        total_usage_kwh=total_usage,
    )


def _month_key(item: UsageObservation) -> MonthKey:
    return (item.timestamp.year, item.timestamp.month)
