from __future__ import annotations

from datetime import datetime

ON_PEAK = "on_peak"
OFF_PEAK = "off_peak"
SUPER_OFF_PEAK = "super_off_peak"

TWO_PERIOD = "two_period"
THREE_PERIOD = "three_period"

PERIODS = {
    TWO_PERIOD: (ON_PEAK, OFF_PEAK),
    THREE_PERIOD: (ON_PEAK, OFF_PEAK, SUPER_OFF_PEAK),
}

ON_PEAK_MONTHS = frozenset({6, 7, 8, 9})


def is_on_peak(
    local_dt: datetime,
    *,
    peak_start_hour: int = 14,
    peak_end_hour: int = 19,
    months: frozenset = ON_PEAK_MONTHS,
) -> bool:
    """Weekday summer afternoons, ``peak_start_hour`` inclusive to ``peak_end_hour`` exclusive."""

    return (
        local_dt.weekday() < 5
        and local_dt.month in months
        and peak_start_hour <= local_dt.hour < peak_end_hour
    )


def is_super_off_peak(
    local_dt: datetime,
    *,
    start_hour: int = 23,
    end_hour: int = 7,
) -> bool:
    # Overnight window wraps midnight.
    return local_dt.hour >= start_hour or local_dt.hour < end_hour


def two_period(local_dt: datetime) -> str:
    return ON_PEAK if is_on_peak(local_dt) else OFF_PEAK


def three_period(local_dt: datetime) -> str:
    if is_on_peak(local_dt):
        return ON_PEAK
    if is_super_off_peak(local_dt):
        return SUPER_OFF_PEAK
    return OFF_PEAK


CLASSIFIERS = {
    TWO_PERIOD: two_period,
    THREE_PERIOD: three_period,
}


def classify(local_dt: datetime, structure: str) -> str:
    return CLASSIFIERS[structure](local_dt)
