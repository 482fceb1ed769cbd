from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import List, Sequence, Tuple

from .errors import HeaderNotFoundError, InsufficientDataError, NoValidRecordsError
from .models import AnalysisWindow, NormalizedSeries, UsageObservation

log = logging.getLogger(__name__)

HEADER_SEARCH_ROWS = 20
TIMESTAMP_HEADER = "hour"
USAGE_HEADER = "kwh"
MIN_USAGE_KWH = 0.001
MIN_SPAN_DAYS = 30
DAYS_PER_YEAR = 365
GAP_MINUTES = 90
GAP_WARNING_THRESHOLD = 50
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"

# Spreadsheet serial day 0.
SERIAL_EPOCH = datetime(1899, 12, 30)

Row = Sequence[object]


def find_header(
    rows: Sequence[Row], *, search_rows: int = HEADER_SEARCH_ROWS
) -> Tuple[int, int, int]:
    """Locate the header row and return ``(row_index, timestamp_col, usage_col)``."""

    for index, row in enumerate(rows[:search_rows]):
        if not row:
            continue
        timestamp_col = _find_column(row, TIMESTAMP_HEADER)
        usage_col = _find_column(row, USAGE_HEADER)
        if timestamp_col >= 0 and usage_col >= 0:
            return index, timestamp_col, usage_col
    raise HeaderNotFoundError(search_rows)


def parse_rows(
    rows: Sequence[Row], timestamp_col: int, usage_col: int
) -> List[UsageObservation]:
    """Turn raw data rows into observations, silently dropping bad rows."""

    required = max(timestamp_col, usage_col)
    observations: List[UsageObservation] = []
    skipped = 0
    for row in rows:
        if row is None or len(row) <= required:
            skipped += 1
            continue
        usage = parse_usage_cell(row[usage_col])
        if usage is None:
            skipped += 1
            continue
        timestamp = parse_timestamp_cell(row[timestamp_col])
        if timestamp is None:
            skipped += 1
            continue
        observations.append(UsageObservation(timestamp=timestamp, usage_kwh=usage))
    if skipped:
        log.debug("Skipped %d of %d data rows", skipped, len(rows))
    return observations


def normalize_rows(rows: Sequence[Row]) -> NormalizedSeries:
    """Find the header, parse the data rows and select the analysis window."""

    header_index, timestamp_col, usage_col = find_header(rows)
    observations = parse_rows(rows[header_index + 1 :], timestamp_col, usage_col)
    return normalize_observations(observations)


def normalize_observations(observations: Sequence[UsageObservation]) -> NormalizedSeries:
    if not observations:
        raise NoValidRecordsError()

    ordered = sorted(observations, key=lambda item: item.timestamp)
    span_days = _days_between(ordered[0].timestamp, ordered[-1].timestamp)
    if span_days < MIN_SPAN_DAYS:
        raise InsufficientDataError(span_days, MIN_SPAN_DAYS)

    if span_days >= DAYS_PER_YEAR:
        full_years = math.floor(span_days / DAYS_PER_YEAR)
        cutoff = ordered[-1].timestamp - timedelta(days=full_years * DAYS_PER_YEAR)
        ordered = [item for item in ordered if item.timestamp >= cutoff]
        note = (
            f"Using most recent {full_years} full year(s) of data "
            "for accurate seasonal comparison."
        )
    else:
        note = "Less than 1 year of data. Seasonal variations may affect accuracy."

    start = ordered[0].timestamp
    end = ordered[-1].timestamp
    window = AnalysisWindow(start=start, end=end, total_days=_days_between(start, end))

    gaps = count_gaps(ordered)
    if gaps > GAP_WARNING_THRESHOLD:
        log.warning("Detected %d gaps longer than %d minutes", gaps, GAP_MINUTES)

    return NormalizedSeries(
        observations=tuple(ordered),
        window=window,
        note=note,
        gap_count=gaps,
    )


def count_gaps(
    observations: Sequence[UsageObservation], *, gap_minutes: int = GAP_MINUTES
) -> int:
    limit = timedelta(minutes=gap_minutes)
    return sum(
        1
        for previous, current in zip(observations, observations[1:])
        if current.timestamp - previous.timestamp > limit
    )


def parse_usage_cell(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        usage = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(usage) or usage <= MIN_USAGE_KWH:
        return None
    return usage


def parse_timestamp_cell(value: object) -> datetime | None:
    """Parse a serial date, a ``datetime`` cell or a ``YYYY-MM-DD HH:MM`` string."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, (int, float)):
        return serial_to_datetime(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return datetime.strptime(text, TIMESTAMP_FORMAT)
        except ValueError:
            pass
        # CSV exports carry serial dates as text.
        try:
            return serial_to_datetime(float(text))
        except ValueError:
            return None
    return None


def serial_to_datetime(serial: float) -> datetime | None:
    """Shift a spreadsheet serial day number onto the calendar.

    The result is the wall-clock reading of the serial; no timezone is
    applied. Fractions are rounded to the nearest minute.
    """

    if not math.isfinite(serial):
        return None
    try:
        shifted = SERIAL_EPOCH + timedelta(days=serial)
    except OverflowError:
        return None
    rounded = shifted + timedelta(seconds=30)
    return rounded.replace(second=0, microsecond=0)


def _find_column(row: Row, needle: str) -> int:
    for index, cell in enumerate(row):
        if cell is None or cell == "":
            continue
        if needle in str(cell).lower():
            return index
    return -1


def _days_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 86400
