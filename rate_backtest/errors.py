from __future__ import annotations


class AnalysisError(Exception):
    """Raised when an uploaded usage file cannot be analysed at all."""


class HeaderNotFoundError(AnalysisError):
    def __init__(self, search_rows: int) -> None:
        super().__init__(
            f'Could not find "Hour" and "kWh" columns in the first {search_rows} rows.'
        )
        self.search_rows = search_rows


class NoValidRecordsError(AnalysisError):
    def __init__(self) -> None:
        super().__init__("No valid records found (all zero or invalid).")


class InsufficientDataError(AnalysisError):
    def __init__(self, days: float, minimum_days: int) -> None:
        super().__init__(
            f"Insufficient data: {days:.1f} days found. At least {minimum_days} days "
            "are required for an accurate recommendation."
        )
        self.days = days
        self.minimum_days = minimum_days


class RateScheduleError(ValueError):
    """Raised when a rate schedule file is malformed."""
