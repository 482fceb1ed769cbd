from datetime import datetime, timedelta

import pytest

from rate_backtest.models import UsageObservation
from rate_backtest.tariffs import read_rate_schedule


@pytest.fixture
def schedule():
    return read_rate_schedule()


@pytest.fixture
def hourly():
    """Factory for evenly spaced hourly observations."""

    def build(start: datetime, hours: int, usage_kwh: float = 1.0):
        return [
            UsageObservation(timestamp=start + timedelta(hours=offset), usage_kwh=usage_kwh)
            for offset in range(hours)
        ]

    return build


@pytest.fixture
def usage_rows():
    """Factory for raw spreadsheet rows with a disclaimer block and a header."""

    def build(observations, *, preamble=("Usage export", "Values are estimates")):
        rows = [[line] for line in preamble]
        rows.append(["Meter", "Usage Hour", "Usage kWh"])
        for item in observations:
            rows.append(["M-1", item.timestamp.strftime("%Y-%m-%d %H:%M"), item.usage_kwh])
        return rows

    return build
