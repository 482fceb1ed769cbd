from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Mapping, Optional, Tuple

MonthKey = Tuple[int, int]


@dataclass(frozen=True)
class UsageObservation:
    """Usage for one metering interval, in local wall-clock time."""

    timestamp: datetime
    usage_kwh: float


@dataclass(frozen=True)
class AnalysisWindow:
    """Span of observations that is actually billed."""

    start: datetime
    end: datetime
    total_days: float


@dataclass(frozen=True)
class NormalizedSeries:
    observations: Tuple[UsageObservation, ...]
    window: AnalysisWindow
    note: str
    gap_count: int = 0


@dataclass(frozen=True)
class MonthBucket:
    """Usage summary for one calendar month."""

    year: int
    month: int
    total_usage_kwh: float
    active_day_count: int
    peak_interval_kwh: float

    @property
    def key(self) -> MonthKey:
        return (self.year, self.month)


@dataclass(frozen=True)
class UsageAggregates:
    """Everything the costing engine needs from one observation series."""

    months: Tuple[MonthBucket, ...]
    period_totals: Mapping[str, Mapping[str, float]]
    fuel_rider_total: float
    billing_days: int
    total_usage_kwh: float


@dataclass(frozen=True)
class TariffDefinition:
    """One published rate plan.

    ``energy_structure`` is ``tiered_seasonal``, ``two_period`` or
    ``three_period``. Tiered plans use ``tier_thresholds_kwh`` with one
    more entry in ``summer_tier_rates`` than thresholds and bill the rest
    of the year at ``winter_rate``. Time-of-use plans use ``period_rates``
    keyed by period name.
    """

    id: str
    display_name: str
    daily_fixed_charge: float
    fixed_charge_basis: str
    energy_structure: str
    period_rates: Mapping[str, float] = field(default_factory=dict)
    tier_thresholds_kwh: Tuple[float, ...] = ()
    summer_tier_rates: Tuple[float, ...] = ()
    winter_rate: float = 0.0
    demand_rate_per_kw: Optional[float] = None

    @property
    def has_demand_charge(self) -> bool:
        return self.demand_rate_per_kw is not None


@dataclass(frozen=True)
class RateSchedule:
    """Published rate constants, effective as of ``effective_date``."""

    effective_date: date
    summer_months: frozenset
    fuel_rider_summer: float
    fuel_rider_winter: float
    tax_multiplier: float
    standard_tariff_id: str
    tariffs: Tuple[TariffDefinition, ...]

    def is_summer(self, month: int) -> bool:
        return month in self.summer_months

    def fuel_rider_rate(self, month: int) -> float:
        if self.is_summer(month):
            return self.fuel_rider_summer
        return self.fuel_rider_winter

    def get(self, tariff_id: str) -> TariffDefinition | None:
        for tariff in self.tariffs:
            if tariff.id == tariff_id:
                return tariff
        return None


@dataclass(frozen=True)
class MonthlyCharge:
    """Charges computed for a single billing month of one tariff."""

    year: int
    month: int
    usage_kwh: float
    billing_days: int
    fixed_charge: Optional[float] = None
    energy_charge: Optional[float] = None
    tier_usage_kwh: Tuple[float, ...] = ()
    peak_interval_kwh: Optional[float] = None
    demand_charge: Optional[float] = None


@dataclass(frozen=True)
class TariffBreakdown:
    """Bill for one tariff; ``tax_charge`` is the residual of the total."""

    tariff_id: str
    display_name: str
    fixed_charge: float
    energy_charge: float
    demand_charge: Optional[float]
    fuel_rider_charge: float
    tax_charge: float
    total: float
    energy_by_period: Mapping[str, float] = field(default_factory=dict)
    monthly: Tuple[MonthlyCharge, ...] = ()

    @property
    def subtotal(self) -> float:
        return charge_subtotal(
            self.fixed_charge,
            self.energy_charge,
            self.demand_charge,
            self.fuel_rider_charge,
        )


@dataclass(frozen=True)
class PlanRanking:
    recommended_id: str
    standard_id: str
    savings: float
    ranked: Tuple[TariffBreakdown, ...]

    def savings_vs_standard(self, breakdown: TariffBreakdown) -> float:
        standard = next(item for item in self.ranked if item.tariff_id == self.standard_id)
        return standard.total - breakdown.total


@dataclass(frozen=True)
class AnalysisResult:
    series: NormalizedSeries
    aggregates: UsageAggregates
    breakdowns: Tuple[TariffBreakdown, ...]
    ranking: PlanRanking
    schedule: RateSchedule


def charge_subtotal(
    fixed: float, energy: float, demand: Optional[float], fuel_rider: float
) -> float:
    return fixed + energy + (demand or 0.0) + fuel_rider
