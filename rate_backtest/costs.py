from __future__ import annotations

from types import MappingProxyType
from typing import Dict, List, Optional, Sequence, Tuple

from .models import (
    MonthBucket,
    MonthlyCharge,
    RateSchedule,
    TariffBreakdown,
    TariffDefinition,
    UsageAggregates,
    charge_subtotal,
)
from .tariffs import MONTHLY_DAYS, TIERED_SEASONAL


def calculate_tariff_costs(
    aggregates: UsageAggregates,
    schedule: RateSchedule,
) -> List[TariffBreakdown]:
    """Price the aggregated usage under every tariff of the schedule, in schedule order."""

    return [calculate_tariff_cost(tariff, aggregates, schedule) for tariff in schedule.tariffs]


def calculate_tariff_cost(
    tariff: TariffDefinition,
    aggregates: UsageAggregates,
    schedule: RateSchedule,
) -> TariffBreakdown:
    monthly = [_month_line(tariff, bucket, schedule) for bucket in aggregates.months]

    if tariff.fixed_charge_basis == MONTHLY_DAYS:
        fixed = sum(line.fixed_charge for line in monthly)
    else:
        fixed = tariff.daily_fixed_charge * aggregates.billing_days

    if tariff.energy_structure == TIERED_SEASONAL:
        energy_by_period = _tier_charges(tariff, aggregates.months, schedule)
        energy = sum(line.energy_charge for line in monthly)
    else:
        usage = aggregates.period_totals[tariff.energy_structure]
        energy_by_period = {
            period: usage[period] * rate for period, rate in tariff.period_rates.items()
        }
        energy = sum(energy_by_period.values())

    demand: Optional[float] = None
    if tariff.has_demand_charge:
        demand = sum(line.demand_charge for line in monthly)

    fuel_rider = aggregates.fuel_rider_total
    subtotal = charge_subtotal(fixed, energy, demand, fuel_rider)
    total = subtotal * schedule.tax_multiplier

    return TariffBreakdown(
        tariff_id=tariff.id,
        display_name=tariff.display_name,
        fixed_charge=fixed,
        energy_charge=energy,
        demand_charge=demand,
        fuel_rider_charge=fuel_rider,
        tax_charge=total - subtotal,
        total=total,
        energy_by_period=MappingProxyType(energy_by_period),
        monthly=tuple(monthly),
    )


def split_tiers(usage_kwh: float, thresholds: Sequence[float]) -> Tuple[float, ...]:
    """Split monthly usage over cumulative tier thresholds."""

    parts = []
    lower = 0.0
    for upper in thresholds:
        parts.append(max(0.0, min(usage_kwh, upper) - lower))
        lower = upper
    parts.append(max(0.0, usage_kwh - lower))
    return tuple(parts)


def _month_line(
    tariff: TariffDefinition,
    bucket: MonthBucket,
    schedule: RateSchedule,
) -> MonthlyCharge:
    fixed = None
    energy = None
    tiers: Tuple[float, ...] = ()
    peak = None
    demand = None

    if tariff.fixed_charge_basis == MONTHLY_DAYS:
        fixed = tariff.daily_fixed_charge * bucket.active_day_count
    if tariff.energy_structure == TIERED_SEASONAL:
        if schedule.is_summer(bucket.month):
            tiers = split_tiers(bucket.total_usage_kwh, tariff.tier_thresholds_kwh)
            energy = sum(kwh * rate for kwh, rate in zip(tiers, tariff.summer_tier_rates))
        else:
            energy = bucket.total_usage_kwh * tariff.winter_rate
    if tariff.has_demand_charge:
        # Largest hourly reading stands in for the month's demand in kW.
        peak = bucket.peak_interval_kwh
        demand = peak * tariff.demand_rate_per_kw

    return MonthlyCharge(
        year=bucket.year,
        month=bucket.month,
        usage_kwh=bucket.total_usage_kwh,
        billing_days=bucket.active_day_count,
        fixed_charge=fixed,
        energy_charge=energy,
        tier_usage_kwh=tiers,
        peak_interval_kwh=peak,
        demand_charge=demand,
    )


def _tier_charges(
    tariff: TariffDefinition,
    months: Sequence[MonthBucket],
    schedule: RateSchedule,
) -> Dict[str, float]:
    charges = {f"tier_{index}": 0.0 for index in range(1, len(tariff.summer_tier_rates) + 1)}
    charges["winter"] = 0.0
    for bucket in months:
        if schedule.is_summer(bucket.month):
            tiers = split_tiers(bucket.total_usage_kwh, tariff.tier_thresholds_kwh)
            for index, (kwh, rate) in enumerate(zip(tiers, tariff.summer_tier_rates), start=1):
                charges[f"tier_{index}"] += kwh * rate
        else:
            charges["winter"] += bucket.total_usage_kwh * tariff.winter_rate
    return charges
