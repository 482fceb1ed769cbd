from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

from .errors import RateScheduleError
from .models import RateSchedule, TariffDefinition
from .periods import PERIODS

log = logging.getLogger(__name__)

SCHEDULE_DIR = Path(__file__).parent / "schedules"
DEFAULT_SCHEDULE_PATH = SCHEDULE_DIR / "2025-01.yaml"

TIERED_SEASONAL = "tiered_seasonal"
ENERGY_STRUCTURES = (TIERED_SEASONAL, *PERIODS)

MONTHLY_DAYS = "monthly_days"
TOTAL_DAYS = "total_days"
FIXED_CHARGE_BASES = (MONTHLY_DAYS, TOTAL_DAYS)


def read_rate_schedule(path: str | Path | None = None) -> RateSchedule:
    """Read a published rate schedule from a YAML file."""

    schedule_path = Path(path) if path else DEFAULT_SCHEDULE_PATH
    try:
        with schedule_path.open(encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except (OSError, yaml.YAMLError) as exc:
        raise RateScheduleError(f"Cannot read rate schedule {schedule_path}: {exc}") from exc
    if not isinstance(data, Mapping):
        raise RateScheduleError(f"{schedule_path} does not contain a rate schedule.")
    schedule = read_rate_schedule_from_mapping(data)
    log.debug(
        "Loaded rate schedule %s effective %s with %d tariffs",
        schedule_path.name,
        schedule.effective_date.isoformat(),
        len(schedule.tariffs),
    )
    return schedule


def read_rate_schedule_from_mapping(data: Mapping[str, Any]) -> RateSchedule:
    try:
        fuel_rider = data["fuel_rider"]
        tariffs = tuple(_read_tariff(item) for item in data["tariffs"])
        schedule = RateSchedule(
            effective_date=_ensure_date(data["effective_date"]),
            summer_months=frozenset(int(month) for month in data["summer_months"]),
            fuel_rider_summer=float(fuel_rider["summer"]),
            fuel_rider_winter=float(fuel_rider["winter"]),
            tax_multiplier=float(data["tax_multiplier"]),
            standard_tariff_id=str(data["standard_tariff"]),
            tariffs=tariffs,
        )
    except RateScheduleError:
        raise
    except KeyError as exc:
        raise RateScheduleError(f"Rate schedule is missing {exc.args[0]!r}.") from exc
    except (TypeError, ValueError) as exc:
        raise RateScheduleError(f"Rate schedule has an invalid value: {exc}") from exc

    if not schedule.tariffs:
        raise RateScheduleError("Rate schedule defines no tariffs.")
    ids = [tariff.id for tariff in schedule.tariffs]
    if len(set(ids)) != len(ids):
        raise RateScheduleError("Tariff ids must be unique.")
    if schedule.get(schedule.standard_tariff_id) is None:
        raise RateScheduleError(
            f"Standard tariff {schedule.standard_tariff_id!r} is not defined."
        )
    return schedule


def _read_tariff(item: Mapping[str, Any]) -> TariffDefinition:
    tariff_id = str(item["id"])
    structure = item["energy_structure"]
    if structure not in ENERGY_STRUCTURES:
        raise RateScheduleError(f"{tariff_id}: unknown energy structure {structure!r}.")
    basis = item.get("fixed_charge_basis", TOTAL_DAYS)
    if basis not in FIXED_CHARGE_BASES:
        raise RateScheduleError(f"{tariff_id}: unknown fixed charge basis {basis!r}.")

    demand = item.get("demand_rate_per_kw")
    tariff = TariffDefinition(
        id=tariff_id,
        display_name=str(item.get("name", tariff_id)),
        daily_fixed_charge=float(item["daily_fixed_charge"]),
        fixed_charge_basis=basis,
        energy_structure=structure,
        period_rates=MappingProxyType(
            {str(period): float(rate) for period, rate in (item.get("rates") or {}).items()}
        ),
        tier_thresholds_kwh=tuple(float(value) for value in item.get("tier_thresholds_kwh", ())),
        summer_tier_rates=tuple(float(value) for value in item.get("summer_tier_rates", ())),
        winter_rate=float(item.get("winter_rate", 0.0)),
        demand_rate_per_kw=float(demand) if demand is not None else None,
    )

    if structure == TIERED_SEASONAL:
        if len(tariff.summer_tier_rates) != len(tariff.tier_thresholds_kwh) + 1:
            raise RateScheduleError(
                f"{tariff_id}: expected {len(tariff.tier_thresholds_kwh) + 1} summer tier rates."
            )
        if list(tariff.tier_thresholds_kwh) != sorted(tariff.tier_thresholds_kwh):
            raise RateScheduleError(f"{tariff_id}: tier thresholds must be ascending.")
    else:
        missing = set(PERIODS[structure]) - set(tariff.period_rates)
        if missing:
            raise RateScheduleError(
                f"{tariff_id}: missing rates for {', '.join(sorted(missing))}."
            )
        unknown = set(tariff.period_rates) - set(PERIODS[structure])
        if unknown:
            raise RateScheduleError(
                f"{tariff_id}: unknown periods {', '.join(sorted(unknown))} for {structure}."
            )
    return tariff


def _ensure_date(value: object) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise TypeError(f"Unsupported date type: {type(value)!r}")
