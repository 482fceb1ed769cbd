from __future__ import annotations

from typing import Iterable

from .models import PlanRanking, TariffBreakdown


def compare_plans(
    breakdowns: Iterable[TariffBreakdown],
    standard_tariff_id: str,
) -> PlanRanking:
    """Rank tariffs by total cost and compute savings against the standard tariff.

    The sort is stable, so on an exact tie the tariff listed first wins.
    """

    ranked = tuple(sorted(breakdowns, key=lambda item: item.total))
    recommended = ranked[0]
    standard = next(item for item in ranked if item.tariff_id == standard_tariff_id)
    savings = _savings(standard, recommended)
    return PlanRanking(
        recommended_id=recommended.tariff_id,
        standard_id=standard.tariff_id,
        savings=savings,
        ranked=ranked,
    )


def _savings(standard: TariffBreakdown, recommended: TariffBreakdown) -> float:
    if standard.tariff_id == recommended.tariff_id:
        return 0.0
    return standard.total - recommended.total
