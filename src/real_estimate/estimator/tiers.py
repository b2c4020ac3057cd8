"""Tier ladder machinery shared by the condo and home matchers.

A ladder is an ordered list of ``TierStage``s. Stages are evaluated in
order against the same pool; the first stage whose selection reaches its
``min_count`` wins. Later stages never run once an earlier one matches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional, Sequence, Union

from ..models import (
    LEASE,
    SALE,
    Comparable,
    HomeSpecs,
    MatchingParams,
    MatchQuality,
    MatchResult,
    MatchTier,
    PriceAdjustment,
    Transaction,
    UnitSpecs,
)
from ..sqft import extract_exact_sqft
from .adjustments import assign_temperature

logger = logging.getLogger(__name__)

Specs = Union[UnitSpecs, HomeSpecs]
Selector = Callable[[list[Transaction]], list[Comparable]]

CLOSED = "Closed"


@dataclass(frozen=True)
class TierStage:
    """One rung of the ladder: a tier label, its selector and minimum count."""

    tier: MatchTier
    select: Selector
    min_count: int = 1


def run_ladder(stages: Sequence[TierStage], pool: list[Transaction]) -> Optional[MatchResult]:
    """Evaluate stages in order; return the first satisfying result, else None."""
    for stage in stages:
        comparables = stage.select(pool)
        if comparables and len(comparables) >= stage.min_count:
            logger.debug("Tier %s matched %d of %d", stage.tier.value, len(comparables), len(pool))
            return MatchResult(tier=stage.tier, comparables=comparables)
        logger.debug(
            "Tier %s: %d match(es), need %d", stage.tier.value, len(comparables), stage.min_count
        )
    return None


def years_before(reference_date: date, years: int) -> date:
    try:
        return reference_date.replace(year=reference_date.year - years)
    except ValueError:
        # Feb 29 -> Feb 28
        return reference_date.replace(year=reference_date.year - years, day=28)


def is_eligible(
    comp: Transaction,
    transaction_type: str,
    reference_date: date,
    params: MatchingParams,
) -> bool:
    """Closed, priced, recent, and (by price band) really of the requested type."""
    if comp.standard_status != CLOSED or comp.close_price is None or comp.close_date is None:
        return False
    if comp.transaction_type != transaction_type:
        return False
    if comp.close_date < years_before(reference_date, params.recency_years):
        return False
    if transaction_type == SALE and comp.close_price <= params.sale_min_price:
        return False
    if transaction_type == LEASE and comp.close_price >= params.lease_max_price:
        return False
    return True


def eligible_pool(
    pool: list[Transaction],
    transaction_type: str,
    reference_date: date,
    params: MatchingParams,
) -> list[Transaction]:
    """Eligible comparables, most recent close first."""
    eligible = [c for c in pool if is_eligible(c, transaction_type, reference_date, params)]
    return sorted(eligible, key=lambda c: c.close_date, reverse=True)


def make_comparable(
    comp: Transaction,
    tier: MatchTier,
    quality: MatchQuality | None,
    reference_date: date,
    adjustments: list[PriceAdjustment] | None = None,
    adjusted_price: int | None = None,
    match_score: int | None = None,
    mismatch_reason: str | None = None,
) -> Comparable:
    return Comparable(
        transaction=comp,
        match_tier=tier,
        match_quality=quality,
        exact_sqft=extract_exact_sqft(comp.square_foot_source),
        adjustments=tuple(adjustments or ()),
        adjusted_price=adjusted_price,
        match_score=match_score,
        mismatch_reason=mismatch_reason,
        temperature=assign_temperature(comp.close_date, reference_date),
    )


def mismatch_reason(specs: Specs, comp: Transaction) -> str:
    """Human-readable differences between a reference comparable and the subject."""
    reasons: list[str] = []
    if comp.bedrooms != specs.bedrooms:
        reasons.append(f"{comp.bedrooms} bed vs your {specs.bedrooms} bed")
    if comp.bathrooms != specs.bathrooms:
        reasons.append(f"{comp.bathrooms} bath vs your {specs.bathrooms} bath")

    comp_sqft = extract_exact_sqft(comp.square_foot_source)
    if specs.exact_sqft and comp_sqft and abs(comp_sqft - specs.exact_sqft) > 100:
        reasons.append(f"{comp_sqft} sqft vs your {specs.exact_sqft} sqft")
    elif specs.living_area_range and comp.living_area_range != specs.living_area_range:
        reasons.append(
            f"{comp.living_area_range or 'Unknown'} sqft range vs your {specs.living_area_range}"
        )

    if (comp.parking or 0) != specs.parking:
        reasons.append(f"{comp.parking or 0} parking vs your {specs.parking}")
    return " | ".join(reasons) or "Different configuration"


def reference_comparables(
    pool: list[Transaction],
    specs: Specs,
    reference_date: date,
    limit: int,
) -> list[Comparable]:
    """CONTACT tier: the most recent transactions, for reference only (no price)."""
    return [
        make_comparable(
            comp,
            MatchTier.CONTACT,
            None,
            reference_date,
            mismatch_reason=mismatch_reason(specs, comp),
        )
        for comp in pool[:limit]
    ]
