"""Statistical reconciliation of comparables into a point estimate, range and confidence."""

from __future__ import annotations

import statistics
from datetime import date

from ..errors import NoComparablesError, ReferenceOnlyError
from ..models import (
    LEASE,
    AdjustmentSummary,
    Comparable,
    Confidence,
    EstimateResult,
    MarketSpeed,
    MatchQuality,
    MatchTier,
    PriceRange,
)

QUALITY_WEIGHTS: dict[MatchQuality, int] = {
    MatchQuality.PERFECT: 3,
    MatchQuality.EXCELLENT: 2,
}

FAST_DOM = 30
MODERATE_DOM = 60


def weighted_prices(comparables: list[Comparable]) -> list[int]:
    """Each comparable's price repeated by its quality weight (Perfect x3, Excellent x2)."""
    prices: list[int] = []
    for comp in comparables:
        prices.extend([comp.price] * QUALITY_WEIGHTS.get(comp.match_quality, 1))
    return prices


def _count(comparables: list[Comparable], quality: MatchQuality) -> int:
    return sum(1 for c in comparables if c.match_quality == quality)


def range_fraction(comparables: list[Comparable]) -> float:
    if _count(comparables, MatchQuality.PERFECT) >= 3:
        return 0.05
    if _count(comparables, MatchQuality.EXCELLENT) >= 3:
        return 0.08
    return 0.10


def price_range(estimate: int, fraction: float) -> PriceRange:
    return PriceRange(low=round(estimate * (1 - fraction)), high=round(estimate * (1 + fraction)))


def confidence_level(comparables: list[Comparable]) -> Confidence:
    """High, then Medium, then Low; checked in that order."""
    total = len(comparables)
    if _count(comparables, MatchQuality.PERFECT) >= 3 or total >= 8:
        return Confidence.HIGH
    if _count(comparables, MatchQuality.EXCELLENT) >= 2 or total >= 4:
        return Confidence.MEDIUM
    return Confidence.LOW


def _units(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def confidence_message(tier: MatchTier, confidence: Confidence, count: int, location: str) -> str:
    if tier == MatchTier.BINGO:
        basis = f"{_units(count, 'identical unit')} in this {location}"
    elif tier == MatchTier.FAIR:
        basis = f"{_units(count, 'same-size unit')} in this {location}"
    else:
        basis = f"{_units(count, 'similar unit')} with adjustments"
    if confidence == Confidence.HIGH:
        return f"Strong estimate based on {basis}."
    if confidence == Confidence.MEDIUM:
        return f"Good estimate based on {basis}."
    return f"Limited data. Estimate based on {basis}."


def market_speed(comparables: list[Comparable], transaction_type: str, location: str) -> MarketSpeed:
    """Mean days on market classified Fast (<30), Moderate (<60) or Slow."""
    avg = round(statistics.mean(c.days_on_market or 0 for c in comparables)) if comparables else 0
    moving = "leasing" if transaction_type == LEASE else "selling"
    strong = "landlord's" if transaction_type == LEASE else "seller's"
    weak = "tenant's" if transaction_type == LEASE else "buyer's"
    if avg < FAST_DOM:
        return MarketSpeed(avg, "Fast", f"Units are {moving} quickly in this {location}. Strong {strong} market.")
    if avg < MODERATE_DOM:
        return MarketSpeed(avg, "Moderate", f"Normal market conditions. Units {moving} at a steady pace.")
    return MarketSpeed(
        avg,
        "Slow",
        f"Units taking longer to {'lease' if transaction_type == LEASE else 'sell'}. "
        f"{weak.capitalize()} market with more negotiating room.",
    )


def adjustment_summary(comparables: list[Comparable]) -> AdjustmentSummary:
    adjusted = [c for c in comparables if c.adjustments]
    avg = round(statistics.mean(c.adjustment_magnitude for c in adjusted)) if adjusted else 0
    return AdjustmentSummary(
        perfect_match_count=_count(comparables, MatchQuality.PERFECT),
        adjusted_comparable_count=len(adjusted),
        avg_adjustment_magnitude=avg,
    )


def _most_recent_first(comparables: list[Comparable]) -> list[Comparable]:
    return sorted(comparables, key=lambda c: c.close_date or date.min, reverse=True)


def estimate(
    tier: MatchTier,
    comparables: list[Comparable],
    transaction_type: str = "sale",
    location: str = "building",
) -> EstimateResult:
    """
    Reconcile priced comparables into an EstimateResult.

    The point estimate is the median of the quality-weighted price list.
    Raises NoComparablesError for an empty list and ReferenceOnlyError for
    CONTACT-tier comparables, which never carry a price.
    """
    if not comparables:
        raise NoComparablesError("No comparables to estimate from")
    if tier == MatchTier.CONTACT:
        raise ReferenceOnlyError("CONTACT comparables are reference only and cannot be priced")

    ordered = _most_recent_first(comparables)
    point = round(statistics.median(weighted_prices(ordered)))
    confidence = confidence_level(ordered)

    return EstimateResult(
        match_tier=tier,
        transaction_type=transaction_type,
        estimated_price=point,
        price_range=price_range(point, range_fraction(ordered)),
        confidence=confidence,
        confidence_message=confidence_message(tier, confidence, len(ordered), location),
        market_speed=market_speed(ordered, transaction_type, location),
        comparables=ordered,
        adjustment_summary=adjustment_summary(ordered),
        current_market_price=ordered[0].price,
    )
