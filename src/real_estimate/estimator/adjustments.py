"""Price adjustments, match quality and similarity scoring for comparables."""

from __future__ import annotations

from datetime import date
from typing import Sequence, Union

from ..models import (
    AdjustmentValues,
    HomeSpecs,
    MatchQuality,
    PriceAdjustment,
    Temperature,
    Transaction,
    UnitSpecs,
)
from ..sqft import extract_exact_sqft, is_adjacent_range

Specs = Union[UnitSpecs, HomeSpecs]

_DAYS_PER_MONTH = 30

# (max months, temperature), checked in order
TEMPERATURE_MONTHS: tuple[tuple[int, Temperature], ...] = (
    (3, Temperature.HOT),
    (6, Temperature.WARM),
    (12, Temperature.COLD),
)

# (closed within months, points) for ranking
RECENCY_BONUS: tuple[tuple[int, int], ...] = ((6, 10), (12, 5))


def months_ago(close_date: date | None, reference_date: date) -> float:
    """Approximate months between a close date and the reference date (30-day months)."""
    if close_date is None:
        return float("inf")
    return (reference_date - close_date).days / _DAYS_PER_MONTH


def assign_temperature(close_date: date | None, reference_date: date) -> Temperature:
    age = months_ago(close_date, reference_date)
    for max_months, temperature in TEMPERATURE_MONTHS:
        if age <= max_months:
            return temperature
    return Temperature.FROZEN


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def calculate_adjustments(
    specs: Specs,
    comp: Transaction,
    values: AdjustmentValues,
) -> tuple[list[PriceAdjustment], int]:
    """Itemized adjustments normalizing ``comp`` to the subject, and the adjusted price.

    Sign convention: positive when the subject has more of a feature than the
    comparable (the comparable's price is raised toward the subject).
    Dimensions with no difference produce no entry.
    """
    adjustments: list[PriceAdjustment] = []

    parking_diff = specs.parking - (comp.parking or 0)
    if parking_diff != 0:
        n = abs(parking_diff)
        adjustments.append(
            PriceAdjustment(
                type="parking",
                difference=parking_diff,
                amount=round(parking_diff * values.parking_per_space),
                reason=(
                    f"Your unit has {_plural(n, 'more parking space')}"
                    if parking_diff > 0
                    else f"Comparable has {_plural(n, 'more parking space')}"
                ),
            )
        )

    if specs.has_locker != comp.has_locker:
        sign = 1 if specs.has_locker else -1
        adjustments.append(
            PriceAdjustment(
                type="locker",
                difference=sign,
                amount=round(sign * values.locker),
                reason="Your unit includes a locker" if sign > 0 else "Comparable includes a locker",
            )
        )

    bath_diff = specs.bathrooms - (comp.bathrooms or 0)
    if bath_diff != 0:
        n = abs(bath_diff)
        adjustments.append(
            PriceAdjustment(
                type="bathroom",
                difference=bath_diff,
                amount=round(bath_diff * values.bathroom),
                reason=(
                    f"Your unit has {_plural(n, 'more bathroom')}"
                    if bath_diff > 0
                    else f"Comparable has {_plural(n, 'more bathroom')}"
                ),
            )
        )

    adjusted_price = (comp.close_price or 0) + sum(a.amount for a in adjustments)
    return adjustments, adjusted_price


def classify_quality(adjustments: list[PriceAdjustment]) -> MatchQuality:
    """Excellent with no adjustments, Good with one, Fair otherwise."""
    if not adjustments:
        return MatchQuality.EXCELLENT
    if len(adjustments) == 1:
        return MatchQuality.GOOD
    return MatchQuality.FAIR


def _sqft_score(specs: Specs, comp: Transaction) -> int:
    comp_sqft = extract_exact_sqft(comp.square_foot_source)
    if specs.exact_sqft and comp_sqft:
        diff = abs(specs.exact_sqft - comp_sqft)
        if diff <= 50:
            return 30
        if diff <= 100:
            return 20
        if diff <= 200:
            return 10
        return -10
    if comp.living_area_range and comp.living_area_range == specs.living_area_range:
        return 30
    if is_adjacent_range(comp.living_area_range, specs.living_area_range):
        return 15
    return -10


def similarity_score(
    specs: Specs,
    comp: Transaction,
    reference_date: date,
    recency_bonus: Sequence[tuple[int, int]] = RECENCY_BONUS,
) -> int:
    """
    Additive similarity score used to rank ADJUSTED-tier candidates.
    Base 100; bathrooms, size, parking, locker and recency add or subtract.
    """
    score = 100

    bath_diff = abs((comp.bathrooms or 0) - specs.bathrooms)
    if bath_diff == 0:
        score += 20
    elif bath_diff == 1:
        score += 10
    else:
        score -= 20

    score += _sqft_score(specs, comp)

    parking_diff = abs((comp.parking or 0) - specs.parking)
    if parking_diff == 0:
        score += 15
    else:
        score -= parking_diff * 5

    if comp.has_locker == specs.has_locker:
        score += 10

    score += recency_score(comp.close_date, reference_date, recency_bonus)
    return score


def recency_score(
    close_date: date | None,
    reference_date: date,
    bonus: Sequence[tuple[int, int]] = RECENCY_BONUS,
) -> int:
    """Bonus for the first ``(months, points)`` band the close date falls under."""
    age = months_ago(close_date, reference_date)
    for max_months, points in bonus:
        if age < max_months:
            return points
    return 0
