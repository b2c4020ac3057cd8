"""Comparable matching for freehold homes with a community -> municipality cascade."""

from __future__ import annotations

import logging
from datetime import date

from ..config import get_home_adjustment_values
from ..models import (
    SALE,
    AdjustmentValues,
    HomeAdjustmentValues,
    HomeSpecs,
    MatchingParams,
    MatchResult,
    MatchTier,
    PriceAdjustment,
    Transaction,
)
from .adjustments import calculate_adjustments, similarity_score
from .matcher import ComparableMatcher
from .tiers import eligible_pool

logger = logging.getLogger(__name__)

SUBTYPE_GROUPS: tuple[frozenset[str], ...] = (
    frozenset({"Detached"}),
    frozenset({"Semi-Detached", "Att/Row/Townhouse", "Link"}),
    frozenset({"Duplex", "Triplex", "Fourplex", "Multiplex"}),
)

AGE_BRACKETS: tuple[str, ...] = ("New", "0-5", "6-15", "16-30", "31-50", "51-99", "100+")

HOME_RECENCY_BONUS: tuple[tuple[int, int], ...] = ((3, 15), (6, 10), (12, 5))

# (max relative lot-area difference, points)
LOT_AREA_BANDS: tuple[tuple[float, int], ...] = ((0.10, 20), (0.20, 10), (0.30, 5))

# Ordered lowest to highest value
BASEMENT_LEVELS: tuple[str, ...] = ("None", "Unfinished", "Partially Finished", "Finished", "Apartment")

GARAGE_CLASSES: tuple[str, ...] = ("None", "Carport", "Detached", "Attached")

# Lot differences at or below these are not priced
FRONTAGE_MIN_DIFF_FT = 3
DEPTH_MIN_DIFF_FT = 15


def compatible_subtypes(subtype: str | None) -> frozenset[str]:
    """Subtypes comparable to ``subtype``; an unknown subtype matches only itself."""
    if not subtype:
        return frozenset()
    for group in SUBTYPE_GROUPS:
        if subtype in group:
            return group
    return frozenset({subtype})


def age_bracket_index(age: str | None) -> int | None:
    if not age:
        return None
    try:
        return AGE_BRACKETS.index(age.strip())
    except ValueError:
        return None


def lot_score(subject_area: float | None, comp_area: float | None) -> int:
    if not subject_area or not comp_area:
        return 0
    diff = abs(comp_area - subject_area) / subject_area
    for max_diff, points in LOT_AREA_BANDS:
        if diff <= max_diff:
            return points
    return -10


def age_score(subject_age: str | None, comp_age: str | None) -> int:
    a, b = age_bracket_index(subject_age), age_bracket_index(comp_age)
    if a is None or b is None:
        return 0
    gap = abs(a - b)
    if gap == 0:
        return 15
    if gap == 1:
        return 8
    if gap >= 3:
        return -10
    return 0


def garage_score(subject_garage: str | None, comp_garage: str | None) -> int:
    if subject_garage and comp_garage and subject_garage.strip().lower() == comp_garage.strip().lower():
        return 10
    return 0


def basement_level(basement: str | None) -> str | None:
    """Map a free-text basement description onto ``BASEMENT_LEVELS``; None when unknown."""
    if not basement or not basement.strip():
        return None
    text = basement.strip().lower()
    if "apartment" in text:
        return "Apartment"
    if "part" in text:
        return "Partially Finished"
    if "unfin" in text:
        return "Unfinished"
    if "fin" in text:
        return "Finished"
    if text in ("none", "no") or "crawl" in text or "slab" in text:
        return "None"
    if "full" in text or "walk" in text:
        return "Unfinished"
    return None


def basement_score(subject_basement: str | None, comp_basement: str | None) -> int:
    a, b = basement_level(subject_basement), basement_level(comp_basement)
    if a is None or b is None:
        return 0
    gap = abs(BASEMENT_LEVELS.index(a) - BASEMENT_LEVELS.index(b))
    if gap == 0:
        return 10
    if gap == 1:
        return 5
    return 0


def garage_class(garage: str | None) -> str | None:
    """Normalize a garage type to one of ``GARAGE_CLASSES``; None when unknown."""
    if not garage or not garage.strip():
        return None
    text = garage.strip().lower()
    if text in ("none", "no"):
        return "None"
    if "carport" in text:
        return "Carport"
    if "detached" in text:
        return "Detached"
    if "attached" in text or "built" in text:
        return "Attached"
    return None


def depth_score(subject_depth: float | None, comp_depth: float | None) -> int:
    if not subject_depth or not comp_depth:
        return 0
    diff = abs(comp_depth - subject_depth) / subject_depth
    if diff <= 0.10:
        return 10
    if diff <= 0.25:
        return 5
    return -5


def tax_score(subject_tax: float | None, comp_tax: float | None) -> int:
    if not subject_tax or not comp_tax:
        return 0
    diff = abs(comp_tax - subject_tax) / subject_tax
    if diff <= 0.10:
        return 10
    if diff <= 0.25:
        return 5
    return 0


def home_adjustments(
    specs: HomeSpecs,
    comp: Transaction,
    values: HomeAdjustmentValues,
) -> list[PriceAdjustment]:
    """
    Lot, basement and garage adjustments normalizing a freehold comparable.
    Same sign convention as the parking/locker/bathroom adjustments; features
    unknown on either side are not priced.
    """
    adjustments: list[PriceAdjustment] = []

    frontage_diff = (specs.lot_width or 0) - (comp.lot_width or 0)
    if specs.lot_width and comp.lot_width and abs(frontage_diff) > FRONTAGE_MIN_DIFF_FT:
        amount = round(frontage_diff * values.frontage_per_ft)
        if amount:
            adjustments.append(
                PriceAdjustment(
                    type="frontage",
                    difference=round(frontage_diff),
                    amount=amount,
                    reason=f"Your lot is {abs(frontage_diff):.0f}ft {'wider' if frontage_diff > 0 else 'narrower'}",
                )
            )

    depth_diff = (specs.lot_depth or 0) - (comp.lot_depth or 0)
    if specs.lot_depth and comp.lot_depth and abs(depth_diff) > DEPTH_MIN_DIFF_FT:
        amount = round(depth_diff * values.lot_depth_per_ft)
        if amount:
            adjustments.append(
                PriceAdjustment(
                    type="lot_depth",
                    difference=round(depth_diff),
                    amount=amount,
                    reason=f"Your lot is {abs(depth_diff):.0f}ft {'deeper' if depth_diff > 0 else 'shallower'}",
                )
            )

    ours, theirs = basement_level(specs.basement_type), basement_level(comp.basement)
    if ours and theirs:
        amount = round(values.basement.get(ours, 0) - values.basement.get(theirs, 0))
        if amount:
            adjustments.append(
                PriceAdjustment(
                    type="basement",
                    difference=1 if amount > 0 else -1,
                    amount=amount,
                    reason=f"Basement: yours ({ours}) vs comparable ({theirs})",
                )
            )

    ours, theirs = garage_class(specs.garage_type), garage_class(comp.garage_type)
    if ours and theirs:
        amount = round(values.garage.get(ours, 0) - values.garage.get(theirs, 0))
        if amount:
            adjustments.append(
                PriceAdjustment(
                    type="garage",
                    difference=1 if amount > 0 else -1,
                    amount=amount,
                    reason=f"Garage: yours ({ours}) vs comparable ({theirs})",
                )
            )

    return adjustments


class HomeComparableMatcher(ComparableMatcher):
    """
    Condo ladder applied to freehold homes over two geographic pools.
    BINGO uses a relative sqft band; ranking adds lot, basement, garage, age,
    tax and subtype. ADJUSTED comparables also carry lot, basement and garage
    adjustments.
    """

    def __init__(
        self,
        transaction_type: str = SALE,
        reference_date: date | None = None,
        params: MatchingParams | None = None,
        home_values: HomeAdjustmentValues | None = None,
    ) -> None:
        super().__init__(transaction_type, reference_date, params)
        self.home_values = home_values or get_home_adjustment_values({}, transaction_type)

    def find(
        self,
        specs: HomeSpecs,
        values: AdjustmentValues,
        pool: list[Transaction],
        municipality_pool: list[Transaction] | None = None,
    ) -> MatchResult:
        """Match within the community pool (``pool``), then the municipality pool."""
        community = self.narrow(pool, specs)
        result = self.match_pool(specs, values, community, self.params.home_community_min)
        if result is not None:
            return self._finish(specs, result, "community")

        municipality = self.narrow(municipality_pool or [], specs)
        result = self.match_pool(specs, values, municipality)
        if result is not None:
            return self._finish(specs, result, "municipality")

        if municipality:
            return self._finish(specs, self.contact(specs, municipality), "municipality")
        if community:
            return self._finish(specs, self.contact(specs, community), "community")
        logger.info("No eligible %s homes for community %s", self.transaction_type, specs.community_id)
        return MatchResult(tier=MatchTier.CONTACT, comparables=[])

    def narrow(self, pool: list[Transaction], specs: HomeSpecs) -> list[Transaction]:
        """Eligible transactions of a compatible subtype, most recent first."""
        subtypes = compatible_subtypes(specs.property_subtype)
        candidates = eligible_pool(pool, self.transaction_type, self.reference_date, self.params)
        if not subtypes:
            return candidates
        return [c for c in candidates if c.property_subtype in subtypes]

    def sqft_matches(self, subject_sqft: int, comp_sqft: int) -> bool:
        return abs(comp_sqft - subject_sqft) <= subject_sqft * self.params.home_sqft_tolerance_pct

    def score(self, specs: HomeSpecs, comp: Transaction) -> int:
        score = similarity_score(specs, comp, self.reference_date, HOME_RECENCY_BONUS)
        score += lot_score(specs.lot_area, comp.lot_area)
        score += garage_score(specs.garage_type, comp.garage_type)
        score += basement_score(specs.basement_type, comp.basement)
        score += depth_score(specs.lot_depth, comp.lot_depth)
        score += tax_score(specs.tax_annual_amount, comp.tax_annual_amount)
        score += age_score(specs.approximate_age, comp.approximate_age)
        if specs.property_subtype and comp.property_subtype == specs.property_subtype:
            score += 10
        return score

    def adjustments_for(
        self,
        specs: HomeSpecs,
        comp: Transaction,
        values: AdjustmentValues,
    ) -> tuple[list[PriceAdjustment], int]:
        adjustments, _ = calculate_adjustments(specs, comp, values)
        adjustments += home_adjustments(specs, comp, self.home_values)
        return adjustments, (comp.close_price or 0) + sum(a.amount for a in adjustments)

    def _finish(self, specs: HomeSpecs, result: MatchResult, geo_level: str) -> MatchResult:
        result.geo_level = geo_level
        logger.info(
            "Community %s %s: tier %s at %s level with %d comparable(s)",
            specs.community_id,
            self.transaction_type,
            result.tier.value,
            geo_level,
            len(result.comparables),
        )
        return result
