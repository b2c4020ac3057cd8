"""Comparable matching for condo sales and rentals within a building."""

from __future__ import annotations

import logging
from datetime import date

from ..models import (
    SALE,
    TRANSACTION_TYPES,
    AdjustmentValues,
    Comparable,
    MatchingParams,
    MatchQuality,
    MatchResult,
    MatchTier,
    PriceAdjustment,
    Transaction,
    UnitSpecs,
)
from ..sqft import extract_exact_sqft
from .adjustments import calculate_adjustments, classify_quality, similarity_score
from .tiers import (
    TierStage,
    eligible_pool,
    make_comparable,
    reference_comparables,
    run_ladder,
)

logger = logging.getLogger(__name__)


def is_fee_match(subject_fee: float | None, comp_fee: float | None, tolerance: float) -> bool:
    """Association fee within ``tolerance`` of the subject's; unknown fees never disqualify."""
    if not subject_fee or comp_fee is None:
        return True
    return abs(subject_fee - comp_fee) / subject_fee <= tolerance


def same_configuration(specs: UnitSpecs, comp: Transaction) -> bool:
    """Bedrooms, bathrooms, parking and locker all equal."""
    return (
        comp.bedrooms == specs.bedrooms
        and comp.bathrooms == specs.bathrooms
        and (comp.parking or 0) == specs.parking
        and comp.has_locker == specs.has_locker
    )


class ComparableMatcher:
    """
    Tiered comparable search for a condo unit: BINGO -> FAIR -> ADJUSTED -> CONTACT.
    The same ladder serves sales and rentals; only sales apply the fee band in FAIR.
    """

    def __init__(
        self,
        transaction_type: str = SALE,
        reference_date: date | None = None,
        params: MatchingParams | None = None,
    ) -> None:
        if transaction_type not in TRANSACTION_TYPES:
            raise ValueError(f"Unknown transaction type: {transaction_type!r}")
        self.transaction_type = transaction_type
        self.reference_date = reference_date or date.today()
        self.params = params or MatchingParams()

    def find(
        self,
        specs: UnitSpecs,
        values: AdjustmentValues,
        pool: list[Transaction],
    ) -> MatchResult:
        """Find comparables for ``specs`` in ``pool``; an empty pool yields CONTACT with no comparables."""
        candidates = eligible_pool(pool, self.transaction_type, self.reference_date, self.params)
        if not candidates:
            logger.info("No eligible %s transactions for building %s", self.transaction_type, specs.building_id)
            return MatchResult(tier=MatchTier.CONTACT, comparables=[])

        result = self.match_pool(specs, values, candidates) or self.contact(specs, candidates)
        logger.info(
            "Building %s %s: tier %s with %d comparable(s)",
            specs.building_id,
            self.transaction_type,
            result.tier.value,
            len(result.comparables),
        )
        return result

    def match_pool(
        self,
        specs: UnitSpecs,
        values: AdjustmentValues,
        candidates: list[Transaction],
        min_count: int = 1,
    ) -> MatchResult | None:
        """Run the priced tiers over eligible candidates; None when none qualifies."""
        return run_ladder(self.stages(specs, values, min_count), candidates)

    def contact(self, specs: UnitSpecs, candidates: list[Transaction]) -> MatchResult:
        return MatchResult(
            tier=MatchTier.CONTACT,
            comparables=reference_comparables(
                candidates, specs, self.reference_date, self.params.contact_limit
            ),
        )

    def stages(
        self,
        specs: UnitSpecs,
        values: AdjustmentValues,
        min_count: int = 1,
    ) -> list[TierStage]:
        """The priced tiers in precedence order."""
        return [
            TierStage(MatchTier.BINGO, lambda pool: self.bingo(pool, specs), min_count),
            TierStage(MatchTier.FAIR, lambda pool: self.fair(pool, specs), min_count),
            TierStage(MatchTier.ADJUSTED, lambda pool: self.adjusted(pool, specs, values), min_count),
        ]

    def sqft_matches(self, subject_sqft: int, comp_sqft: int) -> bool:
        return abs(comp_sqft - subject_sqft) <= self.params.sqft_tolerance

    def score(self, specs: UnitSpecs, comp: Transaction) -> int:
        return similarity_score(specs, comp, self.reference_date)

    def adjustments_for(
        self,
        specs: UnitSpecs,
        comp: Transaction,
        values: AdjustmentValues,
    ) -> tuple[list[PriceAdjustment], int]:
        return calculate_adjustments(specs, comp, values)

    def bingo(self, pool: list[Transaction], specs: UnitSpecs) -> list[Comparable]:
        """Exact sqft (within tolerance) plus identical configuration."""
        if not specs.exact_sqft:
            return []
        matches = []
        for comp in pool:
            comp_sqft = extract_exact_sqft(comp.square_foot_source)
            if comp_sqft is None or not self.sqft_matches(specs.exact_sqft, comp_sqft):
                continue
            if same_configuration(specs, comp):
                matches.append(
                    make_comparable(
                        comp,
                        MatchTier.BINGO,
                        MatchQuality.PERFECT,
                        self.reference_date,
                        adjusted_price=comp.close_price,
                    )
                )
        return matches

    def fair(self, pool: list[Transaction], specs: UnitSpecs) -> list[Comparable]:
        """Same living-area range plus identical configuration (and fee band for sales)."""
        matches = []
        for comp in pool:
            if not specs.living_area_range or comp.living_area_range != specs.living_area_range:
                continue
            if not same_configuration(specs, comp):
                continue
            if self.transaction_type == SALE and not is_fee_match(
                specs.association_fee, comp.association_fee, self.params.fee_tolerance_pct
            ):
                continue
            matches.append(
                make_comparable(
                    comp,
                    MatchTier.FAIR,
                    MatchQuality.GOOD,
                    self.reference_date,
                    adjusted_price=comp.close_price,
                )
            )
        return matches

    def adjusted(
        self,
        pool: list[Transaction],
        specs: UnitSpecs,
        values: AdjustmentValues,
    ) -> list[Comparable]:
        """Same bedrooms; parking/locker/bathroom differences priced in. Top N by similarity."""
        scored = []
        for comp in pool:
            if comp.bedrooms != specs.bedrooms:
                continue
            adjustments, adjusted_price = self.adjustments_for(specs, comp, values)
            score = self.score(specs, comp)
            scored.append(
                make_comparable(
                    comp,
                    MatchTier.ADJUSTED,
                    classify_quality(adjustments),
                    self.reference_date,
                    adjustments=adjustments,
                    adjusted_price=adjusted_price,
                    match_score=score,
                )
            )
        scored.sort(key=lambda c: c.match_score, reverse=True)
        return scored[: self.params.adjusted_limit]
