"""Estimate orchestration: resolve adjustments, fetch pools, match, reconcile."""

from __future__ import annotations

import logging
from datetime import date

from ..config import get_home_adjustment_values, get_matching_params, load_config
from ..errors import EstimatorError
from ..models import (
    LEASE,
    SALE,
    AdjustmentValues,
    EstimateResult,
    HomeSpecs,
    MarketSpeed,
    MatchingParams,
    MatchResult,
    UnitSpecs,
)
from .home_matcher import HomeComparableMatcher
from .matcher import ComparableMatcher
from .resolver import AdjustmentResolver
from .statistical import estimate
from .tiers import years_before

logger = logging.getLogger(__name__)

REFERENCE_ONLY_MESSAGE = (
    "Your unit has unique characteristics that require professional analysis for accurate pricing."
)
NO_DATA_MESSAGE = "Not enough data for automated estimate"


def no_estimate(match: MatchResult, transaction_type: str) -> EstimateResult:
    """Result for a request that cannot be priced; prompts agent follow-up."""
    if match.comparables:
        message = REFERENCE_ONLY_MESSAGE
        speed = MarketSpeed(0, "Moderate", "Contact agent for market insights.")
    else:
        message = NO_DATA_MESSAGE
        speed = MarketSpeed(0, "Moderate", "Not enough data to determine market speed")
    return EstimateResult(
        match_tier=match.tier,
        transaction_type=transaction_type,
        estimated_price=None,
        price_range=None,
        confidence=None,
        confidence_message=message,
        market_speed=speed,
        comparables=list(match.comparables),
    )


class EstimatorEngine:
    """
    Runs one estimate request end to end against a read-only store.
    Condos are scoped to a building; homes to a community, then municipality.
    """

    def __init__(
        self,
        storage,
        config: dict | None = None,
        reference_date: date | None = None,
        params: MatchingParams | None = None,
    ) -> None:
        cfg = config or load_config()
        self._config = cfg
        self.storage = storage
        self.reference_date = reference_date or date.today()
        self.params = params or get_matching_params(cfg)
        self.resolver = AdjustmentResolver(storage, cfg)

    def estimate_condo(self, specs: UnitSpecs, transaction_type: str = SALE) -> EstimateResult:
        """Estimate a condo unit's sale price or monthly rent."""
        values = self.resolver.resolve(specs.building_id, transaction_type)
        pool = self._pool("building_id", specs.building_id, transaction_type)
        matcher = ComparableMatcher(transaction_type, self.reference_date, self.params)
        match = matcher.find(specs, values, pool)
        return self._finish(match, specs, values, transaction_type, "building")

    def estimate_home(self, specs: HomeSpecs, transaction_type: str = SALE) -> EstimateResult:
        """Estimate a freehold home's sale price or monthly rent."""
        values = self.resolver.resolve_community(specs.community_id, transaction_type)
        limit = self.params.home_pool_limit
        community_pool = self._pool("community_id", specs.community_id, transaction_type, limit)

        municipality_id = specs.municipality_id
        if municipality_id is None:
            municipality_id = self.storage.community_hierarchy(specs.community_id).get("municipality_id")
        municipality_pool = []
        if municipality_id is not None:
            municipality_pool = self._pool("municipality_id", municipality_id, transaction_type, limit)

        home_values = get_home_adjustment_values(self._config, transaction_type, municipality_id)
        matcher = HomeComparableMatcher(transaction_type, self.reference_date, self.params, home_values)
        match = matcher.find(specs, values, community_pool, municipality_pool)
        return self._finish(match, specs, values, transaction_type, match.geo_level or "community")

    def _pool(self, scope_column: str, scope_id: str, transaction_type: str, limit: int | None = None):
        return self.storage.fetch_pool(
            scope_column,
            scope_id,
            transaction_type,
            since=years_before(self.reference_date, self.params.recency_years),
            min_price=self.params.sale_min_price if transaction_type == SALE else None,
            max_price=self.params.lease_max_price if transaction_type == LEASE else None,
            limit=limit,
        )

    def _finish(
        self,
        match: MatchResult,
        specs: UnitSpecs | HomeSpecs,
        values: AdjustmentValues,
        transaction_type: str,
        location: str,
    ) -> EstimateResult:
        try:
            result = estimate(match.tier, match.comparables, transaction_type, location)
        except EstimatorError as e:
            logger.info("No estimate (%s): %s", match.tier.value, e)
            result = no_estimate(match, transaction_type)

        result.geo_level = match.geo_level
        result.adjustment_values = values
        if transaction_type == LEASE:
            result.parking_cost = specs.parking * values.parking_per_space if specs.parking > 0 else 0.0
            result.locker_cost = values.locker if specs.has_locker else 0.0
        if result.show_price:
            logger.info(
                "Estimate %s $%s (%s confidence, %d comparables)",
                match.tier.value,
                f"{result.estimated_price:,}",
                result.confidence.value,
                len(result.comparables),
            )
        return result
