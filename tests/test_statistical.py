"""Tests for the statistical estimator."""

from datetime import date

import pytest

from real_estimate.errors import EstimatorError, NoComparablesError, ReferenceOnlyError
from real_estimate.estimator.statistical import (
    estimate,
    market_speed,
    weighted_prices,
)
from real_estimate.models import (
    Comparable,
    Confidence,
    MatchQuality,
    MatchTier,
    PriceAdjustment,
    Transaction,
)


def comp(
    price: int,
    quality: MatchQuality | None = MatchQuality.GOOD,
    tier: MatchTier = MatchTier.FAIR,
    adjusted: int | None = None,
    adjustments: tuple = (),
    dom: int = 20,
    closed: date = date(2025, 5, 1),
) -> Comparable:
    txn = Transaction(
        listing_key=f"K{price}-{closed.isoformat()}",
        transaction_type="sale",
        standard_status="Closed",
        close_price=price,
        close_date=closed,
        bedrooms=2,
        bathrooms=2,
        days_on_market=dom,
    )
    return Comparable(
        transaction=txn,
        match_tier=tier,
        match_quality=quality,
        adjustments=adjustments,
        adjusted_price=adjusted,
    )


class TestEstimate:
    def test_empty_list_is_no_data(self) -> None:
        with pytest.raises(NoComparablesError):
            estimate(MatchTier.FAIR, [])

    def test_contact_tier_is_never_priced(self) -> None:
        with pytest.raises(ReferenceOnlyError):
            estimate(MatchTier.CONTACT, [comp(600000, quality=None, tier=MatchTier.CONTACT)])

    def test_errors_share_a_base(self) -> None:
        assert issubclass(NoComparablesError, EstimatorError)
        assert issubclass(ReferenceOnlyError, EstimatorError)

    def test_four_perfect_matches(self) -> None:
        comps = [
            comp(p, MatchQuality.PERFECT, MatchTier.BINGO, adjusted=p)
            for p in (640000, 650000, 655000, 700000)
        ]
        result = estimate(MatchTier.BINGO, comps)
        # weighted list = each price x3; median of 12 values = mean of 650000 and 655000
        assert result.estimated_price == 652500
        assert result.confidence == Confidence.HIGH
        assert result.price_range.low == round(652500 * (1 - 0.05))
        assert result.price_range.high == round(652500 * (1 + 0.05))
        assert result.show_price

    def test_weighting_pulls_median_toward_quality(self) -> None:
        comps = [
            comp(500000, MatchQuality.EXCELLENT, MatchTier.ADJUSTED, adjusted=500000),
            comp(600000, MatchQuality.FAIR, MatchTier.ADJUSTED, adjusted=600000),
            comp(700000, MatchQuality.FAIR, MatchTier.ADJUSTED, adjusted=700000),
        ]
        assert weighted_prices(comps) == [500000, 500000, 600000, 700000]
        assert estimate(MatchTier.ADJUSTED, comps).estimated_price == 550000

    def test_adjusted_price_preferred_over_close(self) -> None:
        single = comp(600000, MatchQuality.GOOD, MatchTier.ADJUSTED, adjusted=640000)
        assert estimate(MatchTier.ADJUSTED, [single]).estimated_price == 640000

    def test_close_price_fallback(self) -> None:
        assert estimate(MatchTier.FAIR, [comp(610000)]).estimated_price == 610000

    def test_point_within_bounds_and_range(self) -> None:
        comps = [
            comp(510000, MatchQuality.FAIR),
            comp(733000, MatchQuality.PERFECT),
            comp(645500, MatchQuality.EXCELLENT),
            comp(601000, MatchQuality.GOOD),
            comp(999000, MatchQuality.FAIR),
        ]
        result = estimate(MatchTier.ADJUSTED, comps)
        prices = weighted_prices(comps)
        assert min(prices) <= result.estimated_price <= max(prices)
        assert result.price_range.low <= result.estimated_price <= result.price_range.high

    @pytest.mark.parametrize(
        "qualities,fraction",
        [
            ([MatchQuality.PERFECT] * 3, 0.05),
            ([MatchQuality.EXCELLENT] * 3 + [MatchQuality.PERFECT] * 2, 0.08),
            ([MatchQuality.GOOD] * 3, 0.10),
        ],
    )
    def test_range_fraction(self, qualities, fraction) -> None:
        comps = [comp(600000, q) for q in qualities]
        result = estimate(MatchTier.ADJUSTED, comps)
        assert result.price_range.low == round(600000 * (1 - fraction))
        assert result.price_range.high == round(600000 * (1 + fraction))

    @pytest.mark.parametrize(
        "qualities,expected",
        [
            ([MatchQuality.PERFECT] * 3, Confidence.HIGH),
            ([MatchQuality.FAIR] * 8, Confidence.HIGH),
            ([MatchQuality.EXCELLENT] * 2, Confidence.MEDIUM),
            ([MatchQuality.FAIR] * 4, Confidence.MEDIUM),
            ([MatchQuality.PERFECT] * 2 + [MatchQuality.GOOD], Confidence.LOW),
            ([MatchQuality.FAIR], Confidence.LOW),
        ],
    )
    def test_confidence(self, qualities, expected) -> None:
        comps = [comp(600000, q) for q in qualities]
        assert estimate(MatchTier.ADJUSTED, comps).confidence == expected

    def test_adjustment_summary(self) -> None:
        parking = PriceAdjustment("parking", 1, 50000, "x")
        locker = PriceAdjustment("locker", -1, -10000, "y")
        comps = [
            comp(600000, MatchQuality.PERFECT),
            comp(600000, MatchQuality.GOOD, adjusted=650000, adjustments=(parking,)),
            comp(600000, MatchQuality.FAIR, adjusted=640000, adjustments=(parking, locker)),
        ]
        summary = estimate(MatchTier.ADJUSTED, comps).adjustment_summary
        assert summary.perfect_match_count == 1
        assert summary.adjusted_comparable_count == 2
        # (50000 + 60000) / 2
        assert summary.avg_adjustment_magnitude == 55000

    def test_summary_without_adjustments(self) -> None:
        summary = estimate(MatchTier.FAIR, [comp(600000)]).adjustment_summary
        assert summary.adjusted_comparable_count == 0
        assert summary.avg_adjustment_magnitude == 0

    def test_most_recent_first_and_current_market_price(self) -> None:
        older = comp(600000, closed=date(2024, 9, 1))
        newer = comp(620000, closed=date(2025, 4, 1))
        result = estimate(MatchTier.FAIR, [older, newer])
        assert result.comparables == [newer, older]
        assert result.current_market_price == 620000

    def test_deterministic(self) -> None:
        comps = [comp(p) for p in (600000, 615000, 630000)]
        assert estimate(MatchTier.FAIR, comps) == estimate(MatchTier.FAIR, list(comps))

    def test_confidence_message_mentions_count(self) -> None:
        result = estimate(MatchTier.FAIR, [comp(600000), comp(610000)])
        assert result.confidence_message == "Limited data. Estimate based on 2 same-size units in this building."


class TestMarketSpeed:
    @pytest.mark.parametrize(
        "doms,status",
        [((10, 20, 29), "Fast"), ((30, 40), "Moderate"), ((50, 58), "Moderate"), ((60, 90), "Slow")],
    )
    def test_status(self, doms, status) -> None:
        speed = market_speed([comp(600000, dom=d) for d in doms], "sale", "building")
        assert speed.status == status

    def test_sale_and_lease_wording(self) -> None:
        fast = [comp(600000, dom=5)]
        slow = [comp(600000, dom=90)]
        assert market_speed(fast, "sale", "building").message == (
            "Units are selling quickly in this building. Strong seller's market."
        )
        assert market_speed(fast, "lease", "building").message == (
            "Units are leasing quickly in this building. Strong landlord's market."
        )
        assert "Tenant's market" in market_speed(slow, "lease", "building").message
        assert "Buyer's market" in market_speed(slow, "sale", "building").message

    def test_average_is_rounded(self) -> None:
        speed = market_speed([comp(600000, dom=d) for d in (10, 11)], "sale", "community")
        assert speed.avg_days_on_market == 10
