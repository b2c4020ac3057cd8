"""Tests for freehold home matching and the geographic cascade."""

import pytest

from real_estimate.config import get_home_adjustment_values
from real_estimate.estimator.home_matcher import (
    HomeComparableMatcher,
    age_score,
    basement_level,
    basement_score,
    compatible_subtypes,
    depth_score,
    garage_class,
    garage_score,
    home_adjustments,
    lot_score,
    tax_score,
)
from real_estimate.models import MatchQuality, MatchTier


@pytest.fixture
def matcher(reference_date) -> HomeComparableMatcher:
    return HomeComparableMatcher("sale", reference_date)


@pytest.fixture
def make_home(make_txn):
    """Detached 3 bed / 2 bath sale in community c1, municipality m1."""

    def _make(**overrides):
        fields = dict(
            bedrooms=3,
            bathrooms=2,
            parking=2,
            locker=None,
            close_price=1200000,
            living_area_range="1500-2000",
            property_subtype="Detached",
            building_id=None,
            community_id="c1",
            municipality_id="m1",
            lot_width=40,
            lot_depth=110,
            garage_type="Attached",
            approximate_age="16-30",
        )
        fields.update(overrides)
        return make_txn(**fields)

    return _make


class TestGeographicCascade:
    def test_community_with_three_matches(self, matcher, home_specs, sale_values, make_home) -> None:
        pool = [make_home(square_foot_source=s) for s in ("1750", "1800", "1900")]
        result = matcher.find(home_specs, sale_values, pool, [])
        assert result.tier == MatchTier.BINGO
        assert result.geo_level == "community"
        assert len(result.comparables) == 3
        assert all(c.match_quality == MatchQuality.PERFECT for c in result.comparables)

    def test_thin_community_falls_back_to_municipality(self, matcher, home_specs, sale_values, make_home) -> None:
        community = [make_home(square_foot_source="1800"), make_home(square_foot_source="1850")]
        municipality = community + [make_home(community_id="c2", square_foot_source="1700")]
        result = matcher.find(home_specs, sale_values, community, municipality)
        assert result.tier == MatchTier.BINGO
        assert result.geo_level == "municipality"
        assert len(result.comparables) == 3

    def test_community_minimum_applies_to_every_tier(self, matcher, home_specs, sale_values, make_home) -> None:
        # Two adjusted candidates in the community are not enough; one municipality BINGO wins
        community = [make_home(parking=0), make_home(parking=1)]
        municipality = [make_home(community_id="c2", square_foot_source="1820")]
        result = matcher.find(home_specs, sale_values, community, municipality)
        assert result.tier == MatchTier.BINGO
        assert result.geo_level == "municipality"

    def test_contact_from_widest_pool(self, matcher, home_specs, sale_values, make_home) -> None:
        community = [make_home(bedrooms=2)]
        municipality = [make_home(bedrooms=4, days_ago=d) for d in (10, 20)] + community
        result = matcher.find(home_specs, sale_values, community, municipality)
        assert result.tier == MatchTier.CONTACT
        assert result.geo_level == "municipality"
        assert len(result.comparables) == 3
        assert all(c.mismatch_reason for c in result.comparables)

    def test_contact_from_community_without_municipality(self, matcher, home_specs, sale_values, make_home) -> None:
        result = matcher.find(home_specs, sale_values, [make_home(bedrooms=5)])
        assert result.tier == MatchTier.CONTACT
        assert result.geo_level == "community"
        assert len(result.comparables) == 1

    def test_nothing_anywhere(self, matcher, home_specs, sale_values) -> None:
        result = matcher.find(home_specs, sale_values, [], [])
        assert result.tier == MatchTier.CONTACT
        assert result.comparables == []
        assert result.geo_level is None


class TestSubtypeGroups:
    def test_groups(self) -> None:
        assert compatible_subtypes("Detached") == {"Detached"}
        assert compatible_subtypes("Link") == {"Semi-Detached", "Att/Row/Townhouse", "Link"}
        assert "Fourplex" in compatible_subtypes("Duplex")
        assert compatible_subtypes("Cottage") == {"Cottage"}
        assert compatible_subtypes(None) == frozenset()

    def test_incompatible_subtypes_never_compared(self, matcher, home_specs, sale_values, make_home) -> None:
        pool = [make_home(property_subtype="Semi-Detached", square_foot_source="1800") for _ in range(4)]
        result = matcher.find(home_specs, sale_values, pool, pool)
        assert result.tier == MatchTier.CONTACT
        assert result.comparables == []

    def test_compatible_subtypes_pooled(self, matcher, home_specs, sale_values, make_home) -> None:
        home_specs.property_subtype = "Semi-Detached"
        pool = [
            make_home(property_subtype="Semi-Detached", square_foot_source="1800"),
            make_home(property_subtype="Att/Row/Townhouse", square_foot_source="1790"),
            make_home(property_subtype="Link", square_foot_source="1810"),
            make_home(property_subtype="Detached", square_foot_source="1800"),
        ]
        result = matcher.find(home_specs, sale_values, pool)
        assert result.tier == MatchTier.BINGO
        assert {c.transaction.property_subtype for c in result.comparables} == {
            "Semi-Detached",
            "Att/Row/Townhouse",
            "Link",
        }


class TestRelativeSqftBand:
    def test_ten_percent_band(self, matcher, home_specs, sale_values, make_home) -> None:
        inside = [make_home(square_foot_source=s) for s in ("1620", "1980", "1900")]
        outside = make_home(square_foot_source="1981")
        result = matcher.find(home_specs, sale_values, inside + [outside])
        assert result.tier == MatchTier.BINGO
        assert {c.exact_sqft for c in result.comparables} == {1620, 1980, 1900}


class TestHomeScoring:
    def test_lot_score_bands(self) -> None:
        assert lot_score(4000, 4200) == 20
        assert lot_score(4000, 4700) == 10
        assert lot_score(4000, 2900) == 5
        assert lot_score(4000, 6000) == -10
        assert lot_score(None, 4000) == 0

    def test_age_score(self) -> None:
        assert age_score("16-30", "16-30") == 15
        assert age_score("16-30", "31-50") == 8
        assert age_score("16-30", "0-5") == 0
        assert age_score("New", "31-50") == -10
        assert age_score("16-30", "Unknown") == 0

    def test_garage_score(self) -> None:
        assert garage_score("Attached", "attached") == 10
        assert garage_score("Attached", "Detached") == 0
        assert garage_score(None, "Attached") == 0

    def test_basement_levels(self) -> None:
        assert basement_level("Finished, Walk-Out") == "Finished"
        assert basement_level("Part Fin") == "Partially Finished"
        assert basement_level("Full, Unfinished") == "Unfinished"
        assert basement_level("Apartment") == "Apartment"
        assert basement_level("Crawl Space") == "None"
        assert basement_level("Other") is None
        assert basement_level(None) is None

    def test_basement_score(self) -> None:
        assert basement_score("Finished", "Fin W/O") == 10
        assert basement_score("Finished", "Partially Finished") == 5
        assert basement_score("Finished", "None") == 0
        assert basement_score(None, "Finished") == 0

    def test_depth_and_tax_bands(self) -> None:
        assert depth_score(110, 118) == 10
        assert depth_score(110, 135) == 5
        assert depth_score(110, 150) == -5
        assert depth_score(None, 110) == 0
        assert tax_score(6000, 6500) == 10
        assert tax_score(6000, 7400) == 5
        assert tax_score(6000, 9000) == 0
        assert tax_score(None, 6000) == 0

    def test_garage_classes(self) -> None:
        assert garage_class("Built-In") == "Attached"
        assert garage_class("Detached") == "Detached"
        assert garage_class("Carport") == "Carport"
        assert garage_class("None") == "None"
        assert garage_class("Other") is None

    def test_basement_changes_ranking(self, matcher, home_specs, make_home) -> None:
        home_specs.basement_type = "Finished"
        finished = make_home(basement="Finished, Walk-Out")
        bare = make_home(basement="None")
        assert matcher.score(home_specs, finished) - matcher.score(home_specs, bare) == 10

    def test_tax_proximity_changes_ranking(self, matcher, home_specs, make_home) -> None:
        home_specs.tax_annual_amount = 6000
        close = make_home(tax_annual_amount=6200)
        far = make_home(tax_annual_amount=9000)
        assert matcher.score(home_specs, close) - matcher.score(home_specs, far) == 10

    def test_home_score_rewards_physical_similarity(self, matcher, home_specs, make_home) -> None:
        home_specs.exact_sqft = None
        twin = make_home()
        different = make_home(lot_width=25, lot_depth=100, garage_type="Detached", approximate_age="51-99")
        # 100 + bath 20 + range 30 + parking 15 + locker 10 + recency 15
        # + lot 20 + depth 10 + garage 10 + age 15 + subtype 10
        assert matcher.score(home_specs, twin) == 255
        assert matcher.score(home_specs, different) == 200

    def test_adjusted_ranked_by_home_score(self, matcher, home_specs, sale_values, make_home) -> None:
        pool = [
            make_home(parking=1, lot_width=20, lot_depth=80, approximate_age="100+"),
            make_home(parking=1),
            make_home(parking=1, garage_type=None),
        ]
        result = matcher.find(home_specs, sale_values, pool)
        assert result.tier == MatchTier.ADJUSTED
        assert result.comparables[0].transaction is pool[1]
        assert result.comparables[-1].transaction is pool[0]


class TestHomeAdjustments:
    def test_lot_basement_and_garage_priced(self, matcher, home_specs, make_home) -> None:
        home_specs.basement_type = "Finished"
        comp = make_home(lot_width=30, lot_depth=130, garage_type="Detached", basement="Unfinished")
        by_type = {a.type: a for a in home_adjustments(home_specs, comp, matcher.home_values)}
        assert by_type["frontage"].amount == 150000
        assert by_type["frontage"].reason == "Your lot is 10ft wider"
        assert by_type["lot_depth"].amount == -20000
        assert by_type["lot_depth"].reason == "Your lot is 20ft shallower"
        assert by_type["basement"].amount == 40000
        assert by_type["garage"].amount == 15000

    def test_small_or_unknown_differences_not_priced(self, matcher, home_specs, make_home) -> None:
        comp = make_home(lot_width=42, lot_depth=100, garage_type=None, basement="Finished")
        assert home_adjustments(home_specs, comp, matcher.home_values) == []

    def test_adjusted_price_includes_home_features(self, matcher, home_specs, sale_values, make_home) -> None:
        home_specs.basement_type = "Finished"
        comp = make_home(parking=1, lot_width=30, lot_depth=130, garage_type="Detached", basement="Unfinished")
        result = matcher.find(home_specs, sale_values, [], [comp])
        assert result.tier == MatchTier.ADJUSTED
        (match,) = result.comparables
        # parking +50,000, frontage +150,000, depth -20,000, basement +40,000, garage +15,000
        assert match.adjusted_price == 1200000 + 235000
        assert match.match_quality == MatchQuality.FAIR

    def test_frontage_value_by_municipality(self, reference_date, home_specs, make_home) -> None:
        cfg = {"home_adjustments": {"sale": {"frontage_per_ft": {"m1": 40000}}}}
        values = get_home_adjustment_values(cfg, "sale", "m1")
        assert values.frontage_per_ft == 40000
        assert get_home_adjustment_values(cfg, "sale", "m9").frontage_per_ft == 15000
        priced = HomeComparableMatcher("sale", reference_date, home_values=values)
        (frontage,) = home_adjustments(home_specs, make_home(lot_width=35), priced.home_values)
        assert frontage.amount == 200000

    def test_lease_prices_basement_not_lot(self, reference_date, home_specs, make_home) -> None:
        home_specs.basement_type = "Finished"
        lease = HomeComparableMatcher("lease", reference_date)
        comp = make_home(transaction_type="lease", lot_width=30, basement="Unfinished", garage_type="Carport")
        by_type = {a.type: a.amount for a in home_adjustments(home_specs, comp, lease.home_values)}
        assert by_type == {"basement": 200, "garage": 100}
