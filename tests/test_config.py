"""Tests for config loading and typed extraction."""

from pathlib import Path

import pytest

from real_estimate.config import (
    get_adjustment_defaults,
    get_home_adjustment_values,
    get_matching_params,
    get_proptx_settings,
    get_storage_path,
    load_config,
)
from real_estimate.models import MatchingParams


def test_load_repo_config(config) -> None:
    assert config["matching"]["sqft_tolerance"] == 50
    assert config["adjustments"]["defaults"]["lease"]["parking_per_space"] == 200


def test_missing_config_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_empty_config_file(tmp_path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(path) == {}


class TestAdjustmentDefaults:
    def test_hardcoded_when_config_silent(self) -> None:
        sale = get_adjustment_defaults({}, "sale")
        assert (sale.parking_per_space, sale.locker, sale.bathroom) == (50000, 10000, 50000)
        lease = get_adjustment_defaults({}, "lease")
        assert (lease.parking_per_space, lease.locker, lease.bathroom) == (200, 50, 300)
        assert lease.sources["locker"] == "Hardcoded"

    def test_config_overrides_per_field(self) -> None:
        cfg = {"adjustments": {"defaults": {"sale": {"parking_per_space": 65000}}}}
        sale = get_adjustment_defaults(cfg, "sale")
        assert sale.parking_per_space == 65000
        assert sale.locker == 10000

    def test_unknown_type(self) -> None:
        with pytest.raises(ValueError):
            get_adjustment_defaults({}, "rent")


def test_matching_params_defaults() -> None:
    assert get_matching_params({}) == MatchingParams()


def test_matching_params_from_yaml(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("matching:\n  sqft_tolerance: 75\n  adjusted_limit: 5\n")
    params = get_matching_params(load_config(path))
    assert params.sqft_tolerance == 75
    assert params.adjusted_limit == 5
    assert params.recency_years == 2


def test_storage_and_feed_settings(config) -> None:
    assert get_storage_path(config) == Path("output/real_estimate.duckdb")
    settings = get_proptx_settings({})
    assert settings["page_size"] == 500
    assert settings["base_url"] is None


class TestHomeAdjustmentValues:
    def test_hardcoded_sale_values(self) -> None:
        values = get_home_adjustment_values({}, "sale")
        assert values.frontage_per_ft == 15000
        assert values.lot_depth_per_ft == 1000
        assert values.basement["Finished"] == 60000
        assert values.garage["Attached"] == 40000

    def test_lease_values_are_monthly(self, config) -> None:
        values = get_home_adjustment_values(config, "lease", "m1")
        assert values.frontage_per_ft == 0
        assert values.basement["Finished"] == 200
        assert values.garage["Carport"] == 50

    def test_partial_override_keeps_other_levels(self) -> None:
        cfg = {"home_adjustments": {"sale": {"basement": {"Apartment": 120000}}}}
        values = get_home_adjustment_values(cfg, "sale")
        assert values.basement["Apartment"] == 120000
        assert values.basement["Unfinished"] == 20000

    def test_unknown_type(self) -> None:
        with pytest.raises(ValueError):
            get_home_adjustment_values({}, "rent")
