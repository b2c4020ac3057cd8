"""Pytest fixtures."""

from datetime import date, timedelta
from itertools import count
from typing import Callable

import pytest

from real_estimate.config import load_config
from real_estimate.models import AdjustmentValues, HomeSpecs, Transaction, UnitSpecs
from real_estimate.storage import Storage

REFERENCE_DATE = date(2025, 6, 15)


@pytest.fixture
def reference_date() -> date:
    return REFERENCE_DATE


@pytest.fixture
def make_txn() -> Callable[..., Transaction]:
    """Factory for closed sale transactions in building b1; override any field."""
    keys = count(1)

    def _make(days_ago: int = 30, **overrides) -> Transaction:
        fields = dict(
            listing_key=f"X{next(keys):04d}",
            transaction_type="sale",
            standard_status="Closed",
            close_price=600000,
            close_date=REFERENCE_DATE - timedelta(days=days_ago),
            bedrooms=2,
            bathrooms=2,
            living_area_range="700-799",
            square_foot_source=None,
            parking=1,
            locker="Owned",
            days_on_market=20,
            building_id="b1",
        )
        fields.update(overrides)
        return Transaction(**fields)

    return _make


@pytest.fixture
def unit_specs() -> UnitSpecs:
    """2 bed / 2 bath, 750 sqft, 1 parking, locker."""
    return UnitSpecs(
        bedrooms=2,
        bathrooms=2,
        living_area_range="700-799",
        parking=1,
        has_locker=True,
        building_id="b1",
        exact_sqft=750,
    )


@pytest.fixture
def home_specs() -> HomeSpecs:
    return HomeSpecs(
        bedrooms=3,
        bathrooms=2,
        property_subtype="Detached",
        community_id="c1",
        municipality_id="m1",
        living_area_range="1500-2000",
        exact_sqft=1800,
        parking=2,
        lot_width=40,
        lot_depth=110,
        garage_type="Attached",
        approximate_age="16-30",
    )


@pytest.fixture
def sale_values() -> AdjustmentValues:
    return AdjustmentValues(parking_per_space=50000, locker=10000, bathroom=50000)


@pytest.fixture
def lease_values() -> AdjustmentValues:
    return AdjustmentValues(parking_per_space=200, locker=50, bathroom=300)


@pytest.fixture
def config() -> dict:
    return load_config()


@pytest.fixture
def storage(tmp_path) -> Storage:
    s = Storage(tmp_path / "test.duckdb")
    yield s
    s.close()
