"""Data models for subjects, transactions, comparables and estimates."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


class MatchTier(str, Enum):
    """Precedence level at which a comparable set was found."""

    BINGO = "BINGO"
    FAIR = "FAIR"
    ADJUSTED = "ADJUSTED"
    CONTACT = "CONTACT"


class MatchQuality(str, Enum):
    PERFECT = "Perfect"
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"


class Confidence(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Temperature(str, Enum):
    """Recency bucket of a closed transaction."""

    HOT = "HOT"
    WARM = "WARM"
    COLD = "COLD"
    FROZEN = "FROZEN"


SALE = "sale"
LEASE = "lease"
TRANSACTION_TYPES = (SALE, LEASE)


@dataclass
class MatchingParams:
    """Matching thresholds (from config or overrides)."""

    sqft_tolerance: int = 50
    home_sqft_tolerance_pct: float = 0.10
    fee_tolerance_pct: float = 0.20
    recency_years: int = 2
    sale_min_price: int = 100000
    lease_max_price: int = 15000
    adjusted_limit: int = 10
    contact_limit: int = 5
    home_community_min: int = 3
    home_pool_limit: int = 200


@dataclass
class UnitSpecs:
    """Condo unit being estimated (caller-supplied)."""

    bedrooms: int
    bathrooms: int
    living_area_range: str
    parking: int
    has_locker: bool
    building_id: str
    exact_sqft: int | None = None
    tax_annual_amount: float | None = None
    association_fee: float | None = None


@dataclass
class HomeSpecs:
    """Freehold home being estimated (caller-supplied)."""

    bedrooms: int
    bathrooms: int
    property_subtype: str
    community_id: str
    municipality_id: str | None = None
    living_area_range: str = ""
    exact_sqft: int | None = None
    parking: int = 0
    has_locker: bool = False
    tax_annual_amount: float | None = None
    association_fee: float | None = None
    lot_width: float | None = None
    lot_depth: float | None = None
    garage_type: str | None = None
    basement_type: str | None = None
    approximate_age: str | None = None

    @property
    def lot_area(self) -> float | None:
        if self.lot_width and self.lot_depth:
            return self.lot_width * self.lot_depth
        return None


@dataclass
class Transaction:
    """Closed or active sale/lease record, as read from the transaction store."""

    listing_key: str
    transaction_type: str
    standard_status: str
    close_price: int | None
    close_date: date | None
    bedrooms: int
    bathrooms: int
    list_price: int | None = None
    living_area_range: str | None = None
    square_foot_source: str | None = None
    parking: int = 0
    locker: str | None = None
    days_on_market: int = 0
    association_fee: float | None = None
    tax_annual_amount: float | None = None
    unit_number: str | None = None
    building_id: str | None = None
    community_id: str | None = None
    municipality_id: str | None = None
    property_subtype: str | None = None
    lot_width: float | None = None
    lot_depth: float | None = None
    garage_type: str | None = None
    basement: str | None = None
    approximate_age: str | None = None

    @property
    def has_locker(self) -> bool:
        return self.locker == "Owned"

    @property
    def lot_area(self) -> float | None:
        if self.lot_width and self.lot_depth:
            return self.lot_width * self.lot_depth
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "listing_key": self.listing_key,
            "transaction_type": self.transaction_type,
            "standard_status": self.standard_status,
            "close_price": self.close_price,
            "list_price": self.list_price,
            "close_date": self.close_date.isoformat() if self.close_date else None,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "living_area_range": self.living_area_range,
            "square_foot_source": self.square_foot_source,
            "parking": self.parking,
            "locker": self.locker,
            "days_on_market": self.days_on_market,
            "association_fee": self.association_fee,
            "tax_annual_amount": self.tax_annual_amount,
            "unit_number": self.unit_number,
            "building_id": self.building_id,
            "community_id": self.community_id,
            "municipality_id": self.municipality_id,
            "property_subtype": self.property_subtype,
            "lot_width": self.lot_width,
            "lot_depth": self.lot_depth,
            "garage_type": self.garage_type,
            "basement": self.basement,
            "approximate_age": self.approximate_age,
        }


@dataclass(frozen=True)
class AdjustmentValues:
    """Dollar adjustment amounts resolved once per estimate request."""

    parking_per_space: float
    locker: float
    bathroom: float
    sources: dict[str, str] = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "parking_per_space": self.parking_per_space,
            "locker": self.locker,
            "bathroom": self.bathroom,
            "sources": dict(self.sources),
        }


@dataclass(frozen=True)
class HomeAdjustmentValues:
    """Dollar values for freehold-only features, per transaction type.

    ``frontage_per_ft`` is already resolved for the subject's municipality;
    ``basement`` and ``garage`` map a normalized level or class to its value.
    """

    frontage_per_ft: float = 0.0
    lot_depth_per_ft: float = 0.0
    basement: dict[str, float] = field(default_factory=dict)
    garage: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class PriceAdjustment:
    """One itemized dollar delta applied to a comparable's close price."""

    type: str  # parking | locker | bathroom; homes add frontage | lot_depth | basement | garage
    difference: int
    amount: int
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "difference": self.difference,
            "amount": self.amount,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class Comparable:
    """A matched transaction, normalized to the subject where applicable."""

    transaction: Transaction
    match_tier: MatchTier
    match_quality: MatchQuality | None
    exact_sqft: int | None = None
    adjustments: tuple[PriceAdjustment, ...] = ()
    adjusted_price: int | None = None
    match_score: int | None = None
    mismatch_reason: str | None = None
    temperature: Temperature | None = None

    @property
    def close_price(self) -> int:
        return self.transaction.close_price or 0

    @property
    def close_date(self) -> date | None:
        return self.transaction.close_date

    @property
    def bedrooms(self) -> int:
        return self.transaction.bedrooms

    @property
    def days_on_market(self) -> int:
        return self.transaction.days_on_market

    @property
    def price(self) -> int:
        """Adjusted price, falling back to the raw close price."""
        if self.adjusted_price is not None:
            return self.adjusted_price
        return self.close_price

    @property
    def adjustment_magnitude(self) -> int:
        return sum(abs(a.amount) for a in self.adjustments)

    def to_dict(self) -> dict[str, Any]:
        t = self.transaction
        return {
            "listing_key": t.listing_key,
            "unit_number": t.unit_number,
            "close_price": t.close_price,
            "list_price": t.list_price,
            "close_date": t.close_date.isoformat() if t.close_date else None,
            "bedrooms": t.bedrooms,
            "bathrooms": t.bathrooms,
            "living_area_range": t.living_area_range,
            "exact_sqft": self.exact_sqft,
            "parking": t.parking,
            "locker": t.locker,
            "days_on_market": t.days_on_market,
            "association_fee": t.association_fee,
            "property_subtype": t.property_subtype,
            "match_tier": self.match_tier.value,
            "match_quality": self.match_quality.value if self.match_quality else None,
            "match_score": self.match_score,
            "temperature": self.temperature.value if self.temperature else None,
            "adjustments": [a.to_dict() for a in self.adjustments],
            "adjusted_price": self.adjusted_price,
            "mismatch_reason": self.mismatch_reason,
        }


@dataclass
class MatchResult:
    """Matcher output: the winning tier and its comparable set."""

    tier: MatchTier
    comparables: list[Comparable]
    geo_level: str | None = None

    @property
    def is_priced(self) -> bool:
        return self.tier != MatchTier.CONTACT and bool(self.comparables)


@dataclass(frozen=True)
class PriceRange:
    low: int
    high: int


@dataclass(frozen=True)
class MarketSpeed:
    avg_days_on_market: int
    status: str  # Fast | Moderate | Slow
    message: str


@dataclass(frozen=True)
class AdjustmentSummary:
    perfect_match_count: int
    adjusted_comparable_count: int
    avg_adjustment_magnitude: int


@dataclass
class EstimateResult:
    """Final estimate, or a no-estimate result when show_price is False."""

    match_tier: MatchTier
    transaction_type: str
    estimated_price: int | None
    price_range: PriceRange | None
    confidence: Confidence | None
    confidence_message: str
    market_speed: MarketSpeed
    comparables: list[Comparable]
    adjustment_summary: AdjustmentSummary | None = None
    current_market_price: int | None = None
    geo_level: str | None = None
    adjustment_values: AdjustmentValues | None = None
    parking_cost: float | None = None
    locker_cost: float | None = None

    @property
    def show_price(self) -> bool:
        return self.estimated_price is not None

    def to_dict(self) -> dict[str, Any]:
        summary = self.adjustment_summary
        return {
            "match_tier": self.match_tier.value,
            "transaction_type": self.transaction_type,
            "show_price": self.show_price,
            "estimated_price": self.estimated_price,
            "price_range": (
                {"low": self.price_range.low, "high": self.price_range.high}
                if self.price_range
                else None
            ),
            "confidence": self.confidence.value if self.confidence else None,
            "confidence_message": self.confidence_message,
            "current_market_price": self.current_market_price,
            "market_speed": {
                "avg_days_on_market": self.market_speed.avg_days_on_market,
                "status": self.market_speed.status,
                "message": self.market_speed.message,
            },
            "adjustment_summary": (
                {
                    "perfect_match_count": summary.perfect_match_count,
                    "adjusted_comparable_count": summary.adjusted_comparable_count,
                    "avg_adjustment_magnitude": summary.avg_adjustment_magnitude,
                }
                if summary
                else None
            ),
            "geo_level": self.geo_level,
            "adjustment_values": (
                self.adjustment_values.to_dict() if self.adjustment_values else None
            ),
            "parking_cost": self.parking_cost,
            "locker_cost": self.locker_cost,
            "comparables": [c.to_dict() for c in self.comparables],
        }
