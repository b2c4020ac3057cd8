"""Configuration loader."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .models import LEASE, SALE, AdjustmentValues, HomeAdjustmentValues, MatchingParams

# Used when no override exists at any level of the adjustment hierarchy.
HARDCODED_DEFAULTS: dict[str, dict[str, float]] = {
    SALE: {"parking_per_space": 50000, "locker": 10000, "bathroom": 50000},
    LEASE: {"parking_per_space": 200, "locker": 50, "bathroom": 300},
}

# Freehold-only values; leases carry no lot adjustments.
HOME_HARDCODED_DEFAULTS: dict[str, dict[str, Any]] = {
    SALE: {
        "frontage_per_ft": {"default": 15000},
        "lot_depth_per_ft": 1000,
        "basement": {
            "None": 0,
            "Unfinished": 20000,
            "Partially Finished": 40000,
            "Finished": 60000,
            "Apartment": 90000,
        },
        "garage": {"None": 0, "Carport": 10000, "Detached": 25000, "Attached": 40000},
    },
    LEASE: {
        "frontage_per_ft": {"default": 0},
        "lot_depth_per_ft": 0,
        "basement": {
            "None": 0,
            "Unfinished": 0,
            "Partially Finished": 200,
            "Finished": 200,
            "Apartment": 200,
        },
        "garage": {"None": 0, "Carport": 50, "Detached": 100, "Attached": 150},
    },
}


def load_config(config_path: Path | str | None = None) -> dict[str, Any]:
    """Load config from YAML file."""
    path = Path(config_path) if config_path else Path(__file__).parent.parent.parent / "config.yaml"
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    with open(path) as f:
        return yaml.safe_load(f) or {}


def get_adjustment_defaults(config: dict[str, Any], transaction_type: str) -> AdjustmentValues:
    """Last-resort adjustment values for a transaction type (config, then hardcoded)."""
    if transaction_type not in HARDCODED_DEFAULTS:
        raise ValueError(f"Unknown transaction type: {transaction_type!r}")
    hard = HARDCODED_DEFAULTS[transaction_type]
    defaults = config.get("adjustments", {}).get("defaults", {})
    section = defaults.get(transaction_type, {}) if isinstance(defaults, dict) else {}
    if not isinstance(section, dict):
        section = {}
    return AdjustmentValues(
        parking_per_space=float(section.get("parking_per_space", hard["parking_per_space"])),
        locker=float(section.get("locker", hard["locker"])),
        bathroom=float(section.get("bathroom", hard["bathroom"])),
        sources={"parking": "Hardcoded", "locker": "Hardcoded", "bathroom": "Hardcoded"},
    )


def get_home_adjustment_values(
    config: dict[str, Any],
    transaction_type: str,
    municipality_id: str | None = None,
) -> HomeAdjustmentValues:
    """Freehold adjustment values; frontage per foot is looked up by municipality id, else ``default``."""
    if transaction_type not in HOME_HARDCODED_DEFAULTS:
        raise ValueError(f"Unknown transaction type: {transaction_type!r}")
    hard = HOME_HARDCODED_DEFAULTS[transaction_type]
    section = config.get("home_adjustments", {}).get(transaction_type) or {}

    frontage = {**hard["frontage_per_ft"], **(section.get("frontage_per_ft") or {})}
    per_ft = frontage.get(municipality_id, frontage["default"]) if municipality_id else frontage["default"]
    basement = {**hard["basement"], **(section.get("basement") or {})}
    garage = {**hard["garage"], **(section.get("garage") or {})}
    return HomeAdjustmentValues(
        frontage_per_ft=float(per_ft),
        lot_depth_per_ft=float(section.get("lot_depth_per_ft", hard["lot_depth_per_ft"])),
        basement={k: float(v) for k, v in basement.items()},
        garage={k: float(v) for k, v in garage.items()},
    )


def get_matching_params(config: dict[str, Any]) -> MatchingParams:
    """Extract matching thresholds from config."""
    m = config.get("matching", {})
    return MatchingParams(
        sqft_tolerance=int(m.get("sqft_tolerance", 50)),
        home_sqft_tolerance_pct=float(m.get("home_sqft_tolerance_pct", 0.10)),
        fee_tolerance_pct=float(m.get("fee_tolerance_pct", 0.20)),
        recency_years=int(m.get("recency_years", 2)),
        sale_min_price=int(m.get("sale_min_price", 100000)),
        lease_max_price=int(m.get("lease_max_price", 15000)),
        adjusted_limit=int(m.get("adjusted_limit", 10)),
        contact_limit=int(m.get("contact_limit", 5)),
        home_community_min=int(m.get("home_community_min", 3)),
        home_pool_limit=int(m.get("home_pool_limit", 200)),
    )


def get_storage_path(config: dict[str, Any]) -> Path:
    """DuckDB path from config (default: output/real_estimate.duckdb)."""
    storage = config.get("storage", {})
    return Path(storage.get("db_path", "output/real_estimate.duckdb"))


def get_proptx_settings(config: dict[str, Any]) -> dict[str, Any]:
    """PropTx feed settings; the token itself comes from the environment."""
    ds = config.get("data_source", {})
    return {
        "base_url": ds.get("proptx_base_url"),
        "page_size": int(ds.get("page_size", 500)),
        "max_pages": int(ds.get("max_pages", 20)),
        "timeout": float(ds.get("timeout_seconds", 60)),
        "delay_seconds": float(ds.get("delay_seconds", 0.5)),
    }
