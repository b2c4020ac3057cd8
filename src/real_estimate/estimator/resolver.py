"""Adjustment value resolution over the override hierarchy."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from ..config import get_adjustment_defaults, load_config
from ..models import TRANSACTION_TYPES, AdjustmentValues

logger = logging.getLogger(__name__)

# Strict priority order; the first level holding a value wins, per field.
LEVELS: tuple[str, ...] = (
    "building",
    "community",
    "neighbourhood",
    "municipality",
    "area",
    "generic",
)

# field name -> AdjustmentValues attribute
FIELDS: dict[str, str] = {
    "parking": "parking_per_space",
    "locker": "locker",
    "bathroom": "bathroom",
}

Level = tuple[str, Optional[Mapping[str, Any]]]


def override_columns(field: str, transaction_type: str) -> tuple[str, str]:
    """(manual, calculated) column names for a field, e.g. parking_value_sale / parking_sale_calculated."""
    return f"{field}_value_{transaction_type}", f"{field}_{transaction_type}_calculated"


def _resolve_field(
    levels: Sequence[Level],
    field: str,
    transaction_type: str,
) -> tuple[float, str] | None:
    manual_col, calc_col = override_columns(field, transaction_type)
    for level, row in levels:
        if not row:
            continue
        if row.get(manual_col) is not None:
            return float(row[manual_col]), f"{level.capitalize()} (manual)"
        if row.get(calc_col) is not None:
            return float(row[calc_col]), f"{level.capitalize()} (calculated)"
    return None


def resolve_from_levels(
    levels: Sequence[Level],
    transaction_type: str,
    defaults: AdjustmentValues,
) -> AdjustmentValues:
    """Fold an ordered list of ``(level_name, override_row)`` into AdjustmentValues.

    Each field is resolved independently: the first level whose row has a
    non-null manual value, else a non-null calculated value, supplies it.
    Fields with no value at any level take ``defaults``.
    """
    if transaction_type not in TRANSACTION_TYPES:
        raise ValueError(f"Unknown transaction type: {transaction_type!r}")
    values: dict[str, float] = {}
    sources: dict[str, str] = {}
    for field, attr in FIELDS.items():
        found = _resolve_field(levels, field, transaction_type)
        if found is None:
            values[attr] = getattr(defaults, attr)
            sources[field] = defaults.sources.get(field, "Hardcoded")
        else:
            values[attr], sources[field] = found
    return AdjustmentValues(sources=sources, **values)


class AdjustmentResolver:
    """
    Resolves parking/locker/bathroom adjustment values for a building or area.
    Missing override data is never an error; store read failures propagate.
    """

    def __init__(self, storage, config: dict | None = None) -> None:
        self._storage = storage
        self._config = config if config is not None else load_config()

    def resolve(self, building_id: str, transaction_type: str) -> AdjustmentValues:
        """Resolve values for a condo building (unknown buildings fall through)."""
        hierarchy = self._storage.building_hierarchy(building_id)
        return self.resolve_scope(hierarchy, transaction_type)

    def resolve_community(self, community_id: str, transaction_type: str) -> AdjustmentValues:
        """Resolve values for a freehold subject, starting at community level."""
        hierarchy = self._storage.community_hierarchy(community_id)
        return self.resolve_scope(hierarchy, transaction_type)

    def resolve_scope(self, hierarchy: Mapping[str, Any], transaction_type: str) -> AdjustmentValues:
        defaults = get_adjustment_defaults(self._config, transaction_type)
        levels = self._storage.adjustment_levels(hierarchy)
        values = resolve_from_levels(levels, transaction_type, defaults)
        logger.info(
            "%s adjustments: parking $%s (%s), locker $%s (%s), bathroom $%s (%s)",
            transaction_type,
            f"{values.parking_per_space:,.0f}",
            values.sources["parking"],
            f"{values.locker:,.0f}",
            values.sources["locker"],
            f"{values.bathroom:,.0f}",
            values.sources["bathroom"],
        )
        return values
