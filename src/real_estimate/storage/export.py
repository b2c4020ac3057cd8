"""Export estimate results to CSV and JSON."""

from __future__ import annotations

import csv
import json
from datetime import date, datetime
from pathlib import Path
from typing import Any

from ..models import EstimateResult


def _serialize(obj: Any) -> Any:
    """JSON serializer for dates and other objects."""
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def export_csv(result: EstimateResult, path: Path | str) -> None:
    """Export the comparables behind an estimate to CSV, one row each."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fieldnames = [
        "rank",
        "listing_key",
        "unit_number",
        "close_date",
        "close_price",
        "adjusted_price",
        "bedrooms",
        "bathrooms",
        "living_area_range",
        "exact_sqft",
        "parking",
        "locker",
        "days_on_market",
        "match_tier",
        "match_quality",
        "temperature",
        "adjustments",
        "mismatch_reason",
    ]

    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
        writer.writeheader()
        for i, comp in enumerate(result.comparables, 1):
            row = comp.to_dict()
            row["rank"] = i
            row["adjustments"] = " | ".join(
                f"{a['reason']} ({a['amount']:+,})" for a in row["adjustments"]
            )
            writer.writerow(row)


def export_json(result: EstimateResult, path: Path | str) -> None:
    """Export the full estimate to JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "generated_at": datetime.utcnow().isoformat(),
        "estimate": result.to_dict(),
    }

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=_serialize)
