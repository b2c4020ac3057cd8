"""PropTx RESO Web API (OData) connector for closed transactions.

Endpoint: {base_url}Property with $filter / $top / $skip paging.
Auth: bearer token (PROPTX_TOKEN).
"""

from __future__ import annotations

import logging
import os
import time
from datetime import date
from typing import Any

import httpx

from ..models import LEASE, SALE, Transaction
from .base import ConnectorResult, TransactionConnector

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://query.ampre.ca/odata/"

SCOPE_KEYS = ("building_id", "community_id", "municipality_id")

# RESO TransactionType -> sale | lease
TRANSACTION_TYPE_MAP = {
    "For Sale": SALE,
    "Sale": SALE,
    "For Lease": LEASE,
    "Lease": LEASE,
    "For Sub-Lease": LEASE,
}


def _to_int(val: Any) -> int | None:
    if val is None or val == "":
        return None
    try:
        return int(float(val))
    except (TypeError, ValueError):
        return None


def _to_float(val: Any) -> float | None:
    if val is None or val == "":
        return None
    try:
        return float(val)
    except (TypeError, ValueError):
        return None


def _to_date(val: Any) -> date | None:
    if not val:
        return None
    try:
        return date.fromisoformat(str(val)[:10])
    except ValueError:
        return None


def _to_text(val: Any) -> str | None:
    if val is None or val == "":
        return None
    if isinstance(val, list):
        return ", ".join(str(v) for v in val) or None
    return str(val)


class PropTxConnector(TransactionConnector):
    """
    Connector for the PropTx (TRREB) RESO Web API.
    Errors are collected per page; a failed page ends paging for that request.
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        page_size: int = 500,
        max_pages: int = 20,
        timeout: float = 60,
        delay_seconds: float = 0.5,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.token = token or os.environ.get("PROPTX_TOKEN", "")
        base = base_url or os.environ.get("PROPTX_RESO_API_URL") or DEFAULT_BASE_URL
        self.base_url = base if base.endswith("/") else f"{base}/"
        self.page_size = page_size
        self.max_pages = max_pages
        self.timeout = timeout
        self.delay_seconds = delay_seconds
        self._transport = transport

    @property
    def source_name(self) -> str:
        return "proptx"

    def build_filter(self, since: date, extra_filter: str | None = None) -> str:
        clause = f"StandardStatus eq 'Closed' and CloseDate ge {since.isoformat()}"
        if extra_filter:
            clause = f"{clause} and ({extra_filter})"
        return clause

    def fetch_closed(
        self,
        since: date,
        extra_filter: str | None = None,
        **scope: str,
    ) -> ConnectorResult:
        """Fetch closed transactions page by page."""
        if not self.token:
            return ConnectorResult(
                transactions=[],
                raw_payloads=[],
                source=self.source_name,
                errors=["PROPTX_TOKEN not set. Set env var or pass token."],
            )
        unknown = set(scope) - set(SCOPE_KEYS)
        if unknown:
            raise ValueError(f"Unknown scope key(s): {', '.join(sorted(unknown))}")

        odata_filter = self.build_filter(since, extra_filter)
        headers = {"Authorization": f"Bearer {self.token}", "Accept": "application/json"}
        transactions: list[Transaction] = []
        raw: list[dict] = []
        errors: list[str] = []

        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            for page in range(self.max_pages):
                if page > 0 and self.delay_seconds:
                    time.sleep(self.delay_seconds)
                params = {
                    "$filter": odata_filter,
                    "$top": self.page_size,
                    "$skip": page * self.page_size,
                }
                try:
                    resp = client.get(f"{self.base_url}Property", params=params, headers=headers)
                except httpx.HTTPError as e:
                    errors.append(f"page {page + 1}: {e!s}")
                    break
                if resp.status_code != 200:
                    errors.append(f"page {page + 1}: HTTP {resp.status_code}")
                    break

                try:
                    items, page_txns = self._normalize_response(resp.json(), scope)
                except ValueError as e:
                    errors.append(f"page {page + 1}: {e!s}")
                    break
                raw.extend(items)
                transactions.extend(page_txns)
                logger.debug("PropTx page %d: %d item(s)", page + 1, len(items))
                if len(items) < self.page_size:
                    break

        logger.info("PropTx: %d transaction(s), %d error(s)", len(transactions), len(errors))
        return ConnectorResult(
            transactions=transactions,
            raw_payloads=raw,
            source=self.source_name,
            errors=errors,
        )

    def _normalize_response(self, data: Any, scope: dict[str, str]) -> tuple[list[dict], list[Transaction]]:
        """Normalize an OData page (``{"value": [...]}``) into transactions."""
        items = data.get("value", []) if isinstance(data, dict) else []
        if not isinstance(items, list):
            items = []
        raw: list[dict] = []
        transactions: list[Transaction] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            raw.append(item)
            txn = self._item_to_transaction(item, scope)
            if txn is not None:
                transactions.append(txn)
        return raw, transactions

    def _item_to_transaction(self, item: dict[str, Any], scope: dict[str, str]) -> Transaction | None:
        """Map RESO field names onto a Transaction; rows without a key or known type are skipped."""
        key = item.get("ListingKey")
        transaction_type = TRANSACTION_TYPE_MAP.get(str(item.get("TransactionType") or "").strip())
        if not key or transaction_type is None:
            return None
        return Transaction(
            listing_key=str(key),
            transaction_type=transaction_type,
            standard_status=str(item.get("StandardStatus") or ""),
            close_price=_to_int(item.get("ClosePrice")),
            close_date=_to_date(item.get("CloseDate")),
            bedrooms=_to_int(item.get("BedroomsTotal")) or 0,
            bathrooms=_to_int(item.get("BathroomsTotalInteger")) or 0,
            list_price=_to_int(item.get("ListPrice")),
            living_area_range=_to_text(item.get("LivingAreaRange")),
            square_foot_source=_to_text(item.get("SquareFootSource")),
            parking=_to_int(item.get("ParkingTotal")) or 0,
            locker=_to_text(item.get("Locker")),
            days_on_market=_to_int(item.get("DaysOnMarket")) or 0,
            association_fee=_to_float(item.get("AssociationFee")),
            tax_annual_amount=_to_float(item.get("TaxAnnualAmount")),
            unit_number=_to_text(item.get("UnitNumber")),
            property_subtype=_to_text(item.get("PropertySubType")),
            lot_width=_to_float(item.get("LotWidth")),
            lot_depth=_to_float(item.get("LotDepth")),
            garage_type=_to_text(item.get("GarageType")),
            basement=_to_text(item.get("Basement")),
            approximate_age=_to_text(item.get("ApproximateAge")),
            **{k: scope.get(k) for k in SCOPE_KEYS},
        )
