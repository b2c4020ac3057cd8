"""DuckDB storage for transactions, geography and adjustment overrides."""

from __future__ import annotations

import csv
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any

import duckdb

from ..estimator.resolver import FIELDS, LEVELS, override_columns
from ..models import TRANSACTION_TYPES, Transaction

logger = logging.getLogger(__name__)

SCOPE_COLUMNS = ("building_id", "community_id", "municipality_id")

GENERIC_SCOPE_ID = "default"

ADJUSTMENT_COLUMNS: tuple[str, ...] = tuple(
    col
    for field in FIELDS
    for tt in TRANSACTION_TYPES
    for col in override_columns(field, tt)
)

TRANSACTION_COLUMNS: tuple[str, ...] = (
    "listing_key",
    "transaction_type",
    "standard_status",
    "close_price",
    "list_price",
    "close_date",
    "bedrooms",
    "bathrooms",
    "living_area_range",
    "square_foot_source",
    "parking",
    "locker",
    "days_on_market",
    "association_fee",
    "tax_annual_amount",
    "unit_number",
    "building_id",
    "community_id",
    "municipality_id",
    "property_subtype",
    "lot_width",
    "lot_depth",
    "garage_type",
    "basement",
    "approximate_age",
)

_INT_COLUMNS = {"close_price", "list_price", "bedrooms", "bathrooms", "parking", "days_on_market"}
_FLOAT_COLUMNS = {"association_fee", "tax_annual_amount", "lot_width", "lot_depth"}


def _parse_csv_value(column: str, raw: str | None) -> Any:
    if raw is None or raw.strip() == "":
        return None
    raw = raw.strip()
    if column in _INT_COLUMNS:
        return int(float(raw.replace(",", "")))
    if column in _FLOAT_COLUMNS:
        return float(raw.replace(",", ""))
    if column == "close_date":
        return date.fromisoformat(raw[:10])
    return raw


def transaction_from_row(row: dict[str, Any]) -> Transaction:
    """Build a Transaction from a store or CSV row keyed by column name."""
    values = {col: row.get(col) for col in TRANSACTION_COLUMNS}
    for col in ("bedrooms", "bathrooms", "parking", "days_on_market"):
        values[col] = values[col] or 0
    return Transaction(**values)


class Storage:
    """
    DuckDB storage for the transaction pool and the adjustment override hierarchy.
    The estimator only reads; writes come from imports and the feed sync.
    """

    def __init__(self, db_path: Path | str = "real_estimate.duckdb") -> None:
        self.db_path = Path(db_path)
        self._conn: duckdb.DuckDBPyConnection | None = None

    def _connect(self) -> duckdb.DuckDBPyConnection:
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = duckdb.connect(str(self.db_path))
            self._init_schema()
        return self._conn

    def _init_schema(self) -> None:
        conn = self._conn
        conn.execute("""
            CREATE TABLE IF NOT EXISTS transactions (
                listing_key TEXT PRIMARY KEY,
                transaction_type TEXT,
                standard_status TEXT,
                close_price BIGINT,
                list_price BIGINT,
                close_date DATE,
                bedrooms INTEGER,
                bathrooms INTEGER,
                living_area_range TEXT,
                square_foot_source TEXT,
                parking INTEGER,
                locker TEXT,
                days_on_market INTEGER,
                association_fee DOUBLE,
                tax_annual_amount DOUBLE,
                unit_number TEXT,
                building_id TEXT,
                community_id TEXT,
                municipality_id TEXT,
                property_subtype TEXT,
                lot_width DOUBLE,
                lot_depth DOUBLE,
                garage_type TEXT,
                basement TEXT,
                approximate_age TEXT,
                imported_at TIMESTAMP
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS buildings (
                id TEXT PRIMARY KEY,
                name TEXT,
                slug TEXT,
                community_id TEXT
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS communities (
                id TEXT PRIMARY KEY,
                name TEXT,
                neighbourhood_id TEXT,
                municipality_id TEXT
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS municipalities (
                id TEXT PRIMARY KEY,
                name TEXT,
                area_id TEXT
            )
        """)
        value_columns = ",\n".join(f"                {col} DOUBLE" for col in ADJUSTMENT_COLUMNS)
        conn.execute(f"""
            CREATE TABLE IF NOT EXISTS adjustments (
                scope_level TEXT,
                scope_id TEXT,
{value_columns},
                updated_at TIMESTAMP,
                PRIMARY KEY (scope_level, scope_id)
            )
        """)

    def save_transactions(self, transactions: list[Transaction]) -> int:
        """Upsert transactions by listing key. Returns the number written."""
        conn = self._connect()
        now = datetime.utcnow()
        placeholders = ", ".join("?" for _ in range(len(TRANSACTION_COLUMNS) + 1))
        sql = (
            f"INSERT OR REPLACE INTO transactions ({', '.join(TRANSACTION_COLUMNS)}, imported_at) "
            f"VALUES ({placeholders})"
        )
        for t in transactions:
            conn.execute(sql, [getattr(t, col) for col in TRANSACTION_COLUMNS] + [now])
        return len(transactions)

    def import_transactions_csv(self, path: Path | str) -> int:
        """Load transactions from a CSV whose headers are transaction column names."""
        path = Path(path)
        transactions = []
        with open(path, newline="", encoding="utf-8") as f:
            for row in csv.DictReader(f):
                parsed = {col: _parse_csv_value(col, row.get(col)) for col in TRANSACTION_COLUMNS}
                transactions.append(transaction_from_row(parsed))
        logger.info("Importing %d transaction(s) from %s", len(transactions), path)
        return self.save_transactions(transactions)

    def save_building(self, building_id: str, community_id: str | None = None, name: str | None = None, slug: str | None = None) -> None:
        conn = self._connect()
        conn.execute(
            "INSERT OR REPLACE INTO buildings (id, name, slug, community_id) VALUES (?, ?, ?, ?)",
            [building_id, name, slug, community_id],
        )

    def save_community(
        self,
        community_id: str,
        municipality_id: str | None = None,
        neighbourhood_id: str | None = None,
        name: str | None = None,
    ) -> None:
        conn = self._connect()
        conn.execute(
            "INSERT OR REPLACE INTO communities (id, name, neighbourhood_id, municipality_id) VALUES (?, ?, ?, ?)",
            [community_id, name, neighbourhood_id, municipality_id],
        )

    def save_municipality(self, municipality_id: str, area_id: str | None = None, name: str | None = None) -> None:
        conn = self._connect()
        conn.execute(
            "INSERT OR REPLACE INTO municipalities (id, name, area_id) VALUES (?, ?, ?)",
            [municipality_id, name, area_id],
        )

    def save_adjustment(self, scope_level: str, scope_id: str | None = None, **values: float | None) -> None:
        """
        Upsert an override row, e.g. ``save_adjustment("building", "b1", parking_value_sale=60000)``.
        The generic row takes no scope id.
        """
        if scope_level not in LEVELS:
            raise ValueError(f"Unknown adjustment level: {scope_level!r}")
        unknown = set(values) - set(ADJUSTMENT_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown adjustment column(s): {', '.join(sorted(unknown))}")
        if scope_level == "generic":
            scope_id = GENERIC_SCOPE_ID
        elif scope_id is None:
            raise ValueError(f"{scope_level} override needs a scope id")

        conn = self._connect()
        columns = ["scope_level", "scope_id", *ADJUSTMENT_COLUMNS, "updated_at"]
        row = [scope_level, scope_id, *(values.get(col) for col in ADJUSTMENT_COLUMNS), datetime.utcnow()]
        conn.execute(
            f"INSERT OR REPLACE INTO adjustments ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)})",
            row,
        )

    def fetch_pool(
        self,
        scope_column: str,
        scope_id: str,
        transaction_type: str,
        since: date,
        min_price: int | None = None,
        max_price: int | None = None,
        limit: int | None = None,
    ) -> list[Transaction]:
        """Closed, priced transactions in a scope since ``since``, most recent first."""
        if scope_column not in SCOPE_COLUMNS:
            raise ValueError(f"Unknown scope column: {scope_column!r}")
        sql = (
            f"SELECT {', '.join(TRANSACTION_COLUMNS)} FROM transactions "
            f"WHERE {scope_column} = ? AND transaction_type = ? "
            "AND standard_status = 'Closed' AND close_price IS NOT NULL AND close_date >= ?"
        )
        params: list[Any] = [scope_id, transaction_type, since]
        if min_price is not None:
            sql += " AND close_price > ?"
            params.append(min_price)
        if max_price is not None:
            sql += " AND close_price < ?"
            params.append(max_price)
        sql += " ORDER BY close_date DESC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        rows = self._connect().execute(sql, params).fetchall()
        logger.debug("Pool %s=%s %s: %d row(s)", scope_column, scope_id, transaction_type, len(rows))
        return [transaction_from_row(dict(zip(TRANSACTION_COLUMNS, row))) for row in rows]

    def building_hierarchy(self, building_id: str) -> dict[str, Any]:
        """Geography ids above a building; unknown ids resolve to None."""
        row = self._connect().execute(
            "SELECT community_id FROM buildings WHERE id = ?", [building_id]
        ).fetchone()
        hierarchy = {"building_id": building_id}
        community_id = row[0] if row else None
        if community_id is None:
            hierarchy.update(community_id=None, neighbourhood_id=None, municipality_id=None, area_id=None)
            return hierarchy
        hierarchy.update(self.community_hierarchy(community_id))
        return hierarchy

    def community_hierarchy(self, community_id: str) -> dict[str, Any]:
        conn = self._connect()
        row = conn.execute(
            "SELECT neighbourhood_id, municipality_id FROM communities WHERE id = ?", [community_id]
        ).fetchone()
        neighbourhood_id, municipality_id = row if row else (None, None)
        area_id = None
        if municipality_id is not None:
            area = conn.execute(
                "SELECT area_id FROM municipalities WHERE id = ?", [municipality_id]
            ).fetchone()
            area_id = area[0] if area else None
        return {
            "community_id": community_id,
            "neighbourhood_id": neighbourhood_id,
            "municipality_id": municipality_id,
            "area_id": area_id,
        }

    def adjustment_levels(self, hierarchy: dict[str, Any]) -> list[tuple[str, dict[str, Any] | None]]:
        """Override rows in cascade order as ``(level, row_or_None)``; missing levels are None."""
        levels: list[tuple[str, dict[str, Any] | None]] = []
        for level in LEVELS:
            scope_id = GENERIC_SCOPE_ID if level == "generic" else hierarchy.get(f"{level}_id")
            levels.append((level, self._adjustment_row(level, scope_id) if scope_id else None))
        return levels

    def _adjustment_row(self, level: str, scope_id: str) -> dict[str, Any] | None:
        row = self._connect().execute(
            f"SELECT {', '.join(ADJUSTMENT_COLUMNS)} FROM adjustments WHERE scope_level = ? AND scope_id = ?",
            [level, scope_id],
        ).fetchone()
        if row is None:
            return None
        return dict(zip(ADJUSTMENT_COLUMNS, row))

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
