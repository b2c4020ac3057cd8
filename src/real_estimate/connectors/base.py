"""Base connector interface for transaction feeds."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..models import Transaction


@dataclass
class ConnectorResult:
    """Result of a connector fetch operation."""

    transactions: list[Transaction]
    raw_payloads: list[dict]
    source: str
    errors: list[str]


class TransactionConnector(ABC):
    """
    Abstract interface for closed-transaction feeds.
    Implementations: PropTx RESO OData.
    """

    @abstractmethod
    def fetch_closed(
        self,
        since: date,
        extra_filter: str | None = None,
        **scope: str,
    ) -> ConnectorResult:
        """
        Fetch closed sales and leases since ``since``.
        ``scope`` ids (building_id, community_id, municipality_id) are stamped on every row.
        """
        ...

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Identifier for this data source."""
        ...
