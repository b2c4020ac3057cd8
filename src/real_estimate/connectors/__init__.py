"""Source connectors for transaction data."""

from .base import ConnectorResult, TransactionConnector
from .proptx import PropTxConnector

__all__ = [
    "ConnectorResult",
    "PropTxConnector",
    "TransactionConnector",
]
