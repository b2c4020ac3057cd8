"""Storage layer for transactions, adjustment overrides and estimate exports."""

from .db import Storage
from .export import export_csv, export_json

__all__ = [
    "Storage",
    "export_csv",
    "export_json",
]
