"""Comparable-transaction price and rent estimation for condos and homes."""

__version__ = "0.1.0"
