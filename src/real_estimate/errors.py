"""Estimator error types."""

from __future__ import annotations


class EstimatorError(Exception):
    """Base class for conditions where no price can be produced."""


class NoComparablesError(EstimatorError):
    """The comparable list is empty; there is nothing to estimate from."""


class ReferenceOnlyError(EstimatorError):
    """CONTACT-tier comparables are reference data and carry no price."""
