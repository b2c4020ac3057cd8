"""Comparable matching and price estimation."""

from .adjustments import calculate_adjustments, classify_quality, similarity_score
from .engine import EstimatorEngine
from .home_matcher import HomeComparableMatcher, compatible_subtypes
from .matcher import ComparableMatcher
from .resolver import AdjustmentResolver, resolve_from_levels
from .statistical import estimate

__all__ = [
    "AdjustmentResolver",
    "ComparableMatcher",
    "EstimatorEngine",
    "HomeComparableMatcher",
    "calculate_adjustments",
    "classify_quality",
    "compatible_subtypes",
    "estimate",
    "resolve_from_levels",
    "similarity_score",
]
