"""Square footage parsing: exact values from free text, and range labels."""

from __future__ import annotations

import re
from typing import Optional

# Upper bound for a plausible residential unit.
MAX_PLAUSIBLE_SQFT = 5000

# Ranges whose starts are this close are treated as neighbours ("700-799" / "800-899").
ADJACENT_RANGE_SQFT = 200

_OPEN_ENDED_PLUS = re.compile(r"^\d+\+$")
_BARE_RANGE = re.compile(r"^\d+-\d+$")
_THIRD_PARTY = re.compile(r"3rd\s+party", re.IGNORECASE)
_OUTDOOR = re.compile(r"outdoor\s+space", re.IGNORECASE)
_FIRST_NUMBER = re.compile(r"(?<!\d)(\d{3,4})(?!\d)")
_RANGE_LABEL = re.compile(r"^\s*(\d+)\s*-\s*(\d+)\s*$")


def extract_exact_sqft(source: Optional[str]) -> Optional[int]:
    """Extract a reliable exact square footage from a ``square_foot_source`` field.

    Returns ``None`` for:
    - empty input
    - values starting with ``+`` like ``"+450"`` (balcony-only / partial figures)
    - bare ranges like ``"500-600"`` and open ranges like ``"3000+"``
    - anything mentioning ``3rd party`` (unverified) or ``outdoor space``
    - text without a 3-4 digit number, or a number above ``MAX_PLAUSIBLE_SQFT``

    Anything after a ``+`` (e.g. ``"750 + 80 balcony"``) is ignored.
    """
    if not source:
        return None
    cleaned = source.replace(",", "").strip().lower()

    if cleaned.startswith("+"):
        return None
    if _BARE_RANGE.match(cleaned) or _OPEN_ENDED_PLUS.match(cleaned):
        return None
    if _THIRD_PARTY.search(cleaned) or _OUTDOOR.search(cleaned):
        return None

    m = _FIRST_NUMBER.search(cleaned.split("+")[0])
    if not m:
        return None
    value = int(m.group(1))
    if value > MAX_PLAUSIBLE_SQFT:
        return None
    return value


def parse_range(label: Optional[str]) -> Optional[tuple[int, int]]:
    """Parse a living-area-range label such as ``"700-799"`` into ``(700, 799)``."""
    if not label:
        return None
    m = _RANGE_LABEL.match(label)
    if not m:
        return None
    return int(m.group(1)), int(m.group(2))


def range_midpoint(label: Optional[str]) -> Optional[float]:
    """Midpoint of a range label (``"800-899"`` -> 849.5)."""
    bounds = parse_range(label)
    if bounds is None:
        return None
    return (bounds[0] + bounds[1]) / 2


def is_adjacent_range(label: Optional[str], other: Optional[str]) -> bool:
    """True when two range labels start within ``ADJACENT_RANGE_SQFT`` of each other."""
    a = parse_range(label)
    b = parse_range(other)
    if a is None or b is None:
        return False
    return abs(a[0] - b[0]) <= ADJACENT_RANGE_SQFT


def range_variance(label: Optional[str], subject_label: Optional[str]) -> float:
    """Relative midpoint difference of ``label`` vs the subject's range (0 if unknown)."""
    mid = range_midpoint(label)
    subject_mid = range_midpoint(subject_label)
    if not mid or not subject_mid:
        return 0.0
    return abs(mid - subject_mid) / subject_mid
