"""Numeric extraction of test-condition parameters for MCB current analysis.

Structured fields are preferred; free text (name + originalname +
description) is the fallback. Unresolved values are ``None``, never zero,
so callers can exclude the record from the aggregate that needs them.
"""

from __future__ import annotations

import math
import re
from typing import Any

from testlab_insights.discovery.models import TestRecord

_NUMBER = r"(\d+(?:\.\d+)?)"

# Evaluated in order; first match wins.
_MULTIPLIER_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(_NUMBER + r"\s*[x×]", re.IGNORECASE),
    re.compile(r"[x×]\s*" + _NUMBER, re.IGNORECASE),
    re.compile(r"multiplier\s*[:=]\s*" + _NUMBER, re.IGNORECASE),
)

_CURVE_RATING = re.compile(r"[a-z]" + _NUMBER, re.IGNORECASE)  # "B16" -> 16
_ANY_NUMBER = re.compile(_NUMBER)


def _positive(value: Any) -> float | None:
    """Return *value* as a positive finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def parse_multiplier_text(text: str | None) -> float | None:
    """Parse a multiplier such as ``5x``, ``x5`` or ``multiplier=5`` from text."""
    if not text:
        return None
    for pattern in _MULTIPLIER_PATTERNS:
        match = pattern.search(text)
        if match:
            return _positive(match.group(1))
    return None


def parse_rating_text(text: str | None) -> float | None:
    """Parse a rated current, preferring a curve-prefixed number (``B16``)."""
    if not text:
        return None
    match = _CURVE_RATING.search(text)
    if match:
        value = _positive(match.group(1))
        if value is not None:
            return value
    for match in _ANY_NUMBER.finditer(text):
        value = _positive(match.group(1))
        if value is not None:
            return value
    return None


def extract_multiplier(record: TestRecord) -> float | None:
    value = _positive(record.multiplier)
    if value is not None:
        return value
    value = _positive(record.amplitude)
    if value is not None:
        return value
    return parse_multiplier_text(record.text)


def extract_rating(record: TestRecord) -> float | None:
    rating = record.rating
    if isinstance(rating, (int, float)) and not isinstance(rating, bool):
        value = _positive(rating)
        if value is not None:
            return value
    elif isinstance(rating, str) and rating.strip():
        value = _positive(rating.strip())
        if value is not None:
            return value
        value = parse_rating_text(rating)
        if value is not None:
            return value
    return parse_rating_text(record.text)


def extract_current(record: TestRecord) -> float | None:
    """Test current = multiplier × rating; None if either is unresolved."""
    multiplier = extract_multiplier(record)
    if multiplier is None:
        return None
    rating = extract_rating(record)
    if rating is None:
        return None
    return multiplier * rating
