"""Test-name classifier: maps free-text test names onto typed categories.

Pure functions. Matching is case-insensitive substring search evaluated in a
fixed order; the first rule that matches wins:

    1. "mcb" and ("trip" or "time")     -> MCB Trip Time
    2. "rcd" and ("value" or "trip value") -> RCD Trip Value
    3. "rcd" and ("trip" or "time")     -> RCD Trip Time
    4. anything else                    -> RCD Trip Time (fallback)

The fallback is not a meaningful classification: unrecognised names are
folded into RCD Trip Time. A record that carries a declared category is
never re-classified.
"""

from __future__ import annotations

import logging
from typing import Union

from testlab_insights.discovery.models import LegacyTestCategory, TestCategory, TestRecord

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = TestCategory.RCD_TRIP_TIME
DEFAULT_LEGACY_CATEGORY = LegacyTestCategory.METER_TEST

TypeFilter = Union[TestCategory, LegacyTestCategory, None]

# (category, required keyword, any-of keywords) in evaluation order
_RULES: tuple[tuple[TestCategory, str, tuple[str, ...]], ...] = (
    (TestCategory.MCB_TRIP_TIME, "mcb", ("trip", "time")),
    (TestCategory.RCD_TRIP_VALUE, "rcd", ("value", "trip value")),
    (TestCategory.RCD_TRIP_TIME, "rcd", ("trip", "time")),
)

_LEGACY_RULES: tuple[tuple[LegacyTestCategory, tuple[str, ...]], ...] = (
    (LegacyTestCategory.METER_TEST, ("decabit", "telenerg")),
    (LegacyTestCategory.MCB_TEST, ("mcb",)),
    (LegacyTestCategory.RCD_TEST, ("rcd",)),
)

DECLARED = "declared"
INFERRED = "inferred"


def classify(name: str | None) -> TestCategory:
    """Classify a test name. Total: every input maps to exactly one category."""
    lowered = (name or "").lower()
    for category, required, any_of in _RULES:
        if required in lowered and any(k in lowered for k in any_of):
            return category
    logger.debug("No category pattern matched %r, defaulting to %s", name, DEFAULT_CATEGORY.value)
    return DEFAULT_CATEGORY


def classify_legacy(name: str | None) -> LegacyTestCategory:
    """Classify under the coarse Meter/MCB/RCD scheme."""
    lowered = (name or "").lower()
    for category, keywords in _LEGACY_RULES:
        if any(k in lowered for k in keywords):
            return category
    return DEFAULT_LEGACY_CATEGORY


def _classification_text(record: TestRecord) -> str:
    """First non-empty of name / originalname / description."""
    for text in (record.name, record.originalname, record.description):
        if text and text.strip():
            return text
    return ""


def resolve_category(record: TestRecord) -> tuple[TestCategory, str]:
    """Return the record's category and whether it was declared or inferred."""
    if record.category is not None and record.category is not TestCategory.ALL:
        return record.category, DECLARED
    category = classify(_classification_text(record))
    logger.debug("Inferred category %s for record %s", category.value, record.id)
    return category, INFERRED


def parse_type_filter(value: str | None) -> TypeFilter:
    """Map a query-string test type onto a filter. Empty / "All" means no filter.

    Raises:
        ValueError: for a value that is neither a current nor a legacy category.
    """
    if value is None or not value.strip():
        return None
    wanted = value.strip().lower()
    for category in TestCategory:
        if category.value.lower() == wanted:
            return None if category is TestCategory.ALL else category
    for legacy in LegacyTestCategory:
        if legacy.value.lower() == wanted:
            return legacy
    raise ValueError(f"Unknown test type: {value}")


def matches_filter(record: TestRecord, type_filter: TypeFilter) -> bool:
    """True when *record* belongs to *type_filter* (``None`` / All match everything)."""
    if type_filter is None or type_filter is TestCategory.ALL:
        return True
    if isinstance(type_filter, LegacyTestCategory):
        return classify_legacy(_classification_text(record)) is type_filter
    category, _ = resolve_category(record)
    return category is type_filter
