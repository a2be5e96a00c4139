"""Required-field checks for incoming test documents.

Only presence and basic type checks; the write path does no
semantic validation of measurements.

Hard checks (reject):
    - ``name`` missing or blank
    - ``start`` missing or not numeric (epoch seconds)
    - ``duration`` missing or not numeric, unless ``stop`` is given
    - negative ``duration``
"""

from __future__ import annotations

import logging
import math
from typing import Any

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "start", "duration")


class ValidationResult:
    """Result of validating a batch of documents."""

    __slots__ = ("clean", "rejected")

    def __init__(self) -> None:
        self.clean: list[dict] = []
        self.rejected: list[dict] = []  # [{index, document, issues}]

    def summary(self) -> dict:
        return {"documents_clean": len(self.clean), "documents_rejected": len(self.rejected)}


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    if isinstance(value, str):
        try:
            return math.isfinite(float(value))
        except ValueError:
            return False
    return False


def check_document(doc: Any) -> list[str]:
    """Return the list of problems with *doc*; empty when it is acceptable."""
    if not isinstance(doc, dict):
        return ["document must be a JSON object"]

    issues: list[str] = []
    name = doc.get("name")
    if not isinstance(name, str) or not name.strip():
        issues.append("'name' is required")

    if not _is_number(doc.get("start")):
        issues.append("'start' is required and must be epoch seconds")

    duration = doc.get("duration")
    if duration is None:
        if not _is_number(doc.get("stop")):
            issues.append("'duration' is required")
    elif not _is_number(duration):
        issues.append("'duration' must be numeric")
    elif float(duration) < 0:
        issues.append("'duration' must not be negative")

    return issues


def validate_documents(docs: list[Any]) -> ValidationResult:
    result = ValidationResult()
    for index, doc in enumerate(docs):
        issues = check_document(doc)
        if issues:
            result.rejected.append({"index": index, "document": doc, "issues": issues})
        else:
            result.clean.append(doc)
    if result.rejected:
        logger.warning("Rejected %d of %d test documents", len(result.rejected), len(docs))
    return result
