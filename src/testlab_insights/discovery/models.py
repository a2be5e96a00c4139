"""Domain types for electrical-safety test records.

A ``TestRecord`` is read-only input produced by the test-execution system.
Categories come in two query shapes: the current fine-grained scheme
(``TestCategory``) and the earlier coarse scheme (``LegacyTestCategory``),
which is still accepted wherever a type filter is.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TestCategory(str, Enum):
    MCB_TRIP_TIME = "MCB Trip Time"
    RCD_TRIP_TIME = "RCD Trip Time"
    RCD_TRIP_VALUE = "RCD Trip Value"
    ALL = "All"  # wildcard, never assigned to a record

    __test__ = False


class LegacyTestCategory(str, Enum):
    METER_TEST = "Meter Test"
    MCB_TEST = "MCB Test"
    RCD_TEST = "RCD Test"

    __test__ = False


class TestOutcome(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    ERROR = "error"
    UNKNOWN = "unknown"

    __test__ = False


@dataclass(frozen=True)
class TestRecord:
    """One executed test, as seen by the metrics pipeline."""

    __test__ = False

    id: str
    start: float  # epoch seconds
    duration: float  # seconds
    name: str = ""
    originalname: str = ""
    description: str = ""
    session_id: str | None = None
    stop: float | None = None
    category: TestCategory | None = None  # declared by the source, if any
    outcome: TestOutcome = TestOutcome.UNKNOWN
    rating: str | float | None = None  # e.g. "B16" or 16
    multiplier: float | None = None
    amplitude: float | None = None  # condition.amplitude on meter-style documents
    trip_time: float | None = None  # seconds
    trip_value: float | None = None
    upper_limit: float | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def text(self) -> str:
        """Combined free text used for pattern extraction."""
        return " ".join(t for t in (self.name, self.originalname, self.description) if t)

    @property
    def dedup_key(self) -> tuple[str, float]:
        """Session/duration key; records without a session key on their own id."""
        return (self.session_id if self.session_id else f"id:{self.id}", self.duration)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation in the stored document shape."""
        doc: dict[str, Any] = dict(self.extra)
        doc.update({
            "id": self.id,
            "name": self.name,
            "originalname": self.originalname,
            "description": self.description,
            "session_uuid4": self.session_id,
            "start": self.start,
            "duration": self.duration,
            "outcome": self.outcome.value,
        })
        optional = {
            "stop": self.stop,
            "category": self.category.value if self.category else None,
            "rating": self.rating,
            "multiplier": self.multiplier,
            "trip_time": self.trip_time,
            "trip_value": self.trip_value,
            "upper_limit": self.upper_limit,
        }
        doc.update({k: v for k, v in optional.items() if v is not None})
        if self.amplitude is not None:
            condition = dict(doc.get("condition") or {})
            condition["amplitude"] = self.amplitude
            doc["condition"] = condition
        return doc
