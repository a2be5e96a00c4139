"""Duplicate session detection for duration aggregates.

Some record sources return the same logical test session more than once
(e.g. a re-sync after a partial failure). Rows sharing a
``(session_id, duration)`` key contribute their duration at most once per
aggregation scope. Row counts are never deduplicated: counts reflect stored
entries, hours reflect elapsed testing time.
"""

from __future__ import annotations

from collections.abc import Iterable

from testlab_insights.discovery.models import TestRecord


class DedupHours:
    """Accumulates test hours, adding each dedup key only the first time it is seen.

    Each instance is one aggregation scope; the global total and every
    per-day bucket use separate instances.
    """

    __slots__ = ("_seen", "seconds", "rows")

    def __init__(self) -> None:
        self._seen: set[tuple[str, float]] = set()
        self.seconds: float = 0.0
        self.rows: int = 0

    def add(self, record: TestRecord) -> bool:
        """Count the row; add its duration if the key is new. Returns True if added."""
        self.rows += 1
        key = record.dedup_key
        if key in self._seen:
            return False
        self._seen.add(key)
        self.seconds += record.duration or 0.0
        return True

    @property
    def hours(self) -> float:
        return self.seconds / 3600


def find_duplicates(records: Iterable[TestRecord]) -> dict[tuple[str, float], int]:
    """Return dedup keys seen more than once, with their row counts."""
    counts: dict[tuple[str, float], int] = {}
    for record in records:
        counts[record.dedup_key] = counts.get(record.dedup_key, 0) + 1
    return {k: n for k, n in counts.items() if n > 1}
