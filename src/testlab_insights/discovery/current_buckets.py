"""MCB test-current histogram and maximum-current detection.

Pure functions over already-resolved currents (amps). Buckets are half-open
except the last, which is closed on both ends. Currents outside every bucket
are dropped from the histogram but still take part in the maximum.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

# (label, lower, upper, upper_inclusive)
CURRENT_BUCKETS: tuple[tuple[str, float, float, bool], ...] = (
    ("50-100", 50.0, 100.0, False),
    ("100-200", 100.0, 200.0, False),
    ("200-300", 200.0, 300.0, False),
    ("300-400", 300.0, 400.0, True),
)


@dataclass
class MaxCurrent:
    """Highest observed current and how many records produced exactly it."""

    value: float
    count: int

    def to_dict(self) -> dict:
        return {"value": self.value, "count": self.count}


def bucket_for(current: float) -> str | None:
    """Return the bucket label for *current*, or None when it is out of range."""
    for label, lower, upper, upper_inclusive in CURRENT_BUCKETS:
        if current < lower:
            continue
        if current < upper or (upper_inclusive and current == upper):
            return label
    return None


def bucket_currents(currents: Iterable[float]) -> dict[str, int]:
    """Count currents per bucket. Every bucket label is present, zero if empty."""
    counts = {label: 0 for label, *_ in CURRENT_BUCKETS}
    for current in currents:
        label = bucket_for(current)
        if label is not None:
            counts[label] += 1
    return counts


def find_max_current(currents: Iterable[float]) -> MaxCurrent | None:
    values = list(currents)
    if not values:
        return None
    top = max(values)
    return MaxCurrent(value=top, count=sum(1 for v in values if v == top))
