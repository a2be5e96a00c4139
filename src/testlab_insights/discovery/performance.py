"""Trip-speed improvement relative to the test upper limit.

For a record with both a trip measurement and a plausible upper limit:

    speed_improvement = (upper_limit - measurement) / upper_limit * 100

Records are split into sub-groups before averaging. MCB: an upper limit of
exactly 0.1 s marks a short-circuit test, anything else a regular trip test.
RCD: the residual-current waveform named in the test decides Type A
(sinusoidal) or Type B (composite / pulsating / smooth); names without a
waveform keyword are left out of both groups.

Empty groups produce no entry at all. Absence means "insufficient data",
not zero improvement.
"""

from __future__ import annotations

import statistics
from collections.abc import Iterable
from dataclasses import dataclass

from testlab_insights.discovery.models import TestCategory, TestRecord

MAX_PLAUSIBLE_LIMIT = 1e10  # larger limits are "infinite" sentinels
SHORT_CIRCUIT_LIMIT = 0.1

MCB_SHORT_CIRCUIT = "shortCircuit"
MCB_REGULAR_TRIP = "regularTrip"
RCD_TYPE_A = "typeA"
RCD_TYPE_B = "typeB"

_TYPE_A_KEYWORDS = ("sinusoidal",)
_TYPE_B_KEYWORDS = ("composite", "pulsating", "smooth")


@dataclass
class PerformanceGroup:
    average_speed_improvement: float  # %, 1 dp
    tests_with_data: int

    def to_dict(self) -> dict:
        return {
            "averageSpeedImprovement": self.average_speed_improvement,
            "testsWithData": self.tests_with_data,
        }


def trip_measurement(record: TestRecord, category: TestCategory) -> float | None:
    """Trip value for RCD Trip Value tests, trip time otherwise; falls back to the other field."""
    if category is TestCategory.RCD_TRIP_VALUE:
        preferred, other = record.trip_value, record.trip_time
    else:
        preferred, other = record.trip_time, record.trip_value
    return preferred if preferred is not None else other


def speed_improvement(measurement: float | None, upper_limit: float | None) -> float | None:
    """Percentage by which *measurement* beats *upper_limit*; None when not computable."""
    if measurement is None or upper_limit is None:
        return None
    if not (0 < upper_limit < MAX_PLAUSIBLE_LIMIT):
        return None
    return (upper_limit - measurement) / upper_limit * 100


def mcb_group(record: TestRecord) -> str:
    return MCB_SHORT_CIRCUIT if record.upper_limit == SHORT_CIRCUIT_LIMIT else MCB_REGULAR_TRIP


def rcd_group(record: TestRecord) -> str | None:
    name = (record.name or "").lower()
    if any(k in name for k in _TYPE_A_KEYWORDS):
        return RCD_TYPE_A
    if any(k in name for k in _TYPE_B_KEYWORDS):
        return RCD_TYPE_B
    return None


def summarise_groups(values_by_group: dict[str, list[float]]) -> dict[str, PerformanceGroup]:
    """Average each non-empty group; empty groups are omitted."""
    return {
        group: PerformanceGroup(
            average_speed_improvement=round(statistics.mean(values), 1),
            tests_with_data=len(values),
        )
        for group, values in values_by_group.items()
        if values
    }


def compute_mcb_performance(records: Iterable[TestRecord]) -> dict[str, PerformanceGroup]:
    """Improvement per MCB sub-group over MCB Trip Time records."""
    groups: dict[str, list[float]] = {MCB_SHORT_CIRCUIT: [], MCB_REGULAR_TRIP: []}
    for record in records:
        value = speed_improvement(trip_measurement(record, TestCategory.MCB_TRIP_TIME), record.upper_limit)
        if value is not None:
            groups[mcb_group(record)].append(value)
    return summarise_groups(groups)


def compute_rcd_performance(
    records: Iterable[tuple[TestRecord, TestCategory]],
) -> dict[str, PerformanceGroup]:
    """Improvement per RCD type over (record, category) pairs of RCD records."""
    groups: dict[str, list[float]] = {RCD_TYPE_A: [], RCD_TYPE_B: []}
    for record, category in records:
        group = rcd_group(record)
        if group is None:
            continue
        value = speed_improvement(trip_measurement(record, category), record.upper_limit)
        if value is not None:
            groups[group].append(value)
    return summarise_groups(groups)
