"""Dashboard metrics aggregator: turns a flat list of test records into dashboard KPIs.

Pure function: takes already-filtered records and returns the aggregate.
Nothing here is persisted; the result is recomputed for every query.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timezone, tzinfo
from typing import Any

from testlab_insights.discovery.classifier import DECLARED, resolve_category
from testlab_insights.discovery.current_buckets import MaxCurrent, bucket_currents, find_max_current
from testlab_insights.discovery.daily_series import build_daily_series
from testlab_insights.discovery.dedup import DedupHours
from testlab_insights.discovery.extraction import extract_current
from testlab_insights.discovery.models import TestCategory, TestOutcome, TestRecord
from testlab_insights.discovery.performance import (
    PerformanceGroup,
    compute_mcb_performance,
    compute_rcd_performance,
)
from testlab_insights.discovery.trip_time_series import build_trip_time_series


@dataclass
class DashboardMetrics:
    """Aggregate figures for one dashboard query."""

    total_hours: float  # deduplicated, 2 dp
    total_tests: int  # raw rows
    passed_tests: int
    failed_tests: int
    skipped_tests: int
    pass_rate: float  # 0-100, 2 dp
    tests_per_day: list[dict]
    hours_per_day: list[dict]
    declared_categories: int = 0
    inferred_categories: int = 0
    source: str = "database"  # database / api / synthetic
    # Conditional sections: None / empty means "not applicable to this selection"
    mcb_current_buckets: dict[str, int] | None = None
    mcb_max_current: MaxCurrent | None = None
    mcb_performance: dict[str, PerformanceGroup] = field(default_factory=dict)
    rcd_performance: dict[str, PerformanceGroup] = field(default_factory=dict)
    mcb_trip_time_series: dict | None = None

    def to_dict(self) -> dict[str, Any]:
        """camelCase payload for the presentation layer; absent sections are omitted."""
        out: dict[str, Any] = {
            "totalHours": self.total_hours,
            "totalTests": self.total_tests,
            "passedTests": self.passed_tests,
            "failedTests": self.failed_tests,
            "skippedTests": self.skipped_tests,
            "passRate": self.pass_rate,
            "testsPerDay": self.tests_per_day,
            "hoursPerDay": self.hours_per_day,
            "classification": {
                "declared": self.declared_categories,
                "inferred": self.inferred_categories,
            },
            "source": self.source,
        }
        if self.mcb_current_buckets is not None:
            out["mcbCurrentBuckets"] = dict(self.mcb_current_buckets)
        if self.mcb_max_current is not None:
            out["mcbMaxCurrent"] = self.mcb_max_current.to_dict()
        if self.mcb_performance:
            out["mcbPerformance"] = {k: g.to_dict() for k, g in self.mcb_performance.items()}
        if self.rcd_performance:
            out["rcdPerformance"] = {k: g.to_dict() for k, g in self.rcd_performance.items()}
        if self.mcb_trip_time_series is not None:
            out["mcbTripTimeSeries"] = self.mcb_trip_time_series
        return out


def compute_dashboard_metrics(
    records: list[TestRecord],
    tz: tzinfo = timezone.utc,
    source: str = "database",
) -> DashboardMetrics:
    """Compute dashboard metrics from already-filtered records."""
    total = DedupHours()
    outcomes = {outcome: 0 for outcome in TestOutcome}
    declared = 0
    mcb_records: list[TestRecord] = []
    rcd_records: list[tuple[TestRecord, TestCategory]] = []

    for record in records:
        total.add(record)
        outcomes[record.outcome] += 1

        category, how = resolve_category(record)
        if how == DECLARED:
            declared += 1
        if category is TestCategory.MCB_TRIP_TIME:
            mcb_records.append(record)
        elif category in (TestCategory.RCD_TRIP_TIME, TestCategory.RCD_TRIP_VALUE):
            rcd_records.append((record, category))

    tests_per_day, hours_per_day = build_daily_series(records, tz)

    total_tests = len(records)
    passed = outcomes[TestOutcome.PASSED]
    pass_rate = (passed / total_tests * 100) if total_tests > 0 else 0.0

    metrics = DashboardMetrics(
        total_hours=round(total.hours, 2),
        total_tests=total_tests,
        passed_tests=passed,
        failed_tests=outcomes[TestOutcome.FAILED],
        skipped_tests=outcomes[TestOutcome.SKIPPED],
        pass_rate=round(pass_rate, 2),
        tests_per_day=tests_per_day,
        hours_per_day=hours_per_day,
        declared_categories=declared,
        inferred_categories=total_tests - declared,
        source=source,
    )

    if mcb_records:
        # Bucketing is per row; only hours are deduplicated.
        currents = [c for c in (extract_current(r) for r in mcb_records) if c is not None]
        metrics.mcb_current_buckets = bucket_currents(currents)
        metrics.mcb_max_current = find_max_current(currents)
        metrics.mcb_performance = compute_mcb_performance(mcb_records)
        metrics.mcb_trip_time_series = build_trip_time_series(mcb_records, tz)

    if rcd_records:
        metrics.rcd_performance = compute_rcd_performance(rcd_records)

    return metrics
