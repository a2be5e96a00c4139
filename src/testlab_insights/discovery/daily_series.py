"""Per-day test count and test-hour series."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone, tzinfo

from testlab_insights.discovery.dedup import DedupHours
from testlab_insights.discovery.models import TestRecord


def record_date(start: float, tz: tzinfo = timezone.utc) -> str:
    """Calendar date (``YYYY-MM-DD``) of an epoch-seconds timestamp in *tz*."""
    return datetime.fromtimestamp(start, tz=tz).strftime("%Y-%m-%d")


def build_daily_series(
    records: Iterable[TestRecord],
    tz: tzinfo = timezone.utc,
) -> tuple[list[dict], list[dict]]:
    """Return ``(tests_per_day, hours_per_day)`` sorted ascending by date.

    Counts are raw rows; hours are deduplicated per day.
    """
    days: dict[str, DedupHours] = {}
    for record in records:
        day = record_date(record.start, tz)
        days.setdefault(day, DedupHours()).add(record)

    ordered = sorted(days.items())
    tests_per_day = [{"date": day, "count": acc.rows} for day, acc in ordered]
    hours_per_day = [{"date": day, "hours": round(acc.hours, 2)} for day, acc in ordered]
    return tests_per_day, hours_per_day
