"""MCB trip times over time, one series per rating × multiplier combination."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timezone, tzinfo

from testlab_insights.discovery.daily_series import record_date
from testlab_insights.discovery.extraction import extract_multiplier, extract_rating
from testlab_insights.discovery.models import TestRecord


def _fmt(value: float) -> str:
    return f"{value:g}"


def build_trip_time_series(records: Iterable[TestRecord], tz: tzinfo = timezone.utc) -> dict | None:
    """Group MCB trip times by date and rating/multiplier combination.

    Records need a trip time plus a resolvable rating and multiplier. Within
    one date and combination the latest record wins. Returns None when no
    record qualifies.
    """
    combos: dict[str, dict] = {}
    points: dict[str, dict] = {}

    for record in sorted(records, key=lambda r: r.start):
        if record.trip_time is None:
            continue
        rating = extract_rating(record)
        multiplier = extract_multiplier(record)
        if rating is None or multiplier is None:
            continue

        combo_id = f"{_fmt(rating)}-{_fmt(multiplier)}"
        if combo_id not in combos:
            combos[combo_id] = {
                "id": combo_id,
                "rating": _fmt(rating),
                "multiplier": _fmt(multiplier),
                "label": f"{_fmt(rating)}A × {_fmt(multiplier)}",
            }

        day = record_date(record.start, tz)
        points.setdefault(day, {"date": day})[combo_id] = record.trip_time

    if not combos:
        return None

    return {
        "combinations": sorted(combos.values(), key=lambda c: c["label"]),
        "points": [points[day] for day in sorted(points)],
    }
