"""Tests for the MCB trip-time series."""

from testlab_insights.discovery.models import TestRecord
from testlab_insights.discovery.trip_time_series import build_trip_time_series

JAN_1 = 1704067200
DAY = 86400


def _rec(record_id, start, rating="B16", multiplier=5.0, trip_time=0.05):
    return TestRecord(
        id=record_id, start=start, duration=10.0, name="mcb_trip_test",
        rating=rating, multiplier=multiplier, trip_time=trip_time,
    )


class TestBuildTripTimeSeries:
    def test_none_when_nothing_qualifies(self):
        assert build_trip_time_series([_rec("a", JAN_1, trip_time=None)]) is None
        assert build_trip_time_series([_rec("a", JAN_1, rating=None)]) is None

    def test_combinations_and_points(self):
        series = build_trip_time_series([
            _rec("b", JAN_1 + DAY, rating="C32", multiplier=3.0, trip_time=2.0),
            _rec("a", JAN_1, trip_time=0.05),
        ])
        assert [c["id"] for c in series["combinations"]] == ["16-5", "32-3"]
        assert series["combinations"][0]["label"] == "16A × 5"
        assert series["points"] == [
            {"date": "2024-01-01", "16-5": 0.05},
            {"date": "2024-01-02", "32-3": 2.0},
        ]

    def test_latest_record_wins_within_a_day(self):
        series = build_trip_time_series([
            _rec("late", JAN_1 + 600, trip_time=0.07),
            _rec("early", JAN_1, trip_time=0.05),
        ])
        assert series["points"] == [{"date": "2024-01-01", "16-5": 0.07}]
