"""Tests for session/duration deduplication."""

from testlab_insights.discovery.dedup import DedupHours, find_duplicates
from testlab_insights.discovery.models import TestRecord


def _rec(record_id, session="s1", duration=3600.0):
    return TestRecord(id=record_id, start=0.0, duration=duration, session_id=session)


class TestDedupHours:
    def test_duplicate_key_counted_once_for_hours(self):
        acc = DedupHours()
        assert acc.add(_rec("a")) is True
        assert acc.add(_rec("b")) is False
        assert acc.rows == 2
        assert acc.hours == 1.0

    def test_same_session_different_duration_both_count(self):
        acc = DedupHours()
        acc.add(_rec("a", duration=1800.0))
        acc.add(_rec("b", duration=3600.0))
        assert acc.hours == 1.5

    def test_scopes_are_independent(self):
        a, b = DedupHours(), DedupHours()
        a.add(_rec("a"))
        b.add(_rec("b"))
        assert a.hours == b.hours == 1.0

    def test_missing_session_does_not_collapse(self):
        acc = DedupHours()
        acc.add(_rec("a", session=None))
        acc.add(_rec("b", session=None))
        assert acc.hours == 2.0


class TestFindDuplicates:
    def test_find_duplicates(self):
        dups = find_duplicates([_rec("a"), _rec("b"), _rec("c", session="s2")])
        assert dups == {("s1", 3600.0): 2}
