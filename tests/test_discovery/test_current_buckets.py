"""Tests for MCB current bucketing."""

from testlab_insights.discovery.current_buckets import (
    bucket_currents,
    bucket_for,
    find_max_current,
)


class TestBucketFor:
    def test_lower_edge_inclusive(self):
        assert bucket_for(50) == "50-100"

    def test_exactly_100_goes_up(self):
        assert bucket_for(100) == "100-200"

    def test_exactly_200_and_300(self):
        assert bucket_for(200) == "200-300"
        assert bucket_for(300) == "300-400"

    def test_exactly_400_in_last_bucket(self):
        assert bucket_for(400) == "300-400"

    def test_out_of_range(self):
        assert bucket_for(450) is None
        assert bucket_for(49.9) is None
        assert bucket_for(0) is None


class TestBucketCurrents:
    def test_all_labels_present(self):
        assert bucket_currents([]) == {"50-100": 0, "100-200": 0, "200-300": 0, "300-400": 0}

    def test_counts(self):
        counts = bucket_currents([80, 80, 100, 250, 400, 450, 10])
        assert counts == {"50-100": 2, "100-200": 1, "200-300": 1, "300-400": 1}


class TestFindMaxCurrent:
    def test_empty(self):
        assert find_max_current([]) is None

    def test_max_with_count(self):
        result = find_max_current([80, 160, 160, 30])
        assert result.value == 160
        assert result.count == 2

    def test_out_of_range_still_counts_as_max(self):
        assert find_max_current([80, 500]).value == 500

    def test_to_dict(self):
        assert find_max_current([80]).to_dict() == {"value": 80, "count": 1}
