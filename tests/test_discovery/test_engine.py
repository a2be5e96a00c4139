"""Tests for the metrics engine, dashboard service and query runner."""

import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from testlab_insights.discovery.engine import (
    DashboardService,
    EngineConfig,
    InvalidQueryError,
    LatestQueryRunner,
    MetricsEngine,
    validate_window,
)
from testlab_insights.discovery.models import LegacyTestCategory, TestCategory, TestRecord

T = 1704103200  # 2024-01-01T10:00:00Z
FROM = datetime(2024, 1, 1, tzinfo=timezone.utc)
TO = datetime(2024, 1, 31, tzinfo=timezone.utc)


def _rec(record_id, name):
    return TestRecord(id=record_id, start=T, duration=60.0, name=name, session_id=record_id)


RECORDS = [
    _rec("m", "mcb_trip_test"),
    _rec("v", "rcd_trip_value_smooth"),
    _rec("t", "rcd_trip_time_sinusoidal"),
    _rec("d", "test_decabit[CMD1]"),
]


class _Source:
    """Record source stub that fails a set number of times before answering."""

    def __init__(self, records=None, failures=0, delay=0.0, name="database"):
        self.records = records if records is not None else RECORDS
        self.failures = failures
        self.delay = delay
        self.name = name
        self.calls = 0

    async def query(self, date_from, date_to, type_filter=None):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.calls <= self.failures:
            raise ConnectionError("database unreachable")
        return list(self.records)


class TestMetricsEngine:
    def test_no_filter_keeps_everything(self):
        assert MetricsEngine().compute(RECORDS).total_tests == 4

    def test_current_scheme_filter(self):
        metrics = MetricsEngine().compute(RECORDS, TestCategory.MCB_TRIP_TIME)
        assert metrics.total_tests == 1
        assert metrics.rcd_performance == {}

    def test_default_category_absorbs_unmatched_names(self):
        # the decabit test falls back to RCD Trip Time
        assert MetricsEngine().compute(RECORDS, TestCategory.RCD_TRIP_TIME).total_tests == 2

    def test_legacy_filter(self):
        assert MetricsEngine().compute(RECORDS, LegacyTestCategory.RCD_TEST).total_tests == 2
        assert MetricsEngine().compute(RECORDS, LegacyTestCategory.METER_TEST).total_tests == 1

    def test_timezone_from_config(self):
        late = TestRecord(id="x", start=1704153000, duration=60.0, name="mcb_trip")  # 2024-01-01T23:50Z
        metrics = MetricsEngine(EngineConfig(timezone="Europe/Berlin")).compute([late])
        assert metrics.tests_per_day[0]["date"] == "2024-01-02"


class TestEngineConfig:
    def test_from_settings(self):
        settings = SimpleNamespace(
            use_real_data=False, debug_database=True, report_timezone="UTC",
            fetch_retries=3, fetch_timeout_seconds=2.5, mock_record_count=10, mock_seed=7,
        )
        config = EngineConfig.from_settings(settings)
        assert config.use_real_data is False
        assert config.debug is True
        assert config.fetch_timeout_seconds == 2.5
        assert config.retries == 1  # capped

    def test_retries_never_negative(self):
        assert EngineConfig(fetch_retries=-2).retries == 0


class TestValidateWindow:
    def test_missing_bound(self):
        with pytest.raises(InvalidQueryError, match="required"):
            validate_window(None, TO)
        with pytest.raises(InvalidQueryError):
            validate_window(FROM, None)

    def test_reversed_bounds(self):
        with pytest.raises(InvalidQueryError, match="after"):
            validate_window(TO, FROM)

    def test_naive_taken_as_utc(self):
        lo, _ = validate_window(datetime(2024, 1, 1), TO)
        assert lo.tzinfo is timezone.utc

    def test_is_value_error(self):
        assert issubclass(InvalidQueryError, ValueError)


class TestDashboardService:
    @pytest.mark.asyncio
    async def test_happy_path(self):
        source = _Source()
        metrics = await DashboardService(source).get_metrics(FROM, TO)
        assert metrics.total_tests == 4
        assert metrics.source == "database"
        assert source.calls == 1

    @pytest.mark.asyncio
    async def test_one_retry_then_success(self):
        source = _Source(failures=1)
        metrics = await DashboardService(source).get_metrics(FROM, TO)
        assert source.calls == 2
        assert metrics.source == "database"

    @pytest.mark.asyncio
    async def test_falls_back_after_retry(self):
        source = _Source(failures=5)
        fallback = _Source(records=[_rec("f", "mcb_trip_test")], name="synthetic")
        metrics = await DashboardService(source, fallback=fallback).get_metrics(FROM, TO)
        assert source.calls == 2  # initial attempt + one retry
        assert fallback.calls == 1
        assert metrics.source == "synthetic"
        assert metrics.total_tests == 1

    @pytest.mark.asyncio
    async def test_default_fallback_is_synthetic(self):
        config = EngineConfig(mock_record_count=25, mock_seed=1)
        metrics = await DashboardService(_Source(failures=5), config).get_metrics(FROM, TO)
        assert metrics.source == "synthetic"
        assert metrics.total_tests == 25

    @pytest.mark.asyncio
    async def test_synthetic_when_real_data_disabled(self):
        source = _Source()
        fallback = _Source(records=[], name="synthetic")
        service = DashboardService(source, EngineConfig(use_real_data=False), fallback=fallback)
        metrics = await service.get_metrics(FROM, TO)
        assert source.calls == 0
        assert metrics.source == "synthetic"

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self):
        source = _Source(delay=0.5)
        fallback = _Source(records=[], name="synthetic")
        service = DashboardService(source, EngineConfig(fetch_timeout_seconds=0.01), fallback=fallback)
        metrics = await service.get_metrics(FROM, TO)
        assert source.calls == 2
        assert metrics.source == "synthetic"

    @pytest.mark.asyncio
    async def test_invalid_window_raises_before_fetch(self):
        source = _Source()
        with pytest.raises(InvalidQueryError):
            await DashboardService(source).get_metrics(None, TO)
        assert source.calls == 0

    @pytest.mark.asyncio
    async def test_filter_applied(self):
        metrics = await DashboardService(_Source()).get_metrics(FROM, TO, TestCategory.RCD_TRIP_VALUE)
        assert metrics.total_tests == 1


class TestLatestQueryRunner:
    @pytest.mark.asyncio
    async def test_returns_result(self):
        runner = LatestQueryRunner()

        async def work():
            return 42

        assert await runner.submit(work) == 42
        assert runner.busy is False

    @pytest.mark.asyncio
    async def test_new_submission_cancels_in_flight_query(self):
        runner = LatestQueryRunner()
        started = asyncio.Event()

        async def slow():
            started.set()
            await asyncio.sleep(10)
            return "stale"

        async def fast():
            return "fresh"

        first = asyncio.ensure_future(runner.submit(slow))
        await started.wait()
        assert runner.busy is True

        assert await runner.submit(fast) == "fresh"
        with pytest.raises(asyncio.CancelledError):
            await first
