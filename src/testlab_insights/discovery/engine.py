"""Metrics engine orchestrator: fetch records, filter, aggregate.

``MetricsEngine`` is the pure part (records in, ``DashboardMetrics`` out).
``DashboardService`` adds the single I/O step: one fetch from the record
source with at most one retry, an optional timeout, and a fallback to
synthetic records when the source stays unavailable.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, TypeVar
from zoneinfo import ZoneInfo

from testlab_insights.discovery.classifier import TypeFilter, matches_filter
from testlab_insights.discovery.dashboard_metrics import DashboardMetrics, compute_dashboard_metrics
from testlab_insights.discovery.models import TestRecord
from testlab_insights.ingestion.record_source import MockRecordSource, RecordSource

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_FETCH_RETRIES = 1


class InvalidQueryError(ValueError):
    """Dashboard query with missing or inconsistent date bounds."""


@dataclass(frozen=True)
class EngineConfig:
    """Explicit pipeline configuration, passed in at construction."""

    use_real_data: bool = True
    debug: bool = False
    timezone: str = "UTC"
    fetch_retries: int = MAX_FETCH_RETRIES
    fetch_timeout_seconds: float | None = None
    mock_record_count: int = 100
    mock_seed: int | None = None

    @classmethod
    def from_settings(cls, settings: Any) -> EngineConfig:
        return cls(
            use_real_data=settings.use_real_data,
            debug=settings.debug_database,
            timezone=settings.report_timezone,
            fetch_retries=settings.fetch_retries,
            fetch_timeout_seconds=settings.fetch_timeout_seconds,
            mock_record_count=settings.mock_record_count,
            mock_seed=settings.mock_seed,
        )

    @property
    def tzinfo(self) -> tzinfo:
        if self.timezone.upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.timezone)

    @property
    def retries(self) -> int:
        return max(0, min(self.fetch_retries, MAX_FETCH_RETRIES))


class MetricsEngine:
    """Turns a flat list of test records into dashboard metrics."""

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or EngineConfig()

    def compute(
        self,
        records: list[TestRecord],
        type_filter: TypeFilter = None,
        source: str = "database",
    ) -> DashboardMetrics:
        selected = [r for r in records if matches_filter(r, type_filter)]
        if self.config.debug:
            logger.debug(
                "Computing metrics over %d of %d records (filter=%s)",
                len(selected), len(records), type_filter.value if type_filter else "All",
            )
        return compute_dashboard_metrics(selected, tz=self.config.tzinfo, source=source)


def validate_window(date_from: datetime | None, date_to: datetime | None) -> tuple[datetime, datetime]:
    """Require both bounds, timezone-aware (naive = UTC), with from <= to."""
    if date_from is None or date_to is None:
        raise InvalidQueryError("startDate and endDate are required")
    if date_from.tzinfo is None:
        date_from = date_from.replace(tzinfo=timezone.utc)
    if date_to.tzinfo is None:
        date_to = date_to.replace(tzinfo=timezone.utc)
    if date_from > date_to:
        raise InvalidQueryError("startDate must not be after endDate")
    return date_from, date_to


class DashboardService:
    """Fetch + compute for one dashboard query. Holds no per-request state."""

    def __init__(
        self,
        source: RecordSource,
        config: EngineConfig | None = None,
        fallback: RecordSource | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.source = source
        self.fallback = fallback or MockRecordSource(
            count=self.config.mock_record_count, seed=self.config.mock_seed
        )
        self.engine = MetricsEngine(self.config)

    async def _query_once(self, source: RecordSource, date_from, date_to, type_filter) -> list[TestRecord]:
        call = source.query(date_from, date_to, type_filter)
        if self.config.fetch_timeout_seconds is not None:
            return await asyncio.wait_for(call, timeout=self.config.fetch_timeout_seconds)
        return await call

    async def fetch_records(
        self,
        date_from: datetime,
        date_to: datetime,
        type_filter: TypeFilter = None,
    ) -> tuple[list[TestRecord], str]:
        """Return ``(records, source_name)``; never raises for source failures."""
        if not self.config.use_real_data:
            records = await self.fallback.query(date_from, date_to, type_filter)
            return records, self.fallback.name

        attempts = 1 + self.config.retries
        for attempt in range(1, attempts + 1):
            try:
                records = await self._query_once(self.source, date_from, date_to, type_filter)
                return records, self.source.name
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning(
                    "Record source '%s' failed (attempt %d/%d): %s",
                    self.source.name, attempt, attempts, exc,
                )

        logger.warning("Record source '%s' unavailable, substituting synthetic data", self.source.name)
        records = await self.fallback.query(date_from, date_to, type_filter)
        return records, self.fallback.name

    async def get_metrics(
        self,
        date_from: datetime | None,
        date_to: datetime | None,
        type_filter: TypeFilter = None,
    ) -> DashboardMetrics:
        date_from, date_to = validate_window(date_from, date_to)
        records, source_name = await self.fetch_records(date_from, date_to, type_filter)
        return self.engine.compute(records, type_filter, source=source_name)


class LatestQueryRunner:
    """Runs one query at a time; submitting a new one cancels the one in flight.

    Used when the filter changes before the previous fetch resolves: only the
    latest query's result is delivered.
    """

    def __init__(self) -> None:
        self._current: asyncio.Task | None = None

    @property
    def busy(self) -> bool:
        return self._current is not None and not self._current.done()

    def cancel(self) -> None:
        if self.busy:
            logger.debug("Cancelling superseded dashboard query")
            self._current.cancel()

    async def submit(self, factory: Callable[[], Awaitable[T]]) -> T:
        """Run ``factory()``; raises ``CancelledError`` if superseded before completion."""
        self.cancel()
        task = asyncio.ensure_future(factory())
        self._current = task
        try:
            return await task
        finally:
            if self._current is task:
                self._current = None
