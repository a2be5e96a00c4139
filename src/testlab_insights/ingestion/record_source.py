"""Record sources: where the metrics pipeline gets its test records from.

Every source answers ``query(date_from, date_to, type_filter)`` with the
records whose ``start`` lies inside the inclusive window. A source may
narrow by type but callers must not rely on it; the metrics engine applies
the exact filter itself.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from testlab_insights.discovery.classifier import TypeFilter
from testlab_insights.discovery.models import TestRecord
from testlab_insights.ingestion.api_puller import pull_test_results
from testlab_insights.ingestion.mock_generator import generate_mock_records
from testlab_insights.ingestion.record_loader import records_from_documents
from testlab_insights.memory import record_store

logger = logging.getLogger(__name__)


class RecordSource(Protocol):
    name: str

    async def query(
        self,
        date_from: datetime,
        date_to: datetime,
        type_filter: TypeFilter = None,
    ) -> list[TestRecord]: ...


class SessionRecordSource:
    """Reads through an already-open session (request-scoped in the API)."""

    name = "database"

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def query(self, date_from, date_to, type_filter=None) -> list[TestRecord]:
        return await record_store.query_records(
            self._session, date_from.timestamp(), date_to.timestamp(), type_filter
        )


class ApiRecordSource:
    """Reads from a remote ``/test-results`` endpoint."""

    name = "api"

    def __init__(self, url: str, timeout: float | None = None) -> None:
        self.url = url
        self.timeout = timeout

    async def query(self, date_from, date_to, type_filter=None) -> list[TestRecord]:
        docs = await pull_test_results(
            self.url, date_from, date_to, type_filter, timeout=self.timeout
        )
        records = records_from_documents(docs)
        lo, hi = date_from.timestamp(), date_to.timestamp()
        return [r for r in records if lo <= r.start <= hi]


class MockRecordSource:
    """Synthetic records spread over the requested window."""

    name = "synthetic"

    def __init__(self, count: int = 100, seed: int | None = None) -> None:
        self.count = count
        self.seed = seed

    async def query(self, date_from, date_to, type_filter=None) -> list[TestRecord]:
        records = generate_mock_records(self.count, date_from, date_to, self.seed)
        logger.info("Serving %d synthetic test records", len(records))
        return records
