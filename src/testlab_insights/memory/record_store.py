"""CRUD operations for stored test results."""
from __future__ import annotations

import logging
import uuid

from sqlalchemy import or_, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from testlab_insights.db.models import TestResultRow
from testlab_insights.discovery.classifier import TypeFilter
from testlab_insights.discovery.models import LegacyTestCategory, TestRecord
from testlab_insights.ingestion.record_loader import records_from_documents

logger = logging.getLogger(__name__)

# Case-insensitive name fragments that every member of a category carries in
# its stored name. Only these filters narrow at the database; the others
# (declared categories, default rules) fetch the whole window and the
# classifier settles membership afterwards.
NAME_PATTERNS: dict[LegacyTestCategory, tuple[str, ...]] = {
    LegacyTestCategory.MCB_TEST: ("mcb",),
    LegacyTestCategory.RCD_TEST: ("rcd",),
}


def _row_document(row: TestResultRow) -> dict:
    doc = dict(row.document or {})
    doc.setdefault("id", row.id)
    return doc


async def query_documents(
    session: AsyncSession,
    date_from: float,
    date_to: float,
    type_filter: TypeFilter = None,
) -> list[dict]:
    """Fetch raw documents whose ``start`` lies in ``[date_from, date_to]``.

    Errors roll back the session and propagate so callers can fall back.
    """
    stmt = select(TestResultRow).where(
        TestResultRow.start >= date_from,
        TestResultRow.start <= date_to,
    )
    patterns = NAME_PATTERNS.get(type_filter, ())
    if patterns:
        stmt = stmt.where(or_(*(TestResultRow.name.ilike(f"%{p}%") for p in patterns)))
    stmt = stmt.order_by(TestResultRow.start)

    try:
        result = await session.execute(stmt)
        rows = list(result.scalars().all())
    except Exception:
        logger.exception("Failed to query test results between %s and %s", date_from, date_to)
        await session.rollback()
        raise

    logger.debug("Found %d test results", len(rows))
    return [_row_document(r) for r in rows]


async def query_records(
    session: AsyncSession,
    date_from: float,
    date_to: float,
    type_filter: TypeFilter = None,
) -> list[TestRecord]:
    docs = await query_documents(session, date_from, date_to, type_filter)
    return records_from_documents(docs)


def _document_id(doc: dict) -> str | None:
    raw = doc.get("_id", doc.get("id"))
    if isinstance(raw, dict):
        raw = raw.get("$oid")
    return str(raw) if raw else None


def _build_row(doc: dict) -> TestResultRow:
    return TestResultRow(
        id=_document_id(doc) or str(uuid.uuid4()),
        name=str(doc.get("name", "")),
        session_uuid4=doc.get("session_uuid4"),
        start=float(doc["start"]),
        duration=float(doc["duration"]) if doc.get("duration") is not None else None,
        document=doc,
    )


async def insert_document(session: AsyncSession, doc: dict) -> str:
    """Store a test document and return its id."""
    row = _build_row(doc)
    record_id = row.id
    try:
        session.add(row)
        await session.commit()
    except Exception:
        logger.exception("Failed to insert test result %s", record_id)
        await session.rollback()
        raise
    logger.info("Test result inserted: %s", record_id)
    return record_id


async def insert_documents(session: AsyncSession, docs: list[dict]) -> int:
    """Bulk insert; returns the number of rows written."""
    if not docs:
        return 0
    try:
        session.add_all([_build_row(doc) for doc in docs])
        await session.commit()
    except Exception:
        logger.exception("Failed to insert %d test results", len(docs))
        await session.rollback()
        raise
    logger.info("Inserted %d test results", len(docs))
    return len(docs)


async def ping(session: AsyncSession) -> bool:
    """Round-trip a trivial query; raises when the database is unreachable."""
    await session.execute(text("SELECT 1"))
    return True
