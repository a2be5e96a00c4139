"""Test-result routes: raw record listing and ingestion."""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from testlab_insights.action.dependencies import parse_iso_datetime, parse_test_type
from testlab_insights.db.connection import get_session
from testlab_insights.discovery.classifier import matches_filter
from testlab_insights.ingestion.record_loader import records_from_documents
from testlab_insights.ingestion.record_validator import check_document
from testlab_insights.memory import record_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["test-results"])


@router.get("/test-results")
async def list_test_results(
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    testType: Optional[str] = None,
    session: AsyncSession = Depends(get_session),
) -> list[dict]:
    """Records with ``start`` inside the inclusive window, optionally filtered by type."""
    date_from = parse_iso_datetime(startDate, "startDate")
    date_to = parse_iso_datetime(endDate, "endDate")
    type_filter = parse_test_type(testType)

    try:
        docs = await record_store.query_documents(
            session, date_from.timestamp(), date_to.timestamp(), type_filter
        )
    except Exception:
        raise HTTPException(status_code=500, detail="Failed to fetch test results")

    if type_filter is None:
        return docs

    # The store narrows at most by name fragment; settle the exact category here.
    keep = {r.id for r in records_from_documents(docs) if matches_filter(r, type_filter)}
    return [d for d in docs if _doc_id(d) in keep]


def _doc_id(doc: dict) -> str | None:
    raw = doc.get("_id", doc.get("id"))
    if isinstance(raw, dict):
        raw = raw.get("$oid")
    return str(raw) if raw is not None else None


@router.post("/test-results", status_code=201)
async def create_test_result(
    doc: Any = Body(...),
    session: AsyncSession = Depends(get_session),
):
    """Store one test document. Only required fields are checked."""
    issues = check_document(doc)
    if issues:
        return JSONResponse(status_code=422, content={"error": "Invalid test result", "issues": issues})

    try:
        record_id = await record_store.insert_document(session, doc)
    except Exception:
        return JSONResponse(status_code=500, content={"error": "Failed to insert test result"})

    return {"id": record_id, "message": "Test result created successfully"}
