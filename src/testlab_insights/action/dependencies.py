"""Shared dependencies for API routers: query parsing and service wiring."""

import logging
from datetime import datetime, timezone

from fastapi import Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from testlab_insights.db.connection import get_session
from testlab_insights.discovery.classifier import TypeFilter, parse_type_filter
from testlab_insights.discovery.engine import DashboardService, EngineConfig
from testlab_insights.ingestion.record_source import ApiRecordSource, RecordSource, SessionRecordSource

logger = logging.getLogger(__name__)


def parse_iso_datetime(value: str | None, param: str) -> datetime:
    """Parse an ISO-8601 query parameter; naive values are taken as UTC.

    Raises:
        HTTPException: 400 when the value is missing or unparseable.
    """
    if not value:
        raise HTTPException(status_code=400, detail="startDate and endDate are required")
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid ISO-8601 date for {param}: {value}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_test_type(value: str | None) -> TypeFilter:
    try:
        return parse_type_filter(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


def get_engine_config() -> EngineConfig:
    return EngineConfig.from_settings(settings)


def build_record_source(session: AsyncSession, config: EngineConfig) -> RecordSource:
    """Remote API when ``record_api_url`` is configured, otherwise the request's DB session."""
    if settings.record_api_url:
        return ApiRecordSource(settings.record_api_url, timeout=config.fetch_timeout_seconds)
    return SessionRecordSource(session)


def get_dashboard_service(
    session: AsyncSession = Depends(get_session),
    config: EngineConfig = Depends(get_engine_config),
) -> DashboardService:
    return DashboardService(build_record_source(session, config), config)
