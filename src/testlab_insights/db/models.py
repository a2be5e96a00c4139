"""ORM models for stored test results."""

import uuid

from sqlalchemy import Column, DateTime, Float, String, Text, func
from sqlalchemy.dialects.postgresql import JSON
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings


def _uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class TestResultRow(Base):
    """One executed test as written by the test-execution system.

    Only the columns the dashboard filters on are broken out; the full
    document (measurements, events, dataset, ...) lives in ``document``.
    """

    __tablename__ = settings.records_table
    __test__ = False

    id = Column(String(64), primary_key=True, default=_uuid)
    name = Column(Text, nullable=False, index=True)
    session_uuid4 = Column(String(64), nullable=True, index=True)
    start = Column(Float, nullable=False, index=True)  # epoch seconds
    duration = Column(Float, nullable=True)
    document = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
