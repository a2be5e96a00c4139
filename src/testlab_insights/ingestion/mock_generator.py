"""Synthetic test documents for offline development and source-failure fallback.

The shape is deterministic (same fields, same name grammar as the real test
rigs); values are random. Pass a seed for reproducible output.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import numpy as np

from testlab_insights.discovery.models import TestRecord
from testlab_insights.ingestion.record_loader import records_from_documents

logger = logging.getLogger(__name__)

TEST_FAMILIES = ("decabit", "telenerg", "mcb", "rcd")
OUTCOMES = ("passed", "failed", "skipped")
MCB_RATINGS = ("B6", "B10", "B16", "C16", "B20", "C32")
MCB_MULTIPLIERS = (3, 5, 10)
RCD_WAVEFORMS = ("sinusoidal", "pulsating", "smooth", "composite")


def _mcb_fields(rng: np.random.Generator) -> dict:
    rating = str(rng.choice(MCB_RATINGS))
    multiplier = int(rng.choice(MCB_MULTIPLIERS))
    short_circuit = multiplier >= 5
    upper_limit = 0.1 if short_circuit else float(rng.choice([1.0, 5.0, 20.0]))
    return {
        "name": f"test_mcb_trip_time[{rating}_{multiplier}x]",
        "originalname": "test_mcb_trip_time",
        "rating": rating,
        "multiplier": multiplier,
        "upper_limit": upper_limit,
        "trip_time": round(float(rng.uniform(0.2, 0.95)) * upper_limit, 4),
    }


def _rcd_fields(rng: np.random.Generator) -> dict:
    waveform = str(rng.choice(RCD_WAVEFORMS))
    if rng.random() < 0.5:
        upper_limit = 0.3
        return {
            "name": f"test_rcd_trip_time_{waveform}",
            "originalname": "test_rcd_trip_time",
            "upper_limit": upper_limit,
            "trip_time": round(float(rng.uniform(0.01, 0.29)), 4),
        }
    upper_limit = 30.0
    return {
        "name": f"test_rcd_trip_value_{waveform}",
        "originalname": "test_rcd_trip_value",
        "upper_limit": upper_limit,
        "trip_value": round(float(rng.uniform(15.0, 29.0)), 2),
    }


def _meter_fields(rng: np.random.Generator, family: str) -> dict:
    command = int(rng.integers(0, 10))
    amplitude = round(float(rng.uniform(0, 2)), 1)
    frequency = int(rng.integers(0, 500))
    return {
        "name": f"test_{family}[CMD{command}_{amplitude}%_{frequency}Hz_On]",
        "originalname": f"test_{family}",
        "condition": {"command": command, "amplitude": amplitude, "frequency": frequency, "state": "On"},
    }


def generate_mock_documents(
    count: int = 100,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    seed: int | None = None,
) -> list[dict]:
    """Generate *count* raw test documents with ``start`` inside the window.

    The window defaults to the 30 days before now.
    """
    rng = np.random.default_rng(seed)
    date_to = date_to or datetime.now(timezone.utc)
    date_from = date_from or date_to - timedelta(days=30)
    lo, hi = date_from.timestamp(), date_to.timestamp()
    if hi < lo:
        lo, hi = hi, lo

    docs: list[dict] = []
    for i in range(count):
        family = str(rng.choice(TEST_FAMILIES))
        outcome = str(rng.choice(OUTCOMES))
        duration = float(rng.uniform(10, 310))
        start = float(rng.uniform(lo, hi))

        doc = {
            "_id": {"$oid": f"mock_{i}"},
            "description": "",
            "session_uuid4": f"session_{i}",
            "start": start,
            "stop": start + duration,
            "duration": duration,
            "outcome": outcome,
            "passed": outcome == "passed",
            "failed": outcome == "failed",
            "skipped": outcome == "skipped",
            "error": False,
            "document_type": "function_metadata",
        }
        if family == "mcb":
            doc.update(_mcb_fields(rng))
        elif family == "rcd":
            doc.update(_rcd_fields(rng))
        else:
            doc.update(_meter_fields(rng, family))
        docs.append(doc)

    return docs


def generate_mock_records(
    count: int = 100,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    seed: int | None = None,
) -> list[TestRecord]:
    docs = generate_mock_documents(count, date_from, date_to, seed)
    logger.debug("Generated %d synthetic test records", len(docs))
    return records_from_documents(docs)
