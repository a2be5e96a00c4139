"""Raw test documents → ``TestRecord``.

Accepts the documents the test-execution system writes (Mongo-style
``_id: {"$oid": ...}``, ``session_uuid4``, nested ``condition``) as well as
flattened rows from CSV / JSON Lines exports (``condition.amplitude``).
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from testlab_insights.discovery.models import TestCategory, TestOutcome, TestRecord

logger = logging.getLogger(__name__)

_KNOWN_FIELDS = frozenset({
    "_id", "id", "name", "originalname", "description", "session_uuid4", "session_id",
    "start", "stop", "duration", "category", "test_type", "outcome",
    "passed", "failed", "skipped", "error",
    "rating", "multiplier", "trip_time", "trip_value", "upper_limit",
})


def _to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _to_text(value: Any) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value)


def _record_id(doc: dict) -> str | None:
    raw = doc.get("_id", doc.get("id"))
    if isinstance(raw, dict):
        raw = raw.get("$oid")
    if raw is None:
        raw = doc.get("_id.$oid")
    text = _to_text(raw)
    return text or None


def _declared_category(doc: dict) -> TestCategory | None:
    raw = doc.get("category") or doc.get("test_type")
    if not raw:
        return None
    for category in TestCategory:
        if category is not TestCategory.ALL and category.value.lower() == str(raw).strip().lower():
            return category
    logger.debug("Ignoring unknown declared category %r", raw)
    return None


def _amplitude(doc: dict) -> float | None:
    condition = doc.get("condition")
    if isinstance(condition, dict):
        value = _to_float(condition.get("amplitude"))
        if value is not None:
            return value
    for key in ("condition.amplitude", "param_amplitude"):
        value = _to_float(doc.get(key))
        if value is not None:
            return value
    return None


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def normalise_outcome(doc: dict) -> TestOutcome:
    """Resolve an explicit outcome.

    Order: ``outcome`` string, then boolean flags, then (trip tests without
    any flag) presence of a trip measurement means passed.
    """
    raw = doc.get("outcome")
    if isinstance(raw, str):
        try:
            return TestOutcome(raw.strip().lower())
        except ValueError:
            logger.debug("Unknown outcome %r", raw)

    for key, outcome in (
        ("error", TestOutcome.ERROR),
        ("failed", TestOutcome.FAILED),
        ("skipped", TestOutcome.SKIPPED),
        ("passed", TestOutcome.PASSED),
    ):
        if _flag(doc.get(key)):
            return outcome

    has_flags = any(doc.get(k) is not None for k in ("passed", "failed", "skipped", "error"))
    if not has_flags and (
        _to_float(doc.get("trip_time")) is not None or _to_float(doc.get("trip_value")) is not None
    ):
        logger.debug("Outcome inferred as passed from trip measurement for %s", _record_id(doc))
        return TestOutcome.PASSED
    return TestOutcome.UNKNOWN


def record_from_document(doc: dict) -> TestRecord:
    """Build a ``TestRecord`` from a raw document.

    Raises:
        ValueError: when the document has no usable ``start`` timestamp or
            neither ``duration`` nor ``stop``.
    """
    start = _to_float(doc.get("start"))
    if start is None:
        raise ValueError("document has no numeric 'start'")
    stop = _to_float(doc.get("stop"))
    duration = _to_float(doc.get("duration"))
    if duration is None:
        if stop is None:
            raise ValueError("document has neither 'duration' nor 'stop'")
        duration = max(stop - start, 0.0)

    rating = doc.get("rating")
    if isinstance(rating, (int, float)) and not isinstance(rating, bool):
        rating = _to_float(rating)
    elif rating is not None:
        rating = _to_text(rating) or None

    session = _to_text(doc.get("session_uuid4", doc.get("session_id"))) or None
    record_id = _record_id(doc) or f"{session or 'record'}:{start:g}"

    return TestRecord(
        id=record_id,
        start=start,
        duration=duration,
        stop=stop,
        name=_to_text(doc.get("name")),
        originalname=_to_text(doc.get("originalname")),
        description=_to_text(doc.get("description")),
        session_id=session,
        category=_declared_category(doc),
        outcome=normalise_outcome(doc),
        rating=rating,
        multiplier=_to_float(doc.get("multiplier")),
        amplitude=_amplitude(doc),
        trip_time=_to_float(doc.get("trip_time")),
        trip_value=_to_float(doc.get("trip_value")),
        upper_limit=_to_float(doc.get("upper_limit")),
        extra={k: v for k, v in doc.items() if k not in _KNOWN_FIELDS},
    )


def records_from_documents(docs: list[dict]) -> list[TestRecord]:
    """Convert documents, skipping (and logging) the ones that cannot be parsed."""
    records: list[TestRecord] = []
    skipped = 0
    for doc in docs:
        try:
            records.append(record_from_document(doc))
        except ValueError as exc:
            skipped += 1
            logger.warning("Skipping malformed test document %s: %s", _record_id(doc), exc)
    if skipped:
        logger.info("Parsed %d test records, skipped %d", len(records), skipped)
    return records


def _frame_to_documents(df: pd.DataFrame) -> list[dict]:
    # Replace NaN/NaT with None so missing cells read as absent fields
    return df.replace({np.nan: None}).to_dict(orient="records")


def load_documents(path: str | Path) -> list[dict]:
    """Read raw documents from a ``.json`` array, ``.jsonl`` export or ``.csv`` file."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return _frame_to_documents(pd.read_csv(path))
    if suffix in (".jsonl", ".ndjson"):
        return _frame_to_documents(pd.read_json(path, lines=True, convert_dates=False))
    if suffix == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
        return data if isinstance(data, list) else [data]
    raise ValueError(f"Unsupported file type: {path.suffix}")
