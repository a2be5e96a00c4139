"""Async client for a remote ``/test-results`` endpoint."""

import logging
from datetime import datetime
from typing import Any

import httpx

from testlab_insights.discovery.classifier import TypeFilter

logger = logging.getLogger(__name__)


async def pull_test_results(
    url: str,
    date_from: datetime,
    date_to: datetime,
    type_filter: TypeFilter = None,
    *,
    timeout: float | None = None,
    headers: dict[str, str] | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[dict[str, Any]]:
    """GET *url* with ISO-8601 bounds and return the raw JSON documents.

    Raises:
        httpx.HTTPError: on transport failures and non-2xx responses.
        ValueError: when the body is not a JSON array / object.
    """
    params = {"startDate": date_from.isoformat(), "endDate": date_to.isoformat()}
    if type_filter is not None:
        params["testType"] = type_filter.value

    if client is None:
        # timeout=None keeps httpx's default rather than disabling it
        client_kwargs = {"timeout": timeout} if timeout is not None else {}
        async with httpx.AsyncClient(**client_kwargs) as own_client:
            resp = await own_client.get(url, headers=headers or {}, params=params)
    else:
        resp = await client.get(url, headers=headers or {}, params=params)
    resp.raise_for_status()
    data = resp.json()

    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ValueError(f"Unexpected payload from {url}: {type(data).__name__}")

    logger.info("Fetched %d test results from %s", len(data), url)
    return data
