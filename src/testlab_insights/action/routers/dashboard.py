"""Dashboard routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from testlab_insights.action.dependencies import (
    get_dashboard_service,
    parse_iso_datetime,
    parse_test_type,
)
from testlab_insights.discovery.engine import DashboardService, InvalidQueryError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard/metrics")
async def dashboard_metrics(
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    testType: Optional[str] = None,
    service: DashboardService = Depends(get_dashboard_service),
) -> dict:
    """Aggregate metrics for the selected window and test type."""
    date_from = parse_iso_datetime(startDate, "startDate")
    date_to = parse_iso_datetime(endDate, "endDate")
    type_filter = parse_test_type(testType)

    try:
        metrics = await service.get_metrics(date_from, date_to, type_filter)
    except InvalidQueryError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return metrics.to_dict()
