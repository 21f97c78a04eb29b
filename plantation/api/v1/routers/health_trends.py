"""
API router for plant lot health trend endpoints.
"""
from datetime import datetime, timezone
from typing import Annotated, Optional
from fastapi import APIRouter, HTTPException, Query, Request

from plantation.api.dependencies import AccessiblePlantLotDep, AnalyticsServiceDep
from plantation.api.rate_limit import REPORT_RATE_LIMIT, limiter
from plantation.api.v1.models.responses import HealthTrendsResponse
from plantation.infrastructure.backend_api_client import BackendAPIError


router = APIRouter(
    prefix="/plant-lots",
    tags=["health"],
)


@router.get(
    "/{plant_lot_id}/health-trends",
    response_model=HealthTrendsResponse,
    summary="Get health trends for a plant lot",
    description="""
    Summarise the health log history of a plant lot.

    The report compares the mean health score of the most recent window
    against the window before it, tracks disease detection and environmental
    metrics over the same windows, and derives recommendations and alerts.

    Managers and analytics users can query any lot; field staff only lots
    assigned to them.
    """,
    responses={
        401: {"description": "Missing authentication headers"},
        403: {"description": "Lot not visible to the caller"},
        404: {"description": "Plant lot not found"},
        429: {"description": "Rate limit exceeded"},
        502: {"description": "Backend API failure"},
    }
)
@limiter.limit(REPORT_RATE_LIMIT)
async def get_health_trends(
    request: Request,
    lot: AccessiblePlantLotDep,
    analytics_service: AnalyticsServiceDep,
    as_of: Annotated[
        Optional[datetime],
        Query(description="Reference time of the report (defaults to now)")
    ] = None,
    window_days: Annotated[
        Optional[int],
        Query(ge=1, le=365, description="Length of the comparison windows in days")
    ] = None,
) -> HealthTrendsResponse:
    """
    Get the health trend report of a plant lot.

    Args:
        request: Incoming request (required by the rate limiter)
        lot: Plant lot resolved from the path, checked against the caller
        analytics_service: Analytics service (injected dependency)
        as_of: Reference time
        window_days: Comparison window length

    Returns:
        HealthTrendsResponse

    Raises:
        HTTPException: If the backend call fails
    """
    try:
        report = await analytics_service.get_health_trends(
            lot.id,
            as_of=as_of,
            comparison_window_days=window_days,
        )
    except BackendAPIError as e:
        raise HTTPException(
            status_code=502,
            detail=f"Failed to fetch health logs: {e.message}"
        )

    return HealthTrendsResponse(
        plant_lot_id=lot.id,
        lot_number=lot.lot_number,
        generated_at=datetime.now(timezone.utc),
        report=report,
    )
