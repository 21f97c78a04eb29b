"""
API router for delivery readiness endpoints.
"""
from datetime import date, datetime, timezone
from typing import Annotated, Optional
from fastapi import APIRouter, HTTPException, Query, Request

from plantation.api.dependencies import AnalyticsServiceDep, ReportViewerDep
from plantation.api.rate_limit import REPORT_RATE_LIMIT, limiter
from plantation.api.v1.models.responses import DeliveryReadinessResponse
from plantation.infrastructure.backend_api_client import BackendAPIError


router = APIRouter(
    prefix="/delivery",
    tags=["delivery"],
)


@router.get(
    "/readiness",
    response_model=DeliveryReadinessResponse,
    summary="Get delivery readiness",
    description="""
    List the plant lots that will be harvest-ready by a target delivery date.

    This endpoint:
    1. Fetches plant lots (optionally for one zone) and species from the backend
    2. Keeps lots whose expected harvest date is on or before the target date
       and that are neither harvested nor dead
    3. Groups ready lots by species with plant and estimated yield totals
    4. Lists lots that are past their expected harvest date and still in the field

    Available to managers and analytics users.
    """,
    responses={
        401: {"description": "Missing authentication headers"},
        403: {"description": "Insufficient permissions"},
        429: {"description": "Rate limit exceeded"},
        502: {"description": "Backend API failure"},
    }
)
@limiter.limit(REPORT_RATE_LIMIT)
async def get_delivery_readiness(
    request: Request,
    target_date: Annotated[date, Query(description="Delivery date (inclusive)")],
    analytics_service: AnalyticsServiceDep,
    principal: ReportViewerDep,
    zone_id: Annotated[Optional[int], Query(ge=1, description="Restrict to one zone")] = None,
) -> DeliveryReadinessResponse:
    """
    Get the delivery readiness report for a target date.

    Args:
        request: Incoming request (required by the rate limiter)
        target_date: Delivery date (inclusive)
        analytics_service: Analytics service (injected dependency)
        principal: Authenticated report viewer
        zone_id: Optional zone filter

    Returns:
        DeliveryReadinessResponse

    Raises:
        HTTPException: If the backend call fails
    """
    try:
        report = await analytics_service.get_delivery_readiness(target_date, zone_id=zone_id)
    except BackendAPIError as e:
        raise HTTPException(
            status_code=502,
            detail=f"Failed to fetch plantation data: {e.message}"
        )

    return DeliveryReadinessResponse(
        zone_id=zone_id,
        generated_at=datetime.now(timezone.utc),
        report=report,
    )
