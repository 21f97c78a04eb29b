"""
API router for plantation dashboard endpoints.
"""
from datetime import datetime, timezone
from typing import Annotated, Optional
from fastapi import APIRouter, HTTPException, Query, Request

from plantation.api.dependencies import AnalyticsServiceDep, ReportViewerDep
from plantation.api.rate_limit import REPORT_RATE_LIMIT, limiter
from plantation.api.v1.models.responses import (
    DashboardSummaryResponse,
    SystemAlertsResponse,
    ZoneAnalyticsResponse,
)
from plantation.infrastructure.backend_api_client import BackendAPIError


router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"],
)

_ERROR_RESPONSES = {
    401: {"description": "Missing authentication headers"},
    403: {"description": "Insufficient permissions"},
    429: {"description": "Rate limit exceeded"},
    502: {"description": "Backend API failure"},
}

AsOfQuery = Annotated[
    Optional[datetime],
    Query(description="Reference time of the figures (defaults to now)")
]


def _bad_gateway(e: BackendAPIError) -> HTTPException:
    return HTTPException(
        status_code=502,
        detail=f"Failed to fetch plantation data: {e.message}"
    )


@router.get(
    "/summary",
    response_model=DashboardSummaryResponse,
    summary="Get dashboard summary",
    description="""
    Plantation-wide headline figures.

    Covers lot, zone and species counts, health log volume, the average health
    score and disease detection rate, current yield, lots being harvested,
    overdue and recently planted lots, and image analysis outcomes.

    Available to managers and analytics users.
    """,
    responses=_ERROR_RESPONSES,
)
@limiter.limit(REPORT_RATE_LIMIT)
async def get_dashboard_summary(
    request: Request,
    analytics_service: AnalyticsServiceDep,
    principal: ReportViewerDep,
    as_of: AsOfQuery = None,
) -> DashboardSummaryResponse:
    try:
        summary = await analytics_service.get_dashboard_summary(as_of)
    except BackendAPIError as e:
        raise _bad_gateway(e)

    return DashboardSummaryResponse(generated_at=datetime.now(timezone.utc), summary=summary)


@router.get(
    "/zones",
    response_model=ZoneAnalyticsResponse,
    summary="Get zone analytics",
    description="""
    Per-zone totals for every active zone: lots, active lots, current yield,
    average health score, species mix and recent health log activity.

    Available to managers and analytics users.
    """,
    responses=_ERROR_RESPONSES,
)
@limiter.limit(REPORT_RATE_LIMIT)
async def get_zone_analytics(
    request: Request,
    analytics_service: AnalyticsServiceDep,
    principal: ReportViewerDep,
    as_of: AsOfQuery = None,
) -> ZoneAnalyticsResponse:
    try:
        zones = await analytics_service.get_zone_analytics(as_of)
    except BackendAPIError as e:
        raise _bad_gateway(e)

    return ZoneAnalyticsResponse(generated_at=datetime.now(timezone.utc), zones=zones)


@router.get(
    "/alerts",
    response_model=SystemAlertsResponse,
    summary="Get system alerts",
    description="""
    Plantation-wide alerts raised from the dashboard summary: repeated image
    analysis failures, overdue harvests and a high disease detection rate.

    Available to managers and analytics users.
    """,
    responses=_ERROR_RESPONSES,
)
@limiter.limit(REPORT_RATE_LIMIT)
async def get_system_alerts(
    request: Request,
    analytics_service: AnalyticsServiceDep,
    principal: ReportViewerDep,
    as_of: AsOfQuery = None,
) -> SystemAlertsResponse:
    try:
        alerts = await analytics_service.get_system_alerts(as_of)
    except BackendAPIError as e:
        raise _bad_gateway(e)

    return SystemAlertsResponse(
        generated_at=datetime.now(timezone.utc),
        alerts=alerts,
        count=len(alerts),
    )
