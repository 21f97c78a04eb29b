"""
Dependency injection for FastAPI.
"""
from typing import Annotated, Optional
from fastapi import Depends, Header, HTTPException, Path, status

from plantation.domain.models import (
    PlantLot,
    Principal,
    REPORT_VIEWER_ROLES,
    UserRole,
)
from plantation.infrastructure.backend_api_client import (
    BackendAPIError,
    PlantationAPIClient,
    get_api_client,
)
from plantation.services.domain.dashboard_aggregator import (
    DashboardAggregator,
    dashboard_config_from_settings,
)
from plantation.services.domain.harvest_readiness_planner import HarvestReadinessPlanner
from plantation.services.domain.health_trend_summarizer import (
    HealthTrendSummarizer,
    config_from_settings,
)
from plantation.services.application.analytics_service import AnalyticsService


def get_harvest_readiness_planner() -> HarvestReadinessPlanner:
    """
    Dependency factory for HarvestReadinessPlanner.

    Returns:
        HarvestReadinessPlanner instance
    """
    return HarvestReadinessPlanner()


def get_health_trend_summarizer() -> HealthTrendSummarizer:
    """
    Dependency factory for HealthTrendSummarizer.

    Returns:
        HealthTrendSummarizer configured from application settings
    """
    return HealthTrendSummarizer(config=config_from_settings())


def get_dashboard_aggregator(
    planner: Annotated[HarvestReadinessPlanner, Depends(get_harvest_readiness_planner)],
) -> DashboardAggregator:
    """
    Dependency factory for DashboardAggregator.

    Returns:
        DashboardAggregator configured from application settings
    """
    return DashboardAggregator(planner=planner, config=dashboard_config_from_settings())


def get_analytics_service(
    api_client: Annotated[PlantationAPIClient, Depends(get_api_client)],
    planner: Annotated[HarvestReadinessPlanner, Depends(get_harvest_readiness_planner)],
    summarizer: Annotated[HealthTrendSummarizer, Depends(get_health_trend_summarizer)],
    dashboard: Annotated[DashboardAggregator, Depends(get_dashboard_aggregator)],
) -> AnalyticsService:
    """
    Dependency factory for AnalyticsService.

    Args:
        api_client: Backend API client (injected)
        planner: Harvest readiness planner (injected)
        summarizer: Health trend summarizer (injected)
        dashboard: Dashboard aggregator (injected)

    Returns:
        AnalyticsService instance
    """
    return AnalyticsService(
        api_client=api_client,
        planner=planner,
        summarizer=summarizer,
        dashboard=dashboard,
    )


AnalyticsServiceDep = Annotated[AnalyticsService, Depends(get_analytics_service)]


# ============================================================
# Access control
# ============================================================

def get_principal(
    x_user_id: Annotated[Optional[int], Header(description="Authenticated user id")] = None,
    x_user_role: Annotated[Optional[str], Header(description="Authenticated user role")] = None,
) -> Principal:
    """
    Read the caller identity forwarded by the authentication gateway.

    Raises:
        HTTPException: 401 when the identity headers are missing,
            403 when the role is unknown
    """
    if x_user_id is None or not x_user_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication headers",
        )
    try:
        role = UserRole(x_user_role.strip().lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Unknown role '{x_user_role}'",
        )
    return Principal(user_id=x_user_id, role=role)


PrincipalDep = Annotated[Principal, Depends(get_principal)]


def require_report_viewer(principal: PrincipalDep) -> Principal:
    """Allow managers and analytics users only."""
    if principal.role not in REPORT_VIEWER_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )
    return principal


ReportViewerDep = Annotated[Principal, Depends(require_report_viewer)]


async def get_accessible_plant_lot(
    plant_lot_id: Annotated[int, Path(ge=1, description="Unique identifier for the plant lot")],
    principal: PrincipalDep,
    analytics_service: AnalyticsServiceDep,
) -> PlantLot:
    """
    Resolve the requested plant lot and check the caller may see it.

    Raises:
        HTTPException: 404 if the lot does not exist, 403 if it is not
            visible to the caller, 502 if the backend fails
    """
    try:
        lot = await analytics_service.get_plant_lot(plant_lot_id)
    except BackendAPIError as e:
        if e.status_code == status.HTTP_404_NOT_FOUND:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Plant lot with ID '{plant_lot_id}' not found",
            )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to fetch plant lot: {e.message}",
        )

    if not principal.can_view_lot(lot):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Plant lot is not assigned to you",
        )
    return lot


AccessiblePlantLotDep = Annotated[PlantLot, Depends(get_accessible_plant_lot)]
