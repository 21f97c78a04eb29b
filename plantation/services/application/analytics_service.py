"""
Application service: Orchestration layer for plantation analytics.
"""
from datetime import date, datetime, timezone
from typing import Optional

from plantation.domain.models import (
    Alert,
    DashboardSummary,
    DeliveryReadinessReport,
    HealthObservation,
    HealthTrendReport,
    PlantLot,
    PlantSpecies,
    Zone,
    ZoneAnalytics,
)
from plantation.infrastructure.backend_api_client import PlantationAPIClient
from plantation.services.domain.dashboard_aggregator import DashboardAggregator
from plantation.services.domain.harvest_readiness_planner import HarvestReadinessPlanner
from plantation.services.domain.health_trend_summarizer import HealthTrendSummarizer


class AnalyticsService:
    """
    Application service for delivery and health analytics.

    Orchestrates data fetching and business logic execution.
    Follows the application layer pattern - no business logic here,
    only coordination between infrastructure and domain layers.
    Every call fetches its own snapshot; nothing is cached between requests.
    """

    def __init__(
        self,
        api_client: PlantationAPIClient,
        planner: HarvestReadinessPlanner,
        summarizer: HealthTrendSummarizer,
        dashboard: Optional[DashboardAggregator] = None,
    ):
        """
        Initialize the service with dependencies.

        Args:
            api_client: Backend API client for data fetching
            planner: Harvest readiness planner
            summarizer: Health trend summarizer
            dashboard: Dashboard aggregator; defaults to one sharing the planner
        """
        self.api_client = api_client
        self.planner = planner
        self.summarizer = summarizer
        self.dashboard = dashboard or DashboardAggregator(planner=planner)

    async def get_delivery_readiness(
        self,
        target_date: date,
        zone_id: Optional[int] = None,
        as_of: Optional[date] = None,
    ) -> DeliveryReadinessReport:
        """
        Plan deliveries for a target date.

        This method orchestrates:
        1. Fetching plant lots (optionally for one zone)
        2. Fetching species and resolving each lot's species
        3. Running the readiness planner
        4. Attaching lots that are past their expected harvest date

        Args:
            target_date: Delivery date (inclusive)
            zone_id: Optional zone filter
            as_of: Reference date for overdue lots (defaults to today, UTC)

        Returns:
            DeliveryReadinessReport

        Raises:
            BackendAPIError: If data fetching fails
        """
        lots = await self.api_client.get_plant_lots(zone_id=zone_id)
        species = await self.api_client.get_species()

        resolved = self._resolve_species(lots, species)

        report = self.planner.plan_readiness(resolved, target_date)
        report.overdue_lots = self.planner.find_overdue_lots(
            resolved, as_of or datetime.now(timezone.utc).date()
        )
        return report

    async def get_plant_lot(self, plant_lot_id: int) -> PlantLot:
        """
        Fetch a single plant lot.

        Raises:
            BackendAPIError: If the lot does not exist or fetching fails
        """
        return await self.api_client.get_plant_lot(plant_lot_id)

    async def get_health_trends(
        self,
        plant_lot_id: int,
        as_of: Optional[datetime] = None,
        comparison_window_days: Optional[int] = None,
    ) -> HealthTrendReport:
        """
        Summarise the health history of a plant lot.

        Args:
            plant_lot_id: Unique identifier for the plant lot
            as_of: Reference time (defaults to now, UTC)
            comparison_window_days: Comparison window length

        Returns:
            HealthTrendReport

        Raises:
            BackendAPIError: If data fetching fails
        """
        observations = await self.api_client.get_health_logs(plant_lot_id)

        return self.summarizer.summarize_trends(
            observations=observations,
            as_of=as_of or datetime.now(timezone.utc),
            comparison_window_days=comparison_window_days,
            plant_lot_id=plant_lot_id,
        )

    async def get_zone_analytics(self, as_of: Optional[datetime] = None) -> list[ZoneAnalytics]:
        """
        Aggregate lots and health logs per active zone.

        Raises:
            BackendAPIError: If data fetching fails
        """
        zones, lots, observations = await self._dashboard_snapshot()
        return self.dashboard.summarize_zones(
            zones, lots, observations, as_of or datetime.now(timezone.utc)
        )

    async def get_dashboard_summary(self, as_of: Optional[datetime] = None) -> DashboardSummary:
        """
        Compute plantation-wide headline figures.

        Raises:
            BackendAPIError: If data fetching fails
        """
        zones, lots, observations = await self._dashboard_snapshot()
        return self.dashboard.build_summary(
            zones, lots, observations, as_of or datetime.now(timezone.utc)
        )

    async def get_system_alerts(self, as_of: Optional[datetime] = None) -> list[Alert]:
        """
        Raise plantation-wide alerts from a fresh dashboard summary.

        Raises:
            BackendAPIError: If data fetching fails
        """
        summary = await self.get_dashboard_summary(as_of)
        return self.dashboard.build_system_alerts(summary)

    async def _dashboard_snapshot(
        self,
    ) -> tuple[list[Zone], list[PlantLot], list[HealthObservation]]:
        """Fetch zones, species-resolved lots and every health log."""
        zones = await self.api_client.get_zones()
        lots = await self.api_client.get_plant_lots()
        species = await self.api_client.get_species()
        observations = await self.api_client.get_health_logs()
        return zones, self._resolve_species(lots, species), observations

    def _resolve_species(
        self,
        lots: list[PlantLot],
        species: list[PlantSpecies],
    ) -> list[PlantLot]:
        """Attach the full species record to each lot by species id."""
        by_id = {s.id: s for s in species}
        return [
            lot.model_copy(update={"species": by_id.get(lot.species_id, lot.species)})
            for lot in lots
        ]
