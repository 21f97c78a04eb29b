"""
Domain service: Plantation-wide dashboard aggregation.

Rolls plant lots, zones and health logs up into:
- Per-zone analytics (lot counts, yield, species mix, recent activity)
- A plantation summary (health, production and image analysis figures)
- System alerts derived from the summary
"""
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
import logging

from plantation.domain.models import (
    Alert,
    AlertPriority,
    AlertType,
    AnalysisPipelineHealth,
    AnalysisStatus,
    DashboardHealthMetrics,
    DashboardProductionMetrics,
    DashboardSummary,
    HealthObservation,
    PlantLot,
    PlantStatus,
    SpeciesCount,
    TERMINAL_STATUSES,
    Zone,
    ZoneAnalytics,
)
from plantation.services.domain.harvest_readiness_planner import HarvestReadinessPlanner
from plantation.utils.trend_math import is_finite_number, mean_or_none, rate_percent, to_utc
from plantation.config import settings

logger = logging.getLogger(__name__)


UNASSIGNED_SPECIES = "Unassigned"


@dataclass
class DashboardConfig:
    """Windows and alert thresholds for dashboard aggregation."""

    activity_days: int = 7
    """Health logs newer than this many days count as recent activity."""

    recently_planted_days: int = 30

    disease_alert_rate: float = 20.0
    """Plantation-wide disease rate (percent) above which an alert is raised."""

    failed_analysis_alert_count: int = 5


def dashboard_config_from_settings() -> DashboardConfig:
    return DashboardConfig(
        activity_days=settings.dashboard_activity_days,
        recently_planted_days=settings.recently_planted_days,
        disease_alert_rate=settings.system_disease_alert_rate,
        failed_analysis_alert_count=settings.failed_analysis_alert_count,
    )


class DashboardAggregator:
    """
    Domain service for plantation dashboards.

    Works on a snapshot of lots, zones and health logs. Health logs
    recorded after as_of are ignored.
    """

    def __init__(
        self,
        planner: Optional[HarvestReadinessPlanner] = None,
        config: Optional[DashboardConfig] = None,
    ):
        self.planner = planner or HarvestReadinessPlanner()
        self.config = config or dashboard_config_from_settings()

    def summarize_zones(
        self,
        zones: list[Zone],
        lots: list[PlantLot],
        observations: list[HealthObservation],
        as_of: datetime,
    ) -> list[ZoneAnalytics]:
        """
        Aggregate lots and health logs per active zone.

        Args:
            zones: Growing zones; inactive ones are left out
            lots: All plant lots, optionally with their species resolved
            observations: Plantation-wide health logs
            as_of: Reference time for recent activity

        Returns:
            ZoneAnalytics per active zone, ordered by zone name
        """
        reference = self._reference(as_of)
        history = self._history(observations, reference)
        activity_start = reference - timedelta(days=self.config.activity_days)

        lots_by_zone: dict[int, list[PlantLot]] = {}
        for lot in lots:
            if lot.zone_id is not None:
                lots_by_zone.setdefault(lot.zone_id, []).append(lot)

        analytics = []
        for zone in sorted((z for z in zones if z.is_active), key=lambda z: (z.name, z.id)):
            zone_lots = lots_by_zone.get(zone.id, [])
            lot_ids = {lot.id for lot in zone_lots}
            zone_history = [o for o in history if o.plant_lot_id in lot_ids]
            species = Counter(
                lot.species.name if lot.species else UNASSIGNED_SPECIES for lot in zone_lots
            )

            analytics.append(ZoneAnalytics(
                zone_id=zone.id,
                zone_name=zone.name,
                total_lots=len(zone_lots),
                active_lots=sum(1 for lot in zone_lots if lot.status not in TERMINAL_STATUSES),
                total_current_yield=_total_yield(zone_lots),
                average_health_score=mean_or_none(o.health_score for o in zone_history),
                species=[
                    SpeciesCount(species_name=name, lot_count=count)
                    for name, count in sorted(species.items())
                ],
                recent_activity=sum(1 for o in zone_history if o.recorded_at > activity_start),
            ))

        logger.info(f"Aggregated {len(analytics)} active zones from {len(lots)} lots")
        return analytics

    def build_summary(
        self,
        zones: list[Zone],
        lots: list[PlantLot],
        observations: list[HealthObservation],
        as_of: datetime,
    ) -> DashboardSummary:
        """
        Compute the plantation-wide headline figures.

        Ready for harvest counts lots currently being harvested. Overdue lots
        follow the same rule as the delivery readiness report.

        Args:
            zones: Growing zones
            lots: All plant lots
            observations: Plantation-wide health logs
            as_of: Reference time of the summary

        Returns:
            DashboardSummary
        """
        reference = self._reference(as_of)
        history = self._history(observations, reference)
        activity_start = reference - timedelta(days=self.config.activity_days)
        planted_since = (reference - timedelta(days=self.config.recently_planted_days)).date()

        completed = sum(1 for o in history if o.analysis_status == AnalysisStatus.COMPLETED)
        failed = sum(1 for o in history if o.analysis_status == AnalysisStatus.FAILED)

        summary = DashboardSummary(
            as_of=reference,
            total_plant_lots=len(lots),
            total_active_zones=sum(1 for z in zones if z.is_active),
            total_species=len({lot.species_id for lot in lots if lot.species_id is not None}),
            health=DashboardHealthMetrics(
                total_health_logs=len(history),
                recent_health_logs=sum(1 for o in history if o.recorded_at > activity_start),
                average_health_score=mean_or_none(o.health_score for o in history),
                disease_detection_rate=rate_percent(
                    sum(1 for o in history if o.disease_detected), len(history)
                ),
            ),
            production=DashboardProductionMetrics(
                total_current_yield=_total_yield(lots),
                ready_for_harvest=sum(1 for lot in lots if lot.status == PlantStatus.HARVESTING),
                overdue_lots=len(self.planner.find_overdue_lots(lots, reference)),
                recently_planted=sum(
                    1 for lot in lots if planted_since <= lot.planted_date <= reference.date()
                ),
            ),
            analysis=AnalysisPipelineHealth(
                success_rate=rate_percent(completed, completed + failed),
                pending=sum(1 for o in history if o.analysis_status == AnalysisStatus.PENDING),
                failed=failed,
            ),
        )

        logger.info(
            f"Dashboard summary: {summary.total_plant_lots} lots, "
            f"{summary.health.total_health_logs} health logs, "
            f"{summary.production.overdue_lots} overdue"
        )
        return summary

    def build_system_alerts(self, summary: DashboardSummary) -> list[Alert]:
        """
        Raise plantation-wide alerts from a dashboard summary.

        Args:
            summary: Summary produced by build_summary

        Returns:
            Alerts in a fixed order: analysis failures, overdue harvests,
            disease rate
        """
        alerts = []

        if summary.analysis.failed > self.config.failed_analysis_alert_count:
            alerts.append(Alert(
                type=AlertType.ERROR,
                title="High Image Analysis Failure Count",
                message=f"{summary.analysis.failed} image analyses failed",
                priority=AlertPriority.HIGH,
            ))

        if summary.production.overdue_lots > 0:
            alerts.append(Alert(
                type=AlertType.WARNING,
                title="Overdue Harvests",
                message=f"{summary.production.overdue_lots} lots past expected harvest date",
                priority=AlertPriority.HIGH,
            ))

        rate = summary.health.disease_detection_rate
        if rate is not None and rate > self.config.disease_alert_rate:
            alerts.append(Alert(
                type=AlertType.ERROR,
                title="High Disease Detection Rate",
                message=f"{rate:.1f}% disease detection rate",
                priority=AlertPriority.HIGH,
            ))

        return alerts

    def _reference(self, as_of: datetime) -> datetime:
        if not isinstance(as_of, datetime):
            raise TypeError(f"as_of must be a datetime, got {type(as_of).__name__}")
        return to_utc(as_of)

    def _history(
        self,
        observations: list[HealthObservation],
        reference: datetime,
    ) -> list[HealthObservation]:
        normalised = [
            o.model_copy(update={"recorded_at": to_utc(o.recorded_at)}) for o in observations
        ]
        return [o for o in normalised if o.recorded_at <= reference]


def _total_yield(lots: list[PlantLot]) -> float:
    return float(sum(lot.current_yield for lot in lots if is_finite_number(lot.current_yield)))
