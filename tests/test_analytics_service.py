"""
Unit tests for the analytics application service.

The backend client is mocked; planner and summarizer run for real.
"""
import pytest
from datetime import date, datetime, timezone

from plantation.domain.models import PlantLot, PlantStatus, TrendDirection
from plantation.infrastructure.backend_api_client import BackendAPIError
from plantation.services.application.analytics_service import AnalyticsService
from plantation.services.domain.harvest_readiness_planner import HarvestReadinessPlanner
from plantation.services.domain.health_rules import TrendConfig
from plantation.services.domain.health_trend_summarizer import HealthTrendSummarizer

from tests.factories import AS_OF


@pytest.fixture
def service(mock_api_client) -> AnalyticsService:
    return AnalyticsService(
        api_client=mock_api_client,
        planner=HarvestReadinessPlanner(),
        summarizer=HealthTrendSummarizer(config=TrendConfig()),
    )


class TestDeliveryReadiness:
    """Tests for delivery readiness orchestration."""

    @pytest.mark.asyncio
    async def test_report_and_overdue(self, service, mock_api_client):
        report = await service.get_delivery_readiness(
            date(2024, 6, 10), zone_id=1, as_of=date(2024, 6, 8)
        )

        mock_api_client.get_plant_lots.assert_awaited_once_with(zone_id=1)
        mock_api_client.get_species.assert_awaited_once()
        assert report.total_ready_lots == 2
        assert report.total_estimated_yield == pytest.approx(260.0)
        # LOT-001 (mature, expected 2024-06-05) is still in the field
        assert [lot.lot_number for lot in report.overdue_lots] == ["LOT-001"]

    @pytest.mark.asyncio
    async def test_species_resolved_by_id(self, service, mock_api_client, tomato):
        mock_api_client.get_plant_lots.return_value = [
            PlantLot(
                id=10, lot_number="LOT-010", species_id=tomato.id, plant_count=4,
                planted_date=date(2024, 3, 1), expected_harvest_date=date(2024, 6, 1),
                status=PlantStatus.GROWING,
            ),
            PlantLot(
                id=11, lot_number="LOT-011", species_id=99, plant_count=3,
                planted_date=date(2024, 3, 1), expected_harvest_date=date(2024, 6, 1),
                status=PlantStatus.GROWING,
            ),
        ]

        report = await service.get_delivery_readiness(date(2024, 6, 10), as_of=date(2024, 6, 1))

        assert [group.species_name for group in report.species_breakdown] == ["Tomato"]
        assert report.species_breakdown[0].total_estimated_yield == pytest.approx(10.0)
        assert [lot.lot_id for lot in report.unassigned_lots] == [11]
        assert report.unassigned_plants == 3

    @pytest.mark.asyncio
    async def test_backend_error_propagates(self, service, mock_api_client):
        mock_api_client.get_plant_lots.side_effect = BackendAPIError("down")

        with pytest.raises(BackendAPIError):
            await service.get_delivery_readiness(date(2024, 6, 10))


class TestHealthTrends:
    """Tests for health trend orchestration."""

    @pytest.mark.asyncio
    async def test_health_trends(self, service, mock_api_client):
        report = await service.get_health_trends(1, as_of=AS_OF, comparison_window_days=14)

        mock_api_client.get_health_logs.assert_awaited_once_with(1)
        assert report.plant_lot_id == 1
        assert report.historical_comparison.trend_direction == TrendDirection.DECLINING

    @pytest.mark.asyncio
    async def test_no_logs(self, service, mock_api_client):
        mock_api_client.get_health_logs.return_value = []

        report = await service.get_health_trends(1, as_of=AS_OF)

        assert report.insufficient_data is True

    @pytest.mark.asyncio
    async def test_get_plant_lot(self, service, mock_api_client):
        mock_api_client.get_plant_lot.side_effect = BackendAPIError("missing", status_code=404)

        with pytest.raises(BackendAPIError) as exc_info:
            await service.get_plant_lot(123)

        assert exc_info.value.status_code == 404


class TestDashboard:
    """Tests for dashboard orchestration."""

    @pytest.mark.asyncio
    async def test_zone_analytics(self, service, mock_api_client):
        zones = await service.get_zone_analytics(as_of=AS_OF)

        mock_api_client.get_zones.assert_awaited_once()
        mock_api_client.get_health_logs.assert_awaited_once_with()
        assert [zone.zone_name for zone in zones] == ["Greenhouse", "North Field"]
        north = zones[1]
        assert north.total_lots == 2
        assert north.average_health_score == pytest.approx(75.0)
        assert north.recent_activity == 2
        assert [s.species_name for s in north.species] == ["Basil", "Tomato"]

    @pytest.mark.asyncio
    async def test_species_resolved_for_zones(self, service, mock_api_client, tomato):
        mock_api_client.get_plant_lots.return_value = [
            PlantLot(
                id=10, lot_number="LOT-010", species_id=tomato.id, zone_id=2, plant_count=4,
                planted_date=date(2024, 3, 1), status=PlantStatus.GROWING,
            ),
        ]

        zones = await service.get_zone_analytics(as_of=AS_OF)

        assert [s.species_name for s in zones[0].species] == ["Tomato"]

    @pytest.mark.asyncio
    async def test_dashboard_summary(self, service, mock_api_client):
        summary = await service.get_dashboard_summary(as_of=AS_OF)

        mock_api_client.get_plant_lots.assert_awaited_once_with()
        assert summary.total_plant_lots == 4
        assert summary.total_active_zones == 2
        assert summary.health.total_health_logs == 4
        assert summary.health.disease_detection_rate == 0.0
        assert summary.production.overdue_lots == 0
        assert summary.analysis.pending == 4

    @pytest.mark.asyncio
    async def test_system_alerts(self, service):
        alerts = await service.get_system_alerts(as_of=datetime(2024, 6, 8, tzinfo=timezone.utc))

        assert [alert.title for alert in alerts] == ["Overdue Harvests"]

    @pytest.mark.asyncio
    async def test_backend_error_propagates(self, service, mock_api_client):
        mock_api_client.get_zones.side_effect = BackendAPIError("down")

        with pytest.raises(BackendAPIError):
            await service.get_dashboard_summary(as_of=AS_OF)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
