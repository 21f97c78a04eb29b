"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- Sample species, plant lots and health observations
- Mock API client
- FastAPI test client and identity headers
"""
import pytest
from datetime import date
from typing import AsyncGenerator
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from plantation.main import app
from plantation.domain.models import (
    HealthMetrics,
    HealthObservation,
    PlantLot,
    PlantSpecies,
    PlantStatus,
    Zone,
)
from plantation.infrastructure.backend_api_client import PlantationAPIClient

from tests.factories import make_observation


# ============================================================
# Sample Data Fixtures
# ============================================================

@pytest.fixture
def tomato() -> PlantSpecies:
    return PlantSpecies(id=1, name="Tomato", expected_yield_per_plant=2.5, yield_unit="kg")


@pytest.fixture
def basil() -> PlantSpecies:
    return PlantSpecies(id=2, name="Basil", expected_yield_per_plant=0.2, yield_unit="kg")


@pytest.fixture
def sample_lots(tomato, basil) -> list[PlantLot]:
    """Lots around a 2024-06-10 target date."""
    return [
        PlantLot(
            id=1, lot_number="LOT-001", species=tomato, species_id=1, zone_id=1,
            plant_count=100, planted_date=date(2024, 3, 1),
            expected_harvest_date=date(2024, 6, 5), status=PlantStatus.MATURE,
        ),
        PlantLot(
            id=2, lot_number="LOT-002", species=basil, species_id=2, zone_id=1,
            plant_count=50, planted_date=date(2024, 4, 1),
            expected_harvest_date=date(2024, 6, 10), status=PlantStatus.GROWING,
        ),
        PlantLot(
            id=3, lot_number="LOT-003", species=tomato, species_id=1, zone_id=2,
            plant_count=80, planted_date=date(2024, 4, 1),
            expected_harvest_date=date(2024, 6, 20), status=PlantStatus.GROWING,
        ),
        PlantLot(
            id=4, lot_number="LOT-004", species=tomato, species_id=1, zone_id=2,
            plant_count=60, planted_date=date(2024, 2, 1),
            expected_harvest_date=date(2024, 5, 20), status=PlantStatus.HARVESTED,
        ),
    ]


@pytest.fixture
def declining_history() -> list[HealthObservation]:
    """Prior window around 80, recent window around 70."""
    return [
        make_observation(20, score=80, metrics=HealthMetrics(soil_moisture=40.0)),
        make_observation(16, score=80, metrics=HealthMetrics(soil_moisture=40.0)),
        make_observation(5, score=70, metrics=HealthMetrics(soil_moisture=30.0)),
        make_observation(2, score=70, metrics=HealthMetrics(soil_moisture=30.0)),
    ]


# ============================================================
# Mock API Client Fixtures
# ============================================================

@pytest.fixture
def mock_api_client(sample_lots, tomato, basil, declining_history):
    """Create a mock backend API client."""
    mock_client = AsyncMock(spec=PlantationAPIClient)
    mock_client.get_plant_lots.return_value = sample_lots
    mock_client.get_species.return_value = [tomato, basil]
    mock_client.get_plant_lot.return_value = sample_lots[0]
    mock_client.get_health_logs.return_value = declining_history
    mock_client.get_zones.return_value = [
        Zone(id=1, name="North Field", area_hectares=2.0),
        Zone(id=2, name="Greenhouse", area_hectares=0.5),
    ]
    return mock_client


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture
def test_client() -> TestClient:
    """Create a synchronous test client for FastAPI."""
    return TestClient(app)


@pytest.fixture
async def async_test_client() -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client for FastAPI."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def manager_headers() -> dict[str, str]:
    return {"X-User-Id": "1", "X-User-Role": "manager"}


@pytest.fixture
def field_staff_headers() -> dict[str, str]:
    return {"X-User-Id": "42", "X-User-Role": "field_staff"}
