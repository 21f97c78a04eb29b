"""
API response models using Pydantic.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from plantation.domain.models import (
    Alert,
    DashboardSummary,
    DeliveryReadinessReport,
    HealthTrendReport,
    ZoneAnalytics,
)


class DeliveryReadinessResponse(BaseModel):
    """Response model for the delivery readiness endpoint."""
    zone_id: Optional[int] = Field(
        default=None,
        description="Zone the report was restricted to, if any"
    )
    generated_at: datetime = Field(
        description="Time the report was computed (UTC)"
    )
    report: DeliveryReadinessReport

    class Config:
        json_schema_extra = {
            "example": {
                "zone_id": None,
                "generated_at": "2024-06-01T08:00:00Z",
                "report": {
                    "target_date": "2024-06-10",
                    "ready_lots": [
                        {
                            "lot_id": 1,
                            "lot_number": "LOT-001",
                            "species_id": 1,
                            "zone_id": 2,
                            "status": "mature",
                            "plant_count": 100,
                            "expected_harvest_date": "2024-06-05",
                            "estimated_yield": 250.0,
                        }
                    ],
                    "species_breakdown": [
                        {
                            "species_id": 1,
                            "species_name": "Tomato",
                            "yield_unit": "kg",
                            "total_plants": 100,
                            "total_estimated_yield": 250.0,
                        }
                    ],
                    "unassigned_lots": [],
                    "total_ready_lots": 1,
                    "total_ready_plants": 100,
                    "unassigned_plants": 0,
                    "total_estimated_yield": 250.0,
                    "overdue_lots": [],
                },
            }
        }


class HealthTrendsResponse(BaseModel):
    """Response model for the health trends endpoint."""
    plant_lot_id: int = Field(
        description="Unique identifier for the plant lot"
    )
    lot_number: str = Field(
        description="Human readable lot number"
    )
    generated_at: datetime = Field(
        description="Time the report was computed (UTC)"
    )
    report: HealthTrendReport

    class Config:
        json_schema_extra = {
            "example": {
                "plant_lot_id": 7,
                "lot_number": "LOT-007",
                "generated_at": "2024-06-01T08:00:00Z",
                "report": {
                    "plant_lot_id": 7,
                    "as_of": "2024-06-01T08:00:00Z",
                    "comparison_window_days": 14,
                    "insufficient_data": False,
                    "historical_comparison": {
                        "trend_direction": "declining",
                        "percentage_change": -12.5,
                        "recent_average": 70.0,
                        "prior_average": 80.0,
                        "recent_count": 2,
                        "prior_count": 2,
                        "comparison_period": "14 days",
                    },
                    "alerts": [],
                },
            }
        }


class DashboardSummaryResponse(BaseModel):
    """Response model for the dashboard summary endpoint."""
    generated_at: datetime = Field(
        description="Time the summary was computed (UTC)"
    )
    summary: DashboardSummary

    class Config:
        json_schema_extra = {
            "example": {
                "generated_at": "2024-06-01T08:00:00Z",
                "summary": {
                    "as_of": "2024-06-01T08:00:00Z",
                    "total_plant_lots": 4,
                    "total_active_zones": 2,
                    "total_species": 2,
                    "health": {
                        "total_health_logs": 12,
                        "recent_health_logs": 3,
                        "average_health_score": 74.5,
                        "disease_detection_rate": 25.0,
                    },
                    "production": {
                        "total_current_yield": 120.0,
                        "ready_for_harvest": 1,
                        "overdue_lots": 1,
                        "recently_planted": 0,
                    },
                    "analysis": {"success_rate": 100.0, "pending": 2, "failed": 0},
                },
            }
        }


class ZoneAnalyticsResponse(BaseModel):
    """Response model for the zone analytics endpoint."""
    generated_at: datetime = Field(
        description="Time the analytics were computed (UTC)"
    )
    zones: List[ZoneAnalytics]

    class Config:
        json_schema_extra = {
            "example": {
                "generated_at": "2024-06-01T08:00:00Z",
                "zones": [
                    {
                        "zone_id": 1,
                        "zone_name": "North Field",
                        "total_lots": 2,
                        "active_lots": 2,
                        "total_current_yield": 0.0,
                        "average_health_score": 75.0,
                        "species": [
                            {"species_name": "Basil", "lot_count": 1},
                            {"species_name": "Tomato", "lot_count": 1},
                        ],
                        "recent_activity": 2,
                    }
                ],
            }
        }


class SystemAlertsResponse(BaseModel):
    """Response model for the system alerts endpoint."""
    generated_at: datetime = Field(
        description="Time the alerts were raised (UTC)"
    )
    alerts: List[Alert]
    count: int = Field(
        description="Number of alerts"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "generated_at": "2024-06-01T08:00:00Z",
                "alerts": [
                    {
                        "type": "warning",
                        "title": "Overdue Harvests",
                        "message": "1 lots past expected harvest date",
                        "priority": "high",
                    }
                ],
                "count": 1,
            }
        }
