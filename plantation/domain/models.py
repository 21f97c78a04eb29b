"""
Domain models for plantation and health-log data.

These models represent the core domain entities and the derived reports.
They are independent of any infrastructure concerns (API clients, databases,
etc.); the backend client maps wire payloads onto them.
"""
from datetime import date, datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


# ============================================================
# Enumerations
# ============================================================

class PlantStatus(str, Enum):
    """Lifecycle status of a plant lot."""
    SEEDLING = "seedling"
    GROWING = "growing"
    MATURE = "mature"
    HARVESTING = "harvesting"
    HARVESTED = "harvested"
    DISEASED = "diseased"
    DEAD = "dead"


# Statuses that can never be delivered again
TERMINAL_STATUSES = frozenset({PlantStatus.HARVESTED, PlantStatus.DEAD})


class HealthStatus(str, Enum):
    """Field operator's health assessment, from worst to best."""
    CRITICAL = "critical"
    DISEASED = "diseased"
    POOR = "poor"
    FAIR = "fair"
    GOOD = "good"
    EXCELLENT = "excellent"


class AnalysisStatus(str, Enum):
    """State of the asynchronous image analysis of a health log."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class TrendDirection(str, Enum):
    """Direction of the health score trend."""
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    INSUFFICIENT_DATA = "insufficient_data"


class RiskTrend(str, Enum):
    """Direction of the disease detection rate."""
    WORSENING = "worsening"
    IMPROVING = "improving"
    STABLE = "stable"
    INSUFFICIENT_DATA = "insufficient_data"


class MetricTrend(str, Enum):
    """Direction of an environmental metric."""
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"
    INSUFFICIENT_DATA = "insufficient_data"


class RecommendationTier(str, Enum):
    IMMEDIATE = "immediate"
    SHORT_TERM = "short_term"
    LONG_TERM = "long_term"


class AlertType(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class AlertPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# ============================================================
# Plantation Entities
# ============================================================

class PlantSpecies(BaseModel):
    """Cultivar definition shared across many lots."""
    id: int
    name: str
    scientific_name: Optional[str] = None
    growth_period_days: int = Field(default=0, ge=0)
    harvest_period_days: int = Field(default=0, ge=0)
    expected_yield_per_plant: Optional[float] = Field(
        default=None,
        ge=0,
        description="Expected yield of a single plant, in yield_unit"
    )
    yield_unit: str = "kg"


class Zone(BaseModel):
    """Growing zone of the plantation."""
    id: int
    name: str
    area_hectares: Optional[float] = None
    is_active: bool = True


class LotLocation(BaseModel):
    """Physical position of a lot inside its zone."""
    section: str
    row: int
    column: int


class PlantLot(BaseModel):
    """A tracked batch of plants."""
    id: int
    lot_number: str
    qr_code: Optional[str] = None
    species_id: Optional[int] = None
    zone_id: Optional[int] = None
    species: Optional[PlantSpecies] = None
    plant_count: int = Field(ge=1)
    planted_date: date
    expected_harvest_date: Optional[date] = None
    actual_harvest_date: Optional[date] = None
    status: PlantStatus = PlantStatus.SEEDLING
    current_yield: Optional[float] = None
    location: Optional[LotLocation] = None
    assigned_to_id: Optional[int] = None


class HealthMetrics(BaseModel):
    """Growth and environmental measurements taken with a health log."""
    plant_height: Optional[float] = None
    leaf_count: Optional[int] = None
    flower_count: Optional[int] = None
    fruit_count: Optional[int] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    soil_moisture: Optional[float] = None


class DetectedIssue(BaseModel):
    """Issue reported by the image analysis."""
    type: str
    severity: Optional[str] = None
    confidence: Optional[float] = Field(default=None, ge=0, le=1)


class HealthObservation(BaseModel):
    """Point-in-time health record for one plant lot."""
    id: Optional[int] = None
    plant_lot_id: int
    recorded_at: datetime
    health_status: HealthStatus
    health_score: Optional[float] = Field(default=None, ge=0, le=100)
    disease_detected: bool = False
    disease_type: Optional[str] = None
    confidence: Optional[float] = Field(default=None, ge=0, le=1)
    detected_issues: List[DetectedIssue] = Field(default_factory=list)
    analysis_status: AnalysisStatus = AnalysisStatus.PENDING
    metrics: HealthMetrics = Field(default_factory=HealthMetrics)
    images: List[str] = Field(
        default_factory=list,
        description="Opaque image references"
    )
    notes: Optional[str] = None


# ============================================================
# Delivery Readiness Report
# ============================================================

class ReadyLot(BaseModel):
    """A lot that will be harvest-ready by the target date."""
    lot_id: int
    lot_number: str
    species_id: Optional[int] = None
    zone_id: Optional[int] = None
    status: PlantStatus
    plant_count: int
    expected_harvest_date: date
    estimated_yield: Optional[float] = Field(
        default=None,
        description="plant_count x expected_yield_per_plant; absent without a species"
    )


class SpeciesReadiness(BaseModel):
    """Ready lots of one species and their aggregates."""
    species_id: int
    species_name: str
    yield_unit: str
    lots: List[ReadyLot] = Field(default_factory=list)
    total_plants: int = 0
    total_estimated_yield: float = 0.0


class DeliveryReadinessReport(BaseModel):
    """Which lots can be delivered by a target date."""
    target_date: date
    ready_lots: List[ReadyLot] = Field(default_factory=list)
    species_breakdown: List[SpeciesReadiness] = Field(default_factory=list)
    unassigned_lots: List[ReadyLot] = Field(
        default_factory=list,
        description="Ready lots without a resolved species"
    )
    total_ready_lots: int = 0
    total_ready_plants: int = 0
    unassigned_plants: int = 0
    total_estimated_yield: float = 0.0
    overdue_lots: List[ReadyLot] = Field(default_factory=list)


# ============================================================
# Health Trend Report
# ============================================================

class CurrentHealthStatus(BaseModel):
    """Snapshot of the latest observation."""
    observation_id: Optional[int] = None
    recorded_at: datetime
    status: HealthStatus
    health_score: Optional[float] = None
    disease_detected: bool = False
    disease_type: Optional[str] = None


class HistoricalComparison(BaseModel):
    """Recent versus prior mean health score."""
    trend_direction: TrendDirection = TrendDirection.INSUFFICIENT_DATA
    percentage_change: Optional[float] = None
    recent_average: Optional[float] = None
    prior_average: Optional[float] = None
    recent_count: int = 0
    prior_count: int = 0
    comparison_period: str


class DiseaseFrequencyAnalysis(BaseModel):
    """Disease detection statistics over the lot history."""
    disease_detection_rate: Optional[float] = Field(
        default=None,
        description="Percentage of observations with a detected disease"
    )
    diseased_count: int = 0
    total_count: int = 0
    recent_rate: Optional[float] = None
    prior_rate: Optional[float] = None
    risk_trend: RiskTrend = RiskTrend.INSUFFICIENT_DATA


class MetricSummary(BaseModel):
    """Recent mean and direction of one environmental metric."""
    average: Optional[float] = None
    trend: MetricTrend = MetricTrend.INSUFFICIENT_DATA


class EnvironmentalTrends(BaseModel):
    temperature: MetricSummary = Field(default_factory=MetricSummary)
    humidity: MetricSummary = Field(default_factory=MetricSummary)
    soil_moisture: MetricSummary = Field(default_factory=MetricSummary)


class Recommendations(BaseModel):
    """Tiered action lists."""
    immediate: List[str] = Field(default_factory=list)
    short_term: List[str] = Field(default_factory=list)
    long_term: List[str] = Field(default_factory=list)


class Alert(BaseModel):
    type: AlertType
    title: str
    message: str
    priority: AlertPriority


class IssueCount(BaseModel):
    issue: str
    count: int


class ScorePoint(BaseModel):
    recorded_on: date
    health_score: float
    disease_detected: bool = False


class HealthTrendReport(BaseModel):
    """Health analytics for one plant lot as of a point in time."""
    plant_lot_id: Optional[int] = None
    as_of: datetime
    comparison_window_days: int
    insufficient_data: bool = True
    current_health_status: Optional[CurrentHealthStatus] = None
    historical_comparison: HistoricalComparison
    disease_frequency_analysis: DiseaseFrequencyAnalysis = Field(
        default_factory=DiseaseFrequencyAnalysis
    )
    environmental_trends: EnvironmentalTrends = Field(default_factory=EnvironmentalTrends)
    recommendations: Recommendations = Field(default_factory=Recommendations)
    alerts: List[Alert] = Field(default_factory=list)

    # Lot analytics
    total_observations: int = 0
    average_health_score: Optional[float] = None
    recent_observations: int = 0
    common_issues: List[IssueCount] = Field(default_factory=list)
    score_history: List[ScorePoint] = Field(default_factory=list)


# ============================================================
# Dashboard
# ============================================================

class SpeciesCount(BaseModel):
    species_name: str
    lot_count: int


class ZoneAnalytics(BaseModel):
    """Lot, yield and activity totals for one growing zone."""
    zone_id: int
    zone_name: str
    total_lots: int = 0
    active_lots: int = Field(default=0, description="Lots neither harvested nor dead")
    total_current_yield: float = 0.0
    average_health_score: Optional[float] = None
    species: List[SpeciesCount] = Field(default_factory=list)
    recent_activity: int = Field(
        default=0,
        description="Health logs recorded in the recent activity window"
    )


class DashboardHealthMetrics(BaseModel):
    total_health_logs: int = 0
    recent_health_logs: int = 0
    average_health_score: Optional[float] = None
    disease_detection_rate: Optional[float] = Field(
        default=None,
        description="Percent of health logs reporting a disease"
    )


class DashboardProductionMetrics(BaseModel):
    total_current_yield: float = 0.0
    ready_for_harvest: int = Field(default=0, description="Lots currently being harvested")
    overdue_lots: int = 0
    recently_planted: int = 0


class AnalysisPipelineHealth(BaseModel):
    success_rate: Optional[float] = Field(
        default=None,
        description="Percent of finished image analyses that completed"
    )
    pending: int = 0
    failed: int = 0


class DashboardSummary(BaseModel):
    """Plantation-wide headline figures."""
    as_of: datetime
    total_plant_lots: int = 0
    total_active_zones: int = 0
    total_species: int = 0
    health: DashboardHealthMetrics = Field(default_factory=DashboardHealthMetrics)
    production: DashboardProductionMetrics = Field(default_factory=DashboardProductionMetrics)
    analysis: AnalysisPipelineHealth = Field(default_factory=AnalysisPipelineHealth)


# ============================================================
# Access Control
# ============================================================

class UserRole(str, Enum):
    """Roles issued by the authentication gateway."""
    MANAGER = "manager"
    FIELD_STAFF = "field_staff"
    ANALYTICS = "analytics"


# Roles that may view plantation-wide reports
REPORT_VIEWER_ROLES = frozenset({UserRole.MANAGER, UserRole.ANALYTICS})


class Principal(BaseModel):
    """Authenticated caller, as forwarded by the gateway."""
    user_id: int
    role: UserRole

    def can_view_lot(self, lot: PlantLot) -> bool:
        """Report viewers see every lot; field staff only their assigned lots."""
        if self.role in REPORT_VIEWER_ROLES:
            return True
        return lot.assigned_to_id is not None and lot.assigned_to_id == self.user_id
