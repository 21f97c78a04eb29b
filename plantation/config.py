"""
Application configuration using Pydantic settings.
"""
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Plantation Backend API Configuration
    backend_api_base_url: str = Field(
        default="http://localhost:3000/api/v1",
        description="Base URL of the plantation CRUD backend"
    )
    backend_public_url: str = Field(
        default="http://localhost:3000/api/v1",
        description="Public URL prefix used to resolve relative image paths"
    )
    backend_api_token: str = Field(
        default="",
        description="Service account bearer token for the backend"
    )
    backend_page_size: int = Field(
        default=100,
        description="Page size used when listing plant lots"
    )

    # Retry Configuration
    max_retry_attempts: int = Field(
        default=3,
        description="Maximum number of retry attempts for API calls"
    )
    retry_backoff_multiplier: int = Field(
        default=1,
        description="Multiplier for exponential backoff"
    )
    retry_min_wait: int = Field(
        default=1,
        description="Minimum wait time in seconds between retries"
    )
    retry_max_wait: int = Field(
        default=10,
        description="Maximum wait time in seconds between retries"
    )

    # Health Trend Parameters
    trend_threshold_percent: float = Field(
        default=2.0,
        description="Percentage change below which a trend is reported as stable"
    )
    comparison_window_days: int = Field(
        default=14,
        description="Default length of the recent and prior comparison windows"
    )
    recent_activity_days: int = Field(
        default=30,
        description="Window used for recent log counts and score history"
    )
    critical_score_threshold: float = Field(
        default=50.0,
        description="Health scores below this raise an error alert"
    )
    warning_score_threshold: float = Field(
        default=70.0,
        description="Health scores below this raise a warning alert"
    )
    low_score_action_threshold: float = Field(
        default=60.0,
        description="Health scores below this trigger an immediate action"
    )
    disease_alert_rate: float = Field(
        default=30.0,
        description="Disease detection rate (percent) above which an alert is raised"
    )
    high_humidity_threshold: float = Field(
        default=85.0,
        description="Recent mean humidity (percent) above which ventilation is advised"
    )

    # Dashboard
    dashboard_activity_days: int = Field(
        default=7,
        description="Days of health logs counted as recent zone activity"
    )
    recently_planted_days: int = Field(
        default=30,
        description="Days after planting during which a lot counts as recently planted"
    )
    system_disease_alert_rate: float = Field(
        default=20.0,
        description="Plantation-wide disease detection rate (percent) above which a system alert is raised"
    )
    failed_analysis_alert_count: int = Field(
        default=5,
        description="Number of failed image analyses above which a system alert is raised"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (use specific origins in production)"
    )

    # Rate Limiting
    rate_limit_requests: int = Field(
        default=100,
        description="Maximum requests per minute per client"
    )

    # Application Settings
    app_name: str = Field(
        default="Plantation Analytics API",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
