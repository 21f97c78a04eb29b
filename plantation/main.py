"""
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from plantation.config import settings
from plantation.middleware.error_handler import ErrorHandlerMiddleware
from plantation.api.rate_limit import limiter
from plantation.api.v1.routers import dashboard, health_trends, readiness

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events.
    """
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Backend: {settings.backend_api_base_url}")
    logger.info(f"Trend config: threshold={settings.trend_threshold_percent}%, "
                f"window={settings.comparison_window_days}d")
    logger.info(f"Rate limit: {settings.rate_limit_requests} requests/minute")

    yield

    # Shutdown
    from plantation.infrastructure.backend_api_client import get_api_client
    logger.info("Shutting down application...")
    client = get_api_client()
    await client.close()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Analytics API for the Plantation Management Platform

    Read-only reporting on top of the plantation backend. Plant lots, species
    and health logs are fetched from the backend on every request.

    ## Features

    - **Delivery Readiness**: Which lots will be harvest-ready by a delivery date,
      grouped by species with estimated yields, plus lots overdue for harvest
    - **Health Trends**: Recent versus prior health score comparison, disease
      frequency, environmental trends, recommendations and alerts per lot
    - **Dashboard**: Plantation summary, per-zone analytics and system alerts
    - **Role Based Access**: Managers and analytics users see every lot; field
      staff see the lots assigned to them
    - **Robust Error Handling**: Automatic retries with exponential backoff for
      backend calls
    - **Rate Limiting**: Protects the API from abuse

    ## Authentication

    Requests are expected to come through the authentication gateway, which
    forwards the caller as `X-User-Id` and `X-User-Role` headers.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    debug=settings.debug,
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add CORS middleware with configurable origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add global error handling middleware
app.add_middleware(ErrorHandlerMiddleware)

# Include routers
app.include_router(readiness.router, prefix="/api/v1")
app.include_router(health_trends.router, prefix="/api/v1")
app.include_router(dashboard.router, prefix="/api/v1")


@app.get("/", tags=["status"])
async def root():
    """
    Root endpoint for health check.

    Returns:
        Status message
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
    }


@app.get("/health", tags=["status"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        Health status
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
    }
