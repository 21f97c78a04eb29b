"""
Infrastructure layer: Plantation backend API client with retry logic.
"""
from datetime import date, datetime
from typing import List, Dict, Any, Optional
import logging
import math
from pydantic import BaseModel, Field, ValidationError
from pydantic.alias_generators import to_camel
import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from plantation.config import settings
from plantation.domain.models import (
    AnalysisStatus,
    DetectedIssue,
    HealthMetrics,
    HealthObservation,
    HealthStatus,
    LotLocation,
    PlantLot,
    PlantSpecies,
    PlantStatus,
    Zone,
)
from plantation.infrastructure.api_constants import (
    APIConstants,
    PlantationAPIEndpoints,
)
from plantation.utils.image_urls import absolutize_image_urls

logger = logging.getLogger(__name__)


# Pydantic models for API responses (camelCase on the wire)
class WireModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class SpeciesPayload(WireModel):
    """Plant species as returned by the backend."""
    id: int
    name: str
    scientific_name: Optional[str] = None
    growth_period_days: Optional[int] = None
    harvest_period_days: Optional[int] = None
    expected_yield_per_plant: Optional[float] = None
    yield_unit: Optional[str] = None


class LocationPayload(WireModel):
    section: str
    row: int
    column: int


class PlantLotPayload(WireModel):
    """Plant lot as returned by the backend."""
    id: int
    lot_number: str
    qr_code: Optional[str] = None
    plant_count: int
    planted_date: date
    expected_harvest_date: Optional[date] = None
    actual_harvest_date: Optional[date] = None
    status: PlantStatus = PlantStatus.SEEDLING
    current_yield: Optional[float] = None
    location: Optional[LocationPayload] = None
    species_id: Optional[int] = None
    zone_id: Optional[int] = None
    assigned_to_id: Optional[int] = None
    species: Optional[SpeciesPayload] = None


class ZonePayload(WireModel):
    """Growing zone as returned by the backend."""
    id: int
    name: str
    area_hectares: Optional[float] = None
    is_active: bool = True


class PaginationMeta(WireModel):
    page: int
    limit: int
    total: int
    total_pages: int


class PlantLotPage(WireModel):
    """Paginated response from the plant lots endpoint."""
    data: List[Dict[str, Any]]
    meta: PaginationMeta


class DetectedIssuePayload(WireModel):
    type: str
    severity: Optional[str] = None
    confidence: Optional[float] = None


class AIAnalysisPayload(WireModel):
    """Image analysis results attached to a health log."""
    health_score: Optional[float] = None
    disease_detected: Optional[bool] = None
    disease_type: Optional[str] = None
    confidence: Optional[float] = None
    detected_issues: Optional[List[DetectedIssuePayload]] = None


class MetricsPayload(WireModel):
    plant_height: Optional[float] = None
    leaf_count: Optional[int] = None
    flower_count: Optional[int] = None
    fruit_count: Optional[int] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    soil_moisture: Optional[float] = None


class HealthLogPayload(WireModel):
    """Health log as returned by the backend."""
    id: int
    plant_lot_id: int
    health_status: HealthStatus
    recorded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    notes: Optional[str] = None
    images: Optional[List[str]] = None
    metrics: Optional[MetricsPayload] = None
    analysis_status: AnalysisStatus = AnalysisStatus.PENDING
    ai_analysis: Optional[AIAnalysisPayload] = Field(default=None)


class BackendAPIError(Exception):
    """Raised when the plantation backend cannot serve a request."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _bounded(value: Optional[float], upper: float, name: str, log_id: int) -> Optional[float]:
    """Keep a value only if it is finite and within [0, upper]."""
    if value is None:
        return None
    if not math.isfinite(value) or not 0 <= value <= upper:
        logger.warning(f"Health log {log_id}: discarding out-of-range {name} {value!r}")
        return None
    return value


def _expect_list(data: Any, resource: str) -> List[Any]:
    if not isinstance(data, list):
        raise BackendAPIError(
            f"Unexpected {resource} payload: expected a list, got {type(data).__name__}",
            status_code=502,
        )
    return data


class PlantationAPIClient:
    """
    Client for the plantation CRUD backend.
    Implements retry logic with exponential backoff.
    """

    def __init__(self):
        """Initialize the API client with configuration."""
        self.base_url = settings.backend_api_base_url
        self.public_url = settings.backend_public_url
        self.page_size = settings.backend_page_size
        headers = {"accept": APIConstants.CONTENT_TYPE_JSON}
        if settings.backend_api_token:
            headers["Authorization"] = f"Bearer {settings.backend_api_token}"
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=APIConstants.DEFAULT_TIMEOUT,
        )

    async def __aenter__(self) -> "PlantationAPIClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    @retry(
        stop=stop_after_attempt(settings.max_retry_attempts),
        wait=wait_exponential(
            multiplier=settings.retry_backoff_multiplier,
            min=settings.retry_min_wait,
            max=settings.retry_max_wait,
        ),
        retry=retry_if_exception_type((httpx.HTTPStatusError, httpx.RequestError)),
        reraise=True,
    )
    async def _make_request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> Any:
        """
        Make an HTTP request with retry logic.

        Server errors (5xx) and transport errors are retried; client errors
        (4xx) are raised immediately.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            **kwargs: Additional arguments for the request

        Returns:
            Decoded JSON body

        Raises:
            BackendAPIError: On client errors
            httpx.HTTPStatusError: On server errors after retries
            httpx.RequestError: On transport errors after retries
        """
        try:
            response = await self.client.request(method, endpoint, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            # Retry on server errors (5xx)
            if e.response.status_code >= 500:
                logger.warning(f"Backend returned {e.response.status_code} for {endpoint}; retrying")
                raise
            # Don't retry on client errors (4xx)
            raise BackendAPIError(
                f"API request failed: {e.response.status_code} - {e.response.text}",
                status_code=e.response.status_code,
            )

    async def _get(self, endpoint: str, **kwargs) -> Any:
        """
        GET an endpoint, converting exhausted retries into BackendAPIError.
        """
        try:
            return await self._make_request("GET", endpoint, **kwargs)
        except httpx.HTTPStatusError as e:
            raise BackendAPIError(
                f"Backend unavailable: {e.response.status_code} - {e.response.text}",
                status_code=502,
            )
        except httpx.RequestError as e:
            raise BackendAPIError(f"API request error: {str(e)}", status_code=502)

    async def get_plant_lots(self, zone_id: Optional[int] = None) -> List[PlantLot]:
        """
        Fetch every plant lot, walking all pages.

        Args:
            zone_id: Optional zone filter

        Returns:
            List of PlantLot instances; malformed rows are skipped

        Raises:
            BackendAPIError: If the request fails
        """
        lots: List[PlantLot] = []
        page = 1

        while page <= APIConstants.MAX_PAGES:
            params: Dict[str, Any] = {"page": page, "limit": self.page_size}
            if zone_id is not None:
                params["zoneId"] = zone_id

            data = await self._get(PlantationAPIEndpoints.PLANT_LOTS, params=params)
            try:
                response = PlantLotPage(**data)
            except (ValidationError, TypeError) as e:
                raise BackendAPIError(
                    f"Unexpected plant lots page {page} payload: {e}",
                    status_code=502,
                )

            for row in response.data:
                lot = self._parse_plant_lot(row)
                if lot is not None:
                    lots.append(lot)

            if page >= response.meta.total_pages:
                break
            page += 1

        logger.info(f"Fetched {len(lots)} plant lots (zone={zone_id})")
        return lots

    async def get_plant_lot(self, plant_lot_id: int) -> PlantLot:
        """
        Fetch a single plant lot.

        Args:
            plant_lot_id: Unique identifier for the plant lot

        Returns:
            PlantLot instance

        Raises:
            BackendAPIError: If the request fails or the lot is not found
        """
        data = await self._get(PlantationAPIEndpoints.get_plant_lot(plant_lot_id))
        lot = self._parse_plant_lot(data)
        if lot is None:
            raise BackendAPIError(f"Plant lot {plant_lot_id} has an invalid payload", status_code=502)
        return lot

    async def get_species(self) -> List[PlantSpecies]:
        """
        Fetch all plant species.

        Returns:
            List of PlantSpecies instances; malformed rows are skipped

        Raises:
            BackendAPIError: If the request fails or the body is not a list
        """
        data = _expect_list(await self._get(PlantationAPIEndpoints.PLANT_SPECIES), "plant species")
        species = []
        for row in data:
            try:
                species.append(self._to_species(SpeciesPayload(**row)))
            except (ValidationError, TypeError) as e:
                logger.warning(f"Skipping malformed species row: {e}")
        return species

    async def get_zones(self) -> List[Zone]:
        """
        Fetch the growing zones.

        Returns:
            List of Zone instances; malformed rows are skipped

        Raises:
            BackendAPIError: If the request fails or the body is not a list
        """
        data = _expect_list(await self._get(PlantationAPIEndpoints.ZONES), "zones")
        zones = []
        for row in data:
            try:
                zones.append(Zone(**ZonePayload(**row).model_dump()))
            except (ValidationError, TypeError) as e:
                logger.warning(f"Skipping malformed zone row: {e}")
        return zones

    async def get_health_logs(self, plant_lot_id: Optional[int] = None) -> List[HealthObservation]:
        """
        Fetch health logs, for one plant lot or for the whole plantation.

        Args:
            plant_lot_id: Optional plant lot filter

        Returns:
            List of HealthObservation instances; malformed rows are skipped

        Raises:
            BackendAPIError: If the request fails or the body is not a list
        """
        params = {"plantLotId": plant_lot_id} if plant_lot_id is not None else None
        data = _expect_list(
            await self._get(PlantationAPIEndpoints.HEALTH_LOGS, params=params),
            "health logs",
        )
        observations = []
        for row in data:
            observation = self._parse_health_log(row)
            if observation is not None:
                observations.append(observation)

        logger.info(f"Fetched {len(observations)} health logs (lot={plant_lot_id})")
        return observations

    def _parse_plant_lot(self, row: Dict[str, Any]) -> Optional[PlantLot]:
        try:
            payload = PlantLotPayload(**row)
            return PlantLot(
                id=payload.id,
                lot_number=payload.lot_number,
                qr_code=payload.qr_code,
                species_id=payload.species_id,
                zone_id=payload.zone_id,
                species=self._to_species(payload.species) if payload.species else None,
                plant_count=payload.plant_count,
                planted_date=payload.planted_date,
                expected_harvest_date=payload.expected_harvest_date,
                actual_harvest_date=payload.actual_harvest_date,
                status=payload.status,
                current_yield=payload.current_yield,
                location=LotLocation(**payload.location.model_dump()) if payload.location else None,
                assigned_to_id=payload.assigned_to_id,
            )
        except (ValidationError, TypeError) as e:
            logger.warning(f"Skipping malformed plant lot row {row.get('id') if isinstance(row, dict) else row!r}: {e}")
            return None

    def _to_species(self, payload: SpeciesPayload) -> PlantSpecies:
        return PlantSpecies(
            id=payload.id,
            name=payload.name,
            scientific_name=payload.scientific_name,
            growth_period_days=payload.growth_period_days or 0,
            harvest_period_days=payload.harvest_period_days or 0,
            expected_yield_per_plant=payload.expected_yield_per_plant,
            yield_unit=payload.yield_unit or "kg",
        )

    def _parse_health_log(self, row: Dict[str, Any]) -> Optional[HealthObservation]:
        try:
            payload = HealthLogPayload(**row)
            recorded_at = payload.recorded_at or payload.created_at
            analysis = payload.ai_analysis or AIAnalysisPayload()
            metrics = payload.metrics.model_dump() if payload.metrics else {}

            return HealthObservation(
                id=payload.id,
                plant_lot_id=payload.plant_lot_id,
                recorded_at=recorded_at,
                health_status=payload.health_status,
                health_score=_bounded(analysis.health_score, 100, "health score", payload.id),
                disease_detected=bool(analysis.disease_detected),
                disease_type=analysis.disease_type,
                confidence=_bounded(analysis.confidence, 1, "confidence", payload.id),
                detected_issues=[
                    DetectedIssue(
                        type=issue.type,
                        severity=issue.severity,
                        confidence=_bounded(issue.confidence, 1, "issue confidence", payload.id),
                    )
                    for issue in analysis.detected_issues or []
                ],
                analysis_status=payload.analysis_status,
                metrics=HealthMetrics(**metrics),
                images=absolutize_image_urls(payload.images or [], self.public_url),
                notes=payload.notes,
            )
        except (ValidationError, TypeError) as e:
            logger.warning(f"Skipping malformed health log row {row.get('id') if isinstance(row, dict) else row!r}: {e}")
            return None


# Singleton instance
_api_client: Optional[PlantationAPIClient] = None


def get_api_client() -> PlantationAPIClient:
    """
    Get or create the singleton API client instance.

    Returns:
        PlantationAPIClient instance
    """
    global _api_client
    if _api_client is None:
        _api_client = PlantationAPIClient()
    return _api_client
