"""
API endpoint constants and configuration.

This module contains the plantation backend endpoint paths and related
constants, relative to the backend base URL (which includes /api/v1).
"""


# Plantation Backend Endpoints
class PlantationAPIEndpoints:
    """Plantation backend endpoint paths."""

    PLANT_LOTS = "/plant-lots"
    PLANT_LOT_BY_ID = "/plant-lots/{plant_lot_id}"
    PLANT_SPECIES = "/plant-species"
    HEALTH_LOGS = "/health-logs"
    ZONES = "/zones"

    @classmethod
    def get_plant_lot(cls, plant_lot_id: int) -> str:
        """
        Get the endpoint for a single plant lot.

        Args:
            plant_lot_id: Plant lot ID

        Returns:
            Formatted endpoint path
        """
        return cls.PLANT_LOT_BY_ID.format(plant_lot_id=plant_lot_id)


# API Configuration Constants
class APIConstants:
    """General API configuration constants."""

    # HTTP Headers
    CONTENT_TYPE_JSON = "application/json"

    # Timeouts (in seconds)
    DEFAULT_TIMEOUT = 30.0

    # Pagination
    MAX_PAGES = 1000

    # Relative image paths served by the backend upload store
    UPLOADS_PREFIX = "/uploads/"
