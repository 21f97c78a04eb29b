"""
Global error handling middleware.

Maps exceptions that escape the routers onto JSON error responses:
- BackendAPIError: 404 when the backend reported a missing resource, else 502
- pydantic ValidationError: 500, the service built an invalid model
- ValueError: 400
- anything else: 500
"""
import logging
from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable

from plantation.infrastructure.backend_api_client import BackendAPIError


logger = logging.getLogger(__name__)


def _error_response(status_code: int, error: str, detail: str, request: Request) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "detail": detail,
            "path": request.url.path,
        }
    )


def backend_error_status(error: BackendAPIError) -> int:
    """HTTP status to report for a backend failure."""
    if error.status_code == status.HTTP_404_NOT_FOUND:
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_502_BAD_GATEWAY


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Catches exceptions that escape the routers and returns consistent error
    responses carrying the request path.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        context = {"path": request.url.path, "method": request.method}
        try:
            return await call_next(request)

        except BackendAPIError as e:
            status_code = backend_error_status(e)
            logger.error(
                f"Backend API error ({e.status_code}): {e.message}",
                extra={**context, "backend_status_code": e.status_code},
            )
            error = "Not found" if status_code == status.HTTP_404_NOT_FOUND else "Backend API error"
            return _error_response(status_code, error, e.message, request)

        except ValidationError as e:
            logger.exception(f"Invalid model built while serving request: {e}", extra=context)
            return _error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Internal server error",
                "An unexpected error occurred",
                request,
            )

        except ValueError as e:
            logger.warning(f"Invalid request: {e}", extra=context)
            return _error_response(status.HTTP_400_BAD_REQUEST, "Invalid request", str(e), request)

        except Exception as e:
            logger.exception(f"Unhandled exception: {e}", extra=context)
            return _error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Internal server error",
                "An unexpected error occurred",
                request,
            )
