"""Error taxonomy and the FastAPI handlers that render it as ``{"error": ...}``."""

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from rube_logging import get_logger

logger = get_logger(__name__)


class ApiError(Exception):
    """Base exception for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(ApiError):
    """Raised when request input is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(ApiError):
    """Raised when the request carries no authenticated identity."""

    status_code = status.HTTP_401_UNAUTHORIZED


class InternalError(ApiError):
    """Raised for any collaborator failure. The message is user-facing and generic."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class UpstreamError(Exception):
    """Raised by collaborator clients when an external service call fails."""

    def __init__(self, service: str, message: str, status_code: Optional[int] = None):
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service} service error: {message}")


class ConfigurationError(Exception):
    """Raised when a collaborator is used without the settings it needs."""


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse(
        status_code=exc.status_code, content={"error": exc.message}, headers=headers
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.warning(
        "request_validation_failed", path=request.url.path, errors=len(exc.errors())
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid request"}
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
