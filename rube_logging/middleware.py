"""
Starlette middleware for correlation ID propagation and HTTP request logging.
"""

import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from .logger import RubeLogger, RubeLoggerInstance, correlation_id_var, log_context_var

CORRELATION_ID_HEADER = "X-Correlation-ID"


def get_correlation_id() -> Optional[str]:
    """Return the correlation ID for the current request context."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_var.set(correlation_id)


class CorrelationMiddleware(BaseHTTPMiddleware):
    """
    Per request:
    1. Reuse the caller's correlation ID or mint one
    2. Expose it through contextvars so every log line carries it
    3. Log completion with status code and timing
    4. Echo the ID back in the response headers
    5. Turn unhandled errors into a JSON 500 that still carries the ID

        app.add_middleware(CorrelationMiddleware)
    """

    def __init__(self, app) -> None:
        super().__init__(app)
        self._logger: RubeLoggerInstance = RubeLogger.get("HTTP")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(
            CORRELATION_ID_HEADER, f"req-{uuid.uuid4()}"
        )
        correlation_id_var.set(correlation_id)
        log_context_var.set({})

        start_time = time.monotonic()
        try:
            response = await call_next(request)
            context = {
                "method": request.method,
                "path": request.url.path,
                "statusCode": response.status_code,
                "duration": int((time.monotonic() - start_time) * 1000),
            }
            if response.status_code >= 400:
                self._logger.warn("Request completed", method="dispatch", context=context)
            else:
                self._logger.info("Request completed", method="dispatch", context=context)

            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response

        except Exception as e:
            self._logger.error(
                "Request failed",
                method="dispatch",
                error=e,
                context={
                    "method": request.method,
                    "path": request.url.path,
                    "duration": int((time.monotonic() - start_time) * 1000),
                },
            )
            # Unhandled errors end here; the outer ServerErrorMiddleware drops headers
            response = JSONResponse(
                {"error": "Internal server error"}, status_code=500
            )
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response

        finally:
            correlation_id_var.set(None)
            log_context_var.set({})
