"""
rube_logging: structured logging for the Rube backend.

Usage, app startup (backend/api/main.py):
    from rube_logging import RubeLogger, CorrelationMiddleware
    RubeLogger.configure("rube-api", level=settings.log_level)
    app.add_middleware(CorrelationMiddleware)

Usage, any module:
    from rube_logging import get_logger
    logger = get_logger(__name__)
    logger.info("event_name", key=value)
    logger.error("something_failed", error=exc)
    with logger.timed("appwrite_list_documents", collection="messages"):
        ...
"""

from .logger import (
    RubeLogger,
    RubeLoggerInstance,
    LogLevel,
    LogContext,
    TimedOperation,
    StructuredFormatter,
    get_logger,
    redact,
    correlation_id_var,
    log_context_var,
)
from .middleware import (
    CorrelationMiddleware,
    get_correlation_id,
    set_correlation_id,
    CORRELATION_ID_HEADER,
)

__all__ = [
    "RubeLogger",
    "RubeLoggerInstance",
    "LogLevel",
    "LogContext",
    "TimedOperation",
    "StructuredFormatter",
    "get_logger",
    "redact",
    "correlation_id_var",
    "log_context_var",
    "CorrelationMiddleware",
    "get_correlation_id",
    "set_correlation_id",
    "CORRELATION_ID_HEADER",
]
