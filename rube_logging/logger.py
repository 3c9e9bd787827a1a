"""
Structured logger implementation for the Rube backend.

- Development (ENV=development / dev / local): colorized, human-readable output
- Anything else: compact single-line JSON
"""

import json
import logging
import os
import sys
import time
import traceback
from contextvars import ContextVar
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Type, Union


correlation_id_var: ContextVar[Optional[str]] = ContextVar(
    "correlation_id", default=None
)
log_context_var: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})

# Context keys whose values never reach the log output
SENSITIVE_KEYS = frozenset(
    {"token", "jwt", "authorization", "api_key", "apikey", "password", "secret"}
)
REDACTED = "[REDACTED]"


class _Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    TIMESTAMP = "\033[90m"
    SERVICE = "\033[35m"
    CORR_ID = "\033[34m"
    KEY = "\033[90m"
    VALUE = "\033[97m"
    ERROR = "\033[31m"

    LEVEL_MAP = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARN": "\033[33m",
        "ERROR": "\033[31m",
    }


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"

    @classmethod
    def parse(cls, value: Union[str, "LogLevel"]) -> "LogLevel":
        """Accept enum members or env-style strings ("warning", "Info")."""
        if isinstance(value, LogLevel):
            return value
        normalized = str(value).upper()
        if normalized == "WARNING":
            normalized = "WARN"
        try:
            return cls(normalized)
        except ValueError:
            return cls.INFO


def redact(context: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of *context* with credential-like values masked."""
    return {
        key: REDACTED if key.lower() in SENSITIVE_KEYS else value
        for key, value in context.items()
    }


class LogContext:
    """
    Context manager for temporary per-block log fields.

        with LogContext(user_id="abc"):
            logger.info("listing")   # carries user_id
    """

    def __init__(self, **kwargs: Any) -> None:
        self.new_context = kwargs
        self.previous_context: Dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        self.previous_context = log_context_var.get().copy()
        log_context_var.set({**self.previous_context, **self.new_context})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        log_context_var.set(self.previous_context)
        return False


class StructuredFormatter(logging.Formatter):
    """Pretty output for development, JSON lines everywhere else."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name
        self._is_dev = os.getenv("ENV", "development") in (
            "development",
            "dev",
            "local",
        )

    def build_entry(self, record: logging.LogRecord) -> Dict[str, Any]:
        level_name = record.levelname.upper()
        if level_name == "WARNING":
            level_name = "WARN"

        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level_name,
            "service": self.service_name,
            "message": record.getMessage(),
        }

        if record.name and record.name != "root":
            entry["class"] = record.name.split(".")[-1]

        correlation_id = correlation_id_var.get()
        if correlation_id:
            entry["correlationId"] = correlation_id

        method = getattr(record, "method_name", None)
        if method:
            entry["method"] = method

        context = log_context_var.get().copy()
        context.update(getattr(record, "log_context", None) or {})
        if context:
            entry["context"] = redact(context)

        duration = getattr(record, "duration", None)
        if duration is not None:
            entry["duration"] = duration

        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            entry["error"] = {
                "type": exc_type.__name__ if exc_type else "Unknown",
                "message": str(exc_value) if exc_value else "",
            }
            if self._is_dev:
                entry["error"]["stack"] = "".join(
                    traceback.format_exception(exc_type, exc_value, exc_tb)
                )

        return entry

    @staticmethod
    def pretty(entry: Dict[str, Any]) -> str:
        C = _Colors
        level = entry.get("level", "INFO")
        level_color = C.LEVEL_MAP.get(level, C.LEVEL_MAP["INFO"])
        ts = entry.get("timestamp", "").partition("T")[2][:12]

        head = [
            f"{C.TIMESTAMP}{ts}{C.RESET}",
            f"{level_color}{C.BOLD}{level:<5}{C.RESET}",
            f"{C.SERVICE}[{entry.get('service', '')}]{C.RESET}",
        ]
        if "class" in entry:
            location = entry["class"]
            if "method" in entry:
                location += f".{entry['method']}"
            head.append(f"{C.BOLD}{location}{C.RESET}")
        head.append(f"── {entry.get('message', '')}")
        lines = ["  ".join(head)]

        if entry.get("correlationId"):
            lines.append(
                f"    {C.KEY}correlationId:{C.RESET} "
                f"{C.CORR_ID}{entry['correlationId']}{C.RESET}"
            )
        if entry.get("duration") is not None:
            lines.append(f"    {C.KEY}duration:{C.RESET} {entry['duration']}ms")
        for key, value in (entry.get("context") or {}).items():
            lines.append(f"    {C.KEY}{key}:{C.RESET} {C.VALUE}{value}{C.RESET}")

        err = entry.get("error")
        if err:
            lines.append(
                f"    {C.ERROR}{C.BOLD}error:{C.RESET} "
                f"{C.ERROR}{err['type']}: {err['message']}{C.RESET}"
            )
            for sline in err.get("stack", "").strip().splitlines():
                lines.append(f"      {C.DIM}{sline}{C.RESET}")

        return "\n".join(lines)

    def format(self, record: logging.LogRecord) -> str:
        entry = self.build_entry(record)
        if self._is_dev:
            return self.pretty(entry)
        return json.dumps(entry, default=str)


class RubeLogger:
    """
    Process-wide logger registry.

    Configure once at startup:
        RubeLogger.configure("rube-api", level=settings.log_level)

    Then fetch named loggers anywhere:
        logger = RubeLogger.get("ConversationStore")
    """

    _service_name: Optional[str] = None
    _root_logger: Optional[logging.Logger] = None
    _min_level: LogLevel = LogLevel.INFO

    _LEVEL_TO_INT: Dict[LogLevel, int] = {
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.INFO: logging.INFO,
        LogLevel.WARN: logging.WARNING,
        LogLevel.ERROR: logging.ERROR,
    }

    @classmethod
    def configure(
        cls,
        service_name: str,
        level: Union[str, LogLevel] = LogLevel.INFO,
    ) -> logging.Logger:
        cls._service_name = service_name
        cls._min_level = LogLevel.parse(level)

        logger = logging.getLogger(service_name)
        logger.setLevel(cls._LEVEL_TO_INT[cls._min_level])
        logger.handlers.clear()

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter(service_name))
        logger.addHandler(handler)
        logger.propagate = False

        cls._root_logger = logger
        return logger

    @classmethod
    def get(cls, context: Union[Type, str]) -> "RubeLoggerInstance":
        if cls._root_logger is None:
            cls.configure("rube")

        name = context if isinstance(context, str) else context.__name__
        return RubeLoggerInstance(cls._root_logger.getChild(name), name)


class RubeLoggerInstance:
    """Logger bound to a class or module name."""

    def __init__(self, logger: logging.Logger, class_name: str) -> None:
        self._logger = logger
        self._class_name = class_name

    def _log(
        self,
        level: int,
        message: str,
        method: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        error: Optional[BaseException] = None,
        duration: Optional[int] = None,
    ) -> None:
        extra = {
            "method_name": method,
            "log_context": context if isinstance(context, dict) else {},
            "duration": duration,
        }
        if error is not None:
            self._logger.log(level, message, exc_info=error, extra=extra)
        else:
            self._logger.log(level, message, extra=extra)

    def debug(self, message: str, method=None, context=None) -> None:
        self._log(logging.DEBUG, message, method, context)

    def info(self, message: str, method=None, context=None, duration=None) -> None:
        self._log(logging.INFO, message, method, context, duration=duration)

    def warn(self, message: str, method=None, context=None) -> None:
        self._log(logging.WARNING, message, method, context)

    warning = warn

    def error(
        self,
        message: str,
        method: Optional[str] = None,
        error: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._log(logging.ERROR, message, method, context, error)

    def timed(
        self, operation: str, context: Optional[Dict[str, Any]] = None
    ) -> "TimedOperation":
        """Context manager that logs completion (or failure) with elapsed ms."""
        return TimedOperation(self, operation, context)


class TimedOperation:
    """Times a block and logs its outcome."""

    def __init__(
        self,
        logger: RubeLoggerInstance,
        operation: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.logger = logger
        self.operation = operation
        self.context = context or {}
        self.start_time: float = 0
        self.duration: Optional[int] = None

    def __enter__(self) -> "TimedOperation":
        self.start_time = time.monotonic()
        self.logger.debug(f"{self.operation} started", context=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.duration = int((time.monotonic() - self.start_time) * 1000)
        if exc_type:
            self.logger.error(
                f"{self.operation} failed",
                error=exc_val,
                context={**self.context, "duration": self.duration},
            )
        else:
            self.logger.info(
                f"{self.operation} completed",
                context=self.context,
                duration=self.duration,
            )
        return False


class _CompatLogger:
    """
    structlog-style facade over RubeLoggerInstance.

        logger.info("conversations_listed", user_id=uid, count=3)
        logger.error("auth_link_failed", error=exc)
    """

    def __init__(self, instance: RubeLoggerInstance) -> None:
        self._instance = instance

    @staticmethod
    def _extract(kwargs: Dict[str, Any]):
        raw_error = kwargs.pop("error", None)
        error: Optional[BaseException] = None
        if isinstance(raw_error, BaseException):
            error = raw_error
        elif raw_error is not None:
            kwargs["error"] = str(raw_error)
        method = kwargs.pop("method", None)
        return error, method, (kwargs or None)

    def debug(self, event: str, **kwargs: Any) -> None:
        _, method, ctx = self._extract(kwargs)
        self._instance.debug(event, method=method, context=ctx)

    def info(self, event: str, **kwargs: Any) -> None:
        _, method, ctx = self._extract(kwargs)
        self._instance.info(event, method=method, context=ctx)

    def warning(self, event: str, **kwargs: Any) -> None:
        _, method, ctx = self._extract(kwargs)
        self._instance.warn(event, method=method, context=ctx)

    warn = warning

    def error(self, event: str, **kwargs: Any) -> None:
        error, method, ctx = self._extract(kwargs)
        self._instance.error(event, method=method, error=error, context=ctx)

    def exception(self, event: str, **kwargs: Any) -> None:
        exc = sys.exc_info()[1]
        if exc is not None:
            kwargs.setdefault("error", exc)
        self.error(event, **kwargs)

    def timed(self, operation: str, **context: Any) -> TimedOperation:
        return self._instance.timed(operation, context or None)


def get_logger(name: Optional[str] = None) -> _CompatLogger:
    """
    Module-level logger, structlog call style.

        logger = get_logger(__name__)
        logger.info("event_name", key=value)
    """
    class_name = name.split(".")[-1] if name else "app"
    return _CompatLogger(RubeLogger.get(class_name))
