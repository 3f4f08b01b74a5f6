"""
Superinvestors Logging Configuration

Provides structured logging with JSON format support, request correlation,
performance tracking, and log levels driven by the engine settings.
"""

import json
import logging
import os
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar

from superinvestors.config.settings import EngineSettings, get_engine_settings

# Correlation id and block-scoped fields for the current thread or task
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
log_fields_var: ContextVar[Optional[Dict[str, Any]]] = ContextVar("log_fields", default=None)


# =============================================================================
# Log Level Strategy
# =============================================================================
#
# DEBUG   - Cache hits/misses/evictions, per-stage row counts, store queries
# INFO    - Analysis complete with timing, cohort selected
# WARNING - Duplicate live filings, slow computations, timeouts
# ERROR   - Failed computations surfaced to the caller
# =============================================================================


def context_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """
    Fields of the enclosing LogContext merged with the record's ``ctx_`` extras.

    Extras passed on the log call win over block fields of the same name.
    """
    fields = dict(log_fields_var.get() or {})
    for key, value in record.__dict__.items():
        if key.startswith("ctx_"):
            fields[key[4:]] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """
    JSON structured log formatter for production observability.

    Outputs one JSON object per line so log aggregation systems can index
    the context fields attached to each record.
    """

    def __init__(self, service_name: str = "superinvestors", environment: str = "development"):
        super().__init__()
        self.service_name = service_name
        self.environment = environment
        self.hostname = os.uname().nodename

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "environment": self.environment,
            "hostname": self.hostname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "request_id": request_id_var.get(),
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        log_data.update(context_fields(record))
        log_data = {k: v for k, v in log_data.items() if v is not None}

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable console formatter for development.
    """

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        request_id = request_id_var.get()
        req_str = f" [{request_id[:8]}]" if request_id else ""

        formatted = (
            f"{timestamp} {color}{record.levelname:8}{self.RESET}"
            f"{req_str} {record.name} - {record.getMessage()}"
        )

        fields = context_fields(record)
        if fields:
            formatted += " | " + ", ".join(f"{k}={v}" for k, v in fields.items())

        if record.exc_info:
            formatted += f"\n{self.formatException(record.exc_info)}"

        return formatted


def configure_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
    settings: Optional[EngineSettings] = None,
    environment: str = "development",
    log_file: Optional[str] = None,
) -> None:
    """
    Configure root logging for the engine.

    ``level`` and ``json_format`` default to the ``LOG_LEVEL`` and
    ``LOG_JSON`` engine settings.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON structured logging (for production)
        settings: Engine settings (defaults from environment)
        environment: Environment name (development, staging, production)
        log_file: Optional file path for JSON log output
    """
    settings = settings or get_engine_settings()
    level = level or settings.LOG_LEVEL
    json_format = settings.LOG_JSON if json_format is None else json_format

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    if json_format:
        formatter: logging.Formatter = StructuredFormatter(environment=environment)
    else:
        formatter = ConsoleFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter(environment=environment))
        root_logger.addHandler(file_handler)


# =============================================================================
# Context Management
# =============================================================================


class LogContext:
    """
    Correlate every record logged inside a block.

    Sets a request id (generated unless given or already set by an
    enclosing block) and ``fields`` that formatters attach to each record.
    State lives in context variables, so concurrent threads and tasks do
    not see each other's fields. Nested blocks add to the outer fields.

    Example:
        with LogContext(analysis_type="grand_portfolio", period="Q2 2025"):
            service.report(context)
    """

    def __init__(self, request_id: Optional[str] = None, **fields: Any):
        self.request_id = request_id
        self.fields = fields
        self._tokens = None

    def __enter__(self) -> "LogContext":
        self.request_id = self.request_id or request_id_var.get() or str(uuid.uuid4())
        merged = {**(log_fields_var.get() or {}), **self.fields}
        self._tokens = (request_id_var.set(self.request_id), log_fields_var.set(merged))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        request_token, fields_token = self._tokens
        log_fields_var.reset(fields_token)
        request_id_var.reset(request_token)


# =============================================================================
# Performance Logging Decorator
# =============================================================================

T = TypeVar("T")


def log_performance(
    threshold_ms: float = 1000.0,
    log_args: bool = False,
) -> Callable:
    """
    Decorator to log function performance.

    Args:
        threshold_ms: Log warning if execution exceeds this threshold
        log_args: Include function arguments in log

    Example:
        @log_performance(threshold_ms=500)
        def aggregate(self, cohort, period):
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        logger = logging.getLogger(func.__module__)

        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            start_time = time.perf_counter()

            extra: Dict[str, Any] = {"ctx_function": func.__name__}
            if log_args:
                extra["ctx_args"] = str(args)[:200]
                extra["ctx_kwargs"] = str(kwargs)[:200]

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                extra["ctx_duration_ms"] = round((time.perf_counter() - start_time) * 1000, 2)
                extra["ctx_status"] = "error"
                extra["ctx_error_type"] = type(e).__name__
                logger.error(f"Operation failed: {func.__name__} - {e}", extra=extra)
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            extra["ctx_duration_ms"] = round(duration_ms, 2)
            extra["ctx_status"] = "success"

            if duration_ms > threshold_ms:
                logger.warning(
                    f"Slow operation: {func.__name__} took {duration_ms:.2f}ms",
                    extra=extra,
                )
            else:
                logger.debug(
                    f"Operation completed: {func.__name__} in {duration_ms:.2f}ms",
                    extra=extra,
                )

            return result

        return wrapper

    return decorator


# =============================================================================
# Business Event Logging
# =============================================================================


class BusinessLogger:
    """
    Logger for analysis-level events with structured context.
    """

    def __init__(self, logger_name: str = "superinvestors.business"):
        self.logger = logging.getLogger(logger_name)

    def log_analysis_complete(
        self,
        analysis_type: str,
        period: str,
        duration_ms: float,
        result_count: Optional[int] = None,
        cohort_size: Optional[int] = None,
    ) -> None:
        """Log analysis operation completion."""
        extra = {
            "ctx_event": "analysis_complete",
            "ctx_analysis_type": analysis_type,
            "ctx_period": period,
            "ctx_duration_ms": round(duration_ms, 2),
        }
        if result_count is not None:
            extra["ctx_result_count"] = result_count
        if cohort_size is not None:
            extra["ctx_cohort_size"] = cohort_size

        self.logger.info(
            f"Analysis complete: {analysis_type} for {period}",
            extra=extra,
        )

    def log_cache_event(self, kind: str, key: str, hit: bool) -> None:
        """Log an aggregate cache lookup."""
        self.logger.debug(
            f"Cache {'hit' if hit else 'miss'}: {kind}",
            extra={
                "ctx_event": "cache_lookup",
                "ctx_kind": kind,
                "ctx_key": key,
                "ctx_cache_hit": hit,
            },
        )


business_logger = BusinessLogger()
