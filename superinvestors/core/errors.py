"""
Superinvestors Error Handling Module

Structured error codes, typed exceptions and helpers for the holdings
aggregation engine. Errors carry a code, a user-facing message and a
recovery hint so callers can map them to their own response format.
"""

import logging
import traceback
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum, auto
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# Filings under section 13(f) started in 1978; anything earlier is a typo.
MIN_REPORT_YEAR = 1978

# =============================================================================
# Error Code Taxonomy
# =============================================================================


class ErrorCategory(Enum):
    """Top-level error categories."""

    DATA = "DATA"
    VALIDATION = "VALIDATION"
    SERVICE = "SERVICE"
    SYSTEM = "SYSTEM"


class ErrorSeverity(Enum):
    """Error severity levels for monitoring and alerting."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


@dataclass
class ErrorCode:
    """Structured error code with metadata."""

    code: str
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    user_message: str
    retryable: bool = False
    recovery_hint: str = ""

    def __str__(self) -> str:
        return f"{self.category.value}_{self.code}"


class ErrorCodes:
    """Central registry of all engine error codes."""

    # Data Errors (2xxx)
    DATA_MANAGER_NOT_FOUND = ErrorCode(
        code="2001",
        category=ErrorCategory.DATA,
        severity=ErrorSeverity.INFO,
        message="No filing found for manager",
        user_message="No filing is available for this manager.",
        retryable=False,
        recovery_hint="Verify the CIK and the requested reporting period.",
    )

    DATA_DUPLICATE_FILING = ErrorCode(
        code="2002",
        category=ErrorCategory.DATA,
        severity=ErrorSeverity.WARNING,
        message="Duplicate live filing for manager and period",
        user_message="More than one current filing exists for this period.",
        retryable=False,
        recovery_hint="The most recently filed report is used.",
    )

    DATA_FILING_NOT_FOUND = ErrorCode(
        code="2003",
        category=ErrorCategory.DATA,
        severity=ErrorSeverity.INFO,
        message="Filing not found",
        user_message="The requested filing is not available.",
        retryable=False,
        recovery_hint="Verify the filing identifier.",
    )

    # Validation Errors (4xxx)
    VALIDATION_INVALID_PERIOD = ErrorCode(
        code="4001",
        category=ErrorCategory.VALIDATION,
        severity=ErrorSeverity.INFO,
        message="Invalid reporting period",
        user_message="The reporting period is not valid.",
        retryable=False,
        recovery_hint="Quarter must be 1-4 and year must not be in the future.",
    )

    VALIDATION_INVALID_VALUE = ErrorCode(
        code="4002",
        category=ErrorCategory.VALIDATION,
        severity=ErrorSeverity.INFO,
        message="Field value is invalid",
        user_message="One of the values is not valid.",
        retryable=False,
        recovery_hint="Check the allowed values for this field.",
    )

    # Service Errors (5xxx)
    SERVICE_TIMEOUT = ErrorCode(
        code="5001",
        category=ErrorCategory.SERVICE,
        severity=ErrorSeverity.WARNING,
        message="Computation exceeded its time budget",
        user_message="The analysis took too long. Please try again.",
        retryable=True,
        recovery_hint="Retry later or request a smaller cohort.",
    )

    # System Errors (7xxx)
    SYSTEM_INTERNAL_ERROR = ErrorCode(
        code="7001",
        category=ErrorCategory.SYSTEM,
        severity=ErrorSeverity.CRITICAL,
        message="Internal system error",
        user_message="An unexpected error occurred.",
        retryable=False,
        recovery_hint="Please try again. If the problem persists, contact support.",
    )


# =============================================================================
# Base Exception Classes
# =============================================================================


class SuperinvestorsError(Exception):
    """
    Base exception for all engine errors.

    Provides structured error information including error codes,
    user-friendly messages, and recovery suggestions.
    """

    def __init__(
        self,
        error_code: ErrorCode,
        detail: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None,
        debug_info: Optional[Dict[str, Any]] = None,
    ):
        self.error_code = error_code
        self.detail = detail
        self.original_error = original_error
        self.context = context or {}
        self.debug_info = debug_info or {}
        self.timestamp = datetime.now(timezone.utc)

        if original_error:
            self.debug_info["original_traceback"] = traceback.format_exception(
                type(original_error), original_error, original_error.__traceback__
            )

        super().__init__(self.technical_message)

    @property
    def code(self) -> str:
        """Full error code string."""
        return str(self.error_code)

    @property
    def category(self) -> ErrorCategory:
        return self.error_code.category

    @property
    def severity(self) -> ErrorSeverity:
        return self.error_code.severity

    @property
    def is_retryable(self) -> bool:
        return self.error_code.retryable

    @property
    def user_message(self) -> str:
        """User-friendly error message."""
        msg = self.error_code.user_message
        if self.detail:
            msg = f"{msg} ({self.detail})"
        return msg

    @property
    def technical_message(self) -> str:
        """Technical error message for logging."""
        msg = f"[{self.code}] {self.error_code.message}"
        if self.detail:
            msg = f"{msg}: {self.detail}"
        return msg

    @property
    def recovery_hint(self) -> str:
        return self.error_code.recovery_hint

    def to_dict(self, include_debug: bool = False) -> Dict[str, Any]:
        """
        Convert error to a plain dictionary for the caller.

        Args:
            include_debug: Include debug information (for dev mode only)
        """
        result = {
            "code": self.code,
            "category": self.category.value,
            "message": self.user_message,
            "recovery_hint": self.recovery_hint,
            "retryable": self.is_retryable,
            "timestamp": self.timestamp.isoformat(),
        }

        if include_debug:
            result["debug"] = {
                "technical_message": self.technical_message,
                "context": self.context,
                "debug_info": self.debug_info,
            }

        return result

    def log(self) -> None:
        """Log the error with appropriate severity."""
        log_method = getattr(logger, self.severity.name.lower(), logger.error)
        log_method(
            f"{self.technical_message}",
            extra={
                "ctx_error_code": self.code,
                "ctx_context": self.context,
                "ctx_retryable": self.is_retryable,
            },
        )


class InvalidPeriodError(SuperinvestorsError):
    """Quarter outside 1-4, or a year that cannot carry 13F filings."""

    def __init__(
        self,
        error_code: ErrorCode = ErrorCodes.VALIDATION_INVALID_PERIOD,
        **kwargs,
    ):
        super().__init__(error_code, **kwargs)


class ManagerNotFoundError(SuperinvestorsError):
    """No filing exists for the requested manager/period."""

    def __init__(
        self,
        error_code: ErrorCode = ErrorCodes.DATA_MANAGER_NOT_FOUND,
        **kwargs,
    ):
        super().__init__(error_code, **kwargs)


class FilingNotFoundError(SuperinvestorsError):
    """Filing identifier unknown to the store."""

    def __init__(
        self,
        error_code: ErrorCode = ErrorCodes.DATA_FILING_NOT_FOUND,
        **kwargs,
    ):
        super().__init__(error_code, **kwargs)


class DataInconsistencyError(SuperinvestorsError):
    """
    Duplicate live filing for the same manager/period.

    The engine resolves this by keeping the most recently filed report and
    logging the condition; it is only raised when a caller asks for strict
    filing selection.
    """

    def __init__(
        self,
        error_code: ErrorCode = ErrorCodes.DATA_DUPLICATE_FILING,
        **kwargs,
    ):
        super().__init__(error_code, **kwargs)


class ComputationTimeoutError(SuperinvestorsError):
    """A caller-imposed time budget ran out before the result was complete."""

    def __init__(
        self,
        error_code: ErrorCode = ErrorCodes.SERVICE_TIMEOUT,
        **kwargs,
    ):
        super().__init__(error_code, **kwargs)


# =============================================================================
# Utilities
# =============================================================================


def wrap_exception(
    exception: Exception,
    default_code: ErrorCode = ErrorCodes.SYSTEM_INTERNAL_ERROR,
    context: Optional[Dict[str, Any]] = None,
) -> SuperinvestorsError:
    """
    Wrap a generic exception in a SuperinvestorsError.

    Engine errors are returned unchanged. ``TimeoutError`` becomes a
    ComputationTimeoutError and ``ValueError`` an invalid-value error;
    anything else gets ``default_code``.
    """
    if isinstance(exception, SuperinvestorsError):
        return exception

    if isinstance(exception, TimeoutError):
        return ComputationTimeoutError(
            detail=str(exception), original_error=exception, context=context
        )

    error_code = (
        ErrorCodes.VALIDATION_INVALID_VALUE if isinstance(exception, ValueError) else default_code
    )
    return SuperinvestorsError(
        error_code,
        detail=f"{type(exception).__name__}: {exception}",
        original_error=exception,
        context=context,
    )


def validate_period(year: int, quarter: int) -> None:
    """
    Validate a reporting period.

    Raises:
        InvalidPeriodError: If quarter is not 1-4 or the year is implausible
    """
    if not isinstance(quarter, int) or isinstance(quarter, bool) or not 1 <= quarter <= 4:
        raise InvalidPeriodError(
            detail=f"Quarter must be between 1 and 4, got {quarter!r}",
            context={"year": year, "quarter": quarter},
        )

    if not isinstance(year, int) or isinstance(year, bool):
        raise InvalidPeriodError(
            detail=f"Year must be an integer, got {year!r}",
            context={"year": year, "quarter": quarter},
        )

    if year < MIN_REPORT_YEAR or year > date.today().year:
        raise InvalidPeriodError(
            detail=f"Year {year} is outside {MIN_REPORT_YEAR}-{date.today().year}",
            context={"year": year, "quarter": quarter},
        )


__all__ = [
    # Enums
    "ErrorCategory",
    "ErrorSeverity",
    # Error Codes
    "ErrorCode",
    "ErrorCodes",
    # Exceptions
    "SuperinvestorsError",
    "InvalidPeriodError",
    "ManagerNotFoundError",
    "FilingNotFoundError",
    "DataInconsistencyError",
    "ComputationTimeoutError",
    # Utilities
    "wrap_exception",
    "validate_period",
]
