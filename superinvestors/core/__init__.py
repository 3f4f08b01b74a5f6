# Superinvestors Core Module

from superinvestors.core.deadline import Deadline, unbounded
from superinvestors.core.errors import (
    ComputationTimeoutError,
    DataInconsistencyError,
    ErrorCategory,
    ErrorCode,
    ErrorCodes,
    ErrorSeverity,
    FilingNotFoundError,
    InvalidPeriodError,
    ManagerNotFoundError,
    SuperinvestorsError,
    validate_period,
    wrap_exception,
)

__all__ = [
    # Errors
    "ErrorCategory",
    "ErrorSeverity",
    "ErrorCode",
    "ErrorCodes",
    "SuperinvestorsError",
    "InvalidPeriodError",
    "ManagerNotFoundError",
    "FilingNotFoundError",
    "DataInconsistencyError",
    "ComputationTimeoutError",
    "wrap_exception",
    "validate_period",
    # Time budget
    "Deadline",
    "unbounded",
]
