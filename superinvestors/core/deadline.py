"""
Cooperative time budget for report computations.
"""

import time
from typing import Callable, Optional

from superinvestors.core.errors import ComputationTimeoutError


class Deadline:
    """
    A point in time after which a computation must stop.

    Long-running stages call ``check`` between units of work; an expired
    deadline raises ComputationTimeoutError so the caller never receives
    a partial result.
    """

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.timeout_seconds = timeout_seconds
        self._clock = clock
        self._started = clock()

    @property
    def elapsed_seconds(self) -> float:
        return self._clock() - self._started

    @property
    def expired(self) -> bool:
        if self.timeout_seconds is None:
            return False
        return self.elapsed_seconds > self.timeout_seconds

    def check(self, stage: str) -> None:
        """
        Raise if the budget is spent.

        Args:
            stage: Name of the stage about to run, for the error context
        """
        if self.expired:
            raise ComputationTimeoutError(
                detail=f"Time budget of {self.timeout_seconds}s exceeded during {stage}",
                context={
                    "stage": stage,
                    "timeout_seconds": self.timeout_seconds,
                    "elapsed_seconds": round(self.elapsed_seconds, 3),
                },
            )


def unbounded() -> Deadline:
    """A deadline that never expires."""
    return Deadline(None)
