"""
Reporting period arithmetic for quarterly 13F filings.
"""

import re
from dataclasses import dataclass
from datetime import date, timedelta

from superinvestors.core.errors import InvalidPeriodError, validate_period

# 13F filing deadlines (45 days after quarter end)
QUARTER_END_DATES = {
    1: (3, 31),  # Q1 ends March 31
    2: (6, 30),  # Q2 ends June 30
    3: (9, 30),  # Q3 ends September 30
    4: (12, 31),  # Q4 ends December 31
}

FILING_DEADLINE_DAYS = 45

_PERIOD_PATTERNS = (
    re.compile(r"^(?P<year>\d{4})\s*-?\s*Q(?P<quarter>\d)$", re.IGNORECASE),
    re.compile(r"^Q(?P<quarter>\d)\s*-?\s*(?P<year>\d{4})$", re.IGNORECASE),
)


@dataclass(frozen=True, order=True)
class Period:
    """A reporting quarter. Ordering is chronological."""

    year: int
    quarter: int

    @classmethod
    def parse(cls, text: str) -> "Period":
        """
        Parse ``"2025Q2"``, ``"2025-Q2"`` or ``"Q2 2025"``.

        Raises:
            InvalidPeriodError: If the text matches no known format or names
                an invalid quarter or year
        """
        cleaned = (text or "").strip()
        for pattern in _PERIOD_PATTERNS:
            match = pattern.match(cleaned)
            if match:
                return cls(int(match.group("year")), int(match.group("quarter"))).validate()
        raise InvalidPeriodError(
            detail=f"Unrecognized period format: {text!r}",
            context={"text": text},
        )

    @property
    def label(self) -> str:
        return f"Q{self.quarter} {self.year}"

    @property
    def quarter_end(self) -> date:
        month, day = QUARTER_END_DATES[self.quarter]
        return date(self.year, month, day)

    @property
    def filing_deadline(self) -> date:
        return self.quarter_end + timedelta(days=FILING_DEADLINE_DAYS)

    def validate(self) -> "Period":
        """Raise InvalidPeriodError unless this period is usable; returns self."""
        validate_period(self.year, self.quarter)
        return self

    def previous(self) -> "Period":
        return previous(self)

    def shift(self, quarters: int) -> "Period":
        """Move ``quarters`` forward (positive) or backward (negative)."""
        index = self.year * 4 + (self.quarter - 1) + quarters
        return Period(index // 4, index % 4 + 1)

    def __str__(self) -> str:
        return f"{self.year}Q{self.quarter}"


def previous(period: Period) -> Period:
    """Quarter preceding ``period``; Q1 wraps to Q4 of the prior year."""
    if period.quarter == 1:
        return Period(period.year - 1, 4)
    return Period(period.year, period.quarter - 1)
