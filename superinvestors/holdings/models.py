"""
Holdings Data Models

Source records (filings and holdings, read from the filing store) and the
derived, per-request records produced by the analytics layer.
"""

from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from superinvestors.holdings.periods import Period


def _to_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(value)


def _to_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return int(value)


# =============================================================================
# Source records
# =============================================================================


@dataclass
class Filing:
    """One manager's 13F report for one period."""

    filing_id: str
    manager_id: str
    name: str
    period: Period
    date_filed: date
    total_value: float = 0.0
    holdings_count: int = 0
    superseded_by: Optional[str] = None

    def __post_init__(self):
        self.total_value = _to_float(self.total_value) or 0.0
        self.holdings_count = int(self.holdings_count or 0)

    @property
    def is_restated(self) -> bool:
        """A filing replaced by a later correction."""
        return self.superseded_by is not None


@dataclass
class Holding:
    """A single line of a filing's information table."""

    filing_id: str
    security_id: str
    issuer_name: str
    class_title: str = ""
    value: Optional[float] = None
    shares_or_principal: Optional[int] = None

    def __post_init__(self):
        # None means unknown; never coerce it to zero
        self.value = _to_float(self.value)
        self.shares_or_principal = _to_int(self.shares_or_principal)


@dataclass
class CohortMember:
    """A manager selected into the cohort, in selection order."""

    manager_id: str
    name: str
    investor: str
    total_value: float
    holdings_count: int
    filing_id: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# =============================================================================
# Derived records
# =============================================================================


@dataclass
class AggregateRow:
    """Cohort-wide totals for one (ticker, issuer) group in one period."""

    ticker: str
    issuer_name: str
    owner_count: int
    total_value: float
    total_shares: int = 0
    avg_position_pct: Optional[float] = None
    max_position_pct: Optional[float] = None
    min_position_pct: Optional[float] = None
    weighted_pct: Optional[float] = None
    owner_names: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class OwnershipChangeRow:
    """A ticker whose distinct-owner count moved between two periods."""

    ticker: str
    issuer_name: str
    current_owners: int
    previous_owners: int
    owner_change: int
    total_value: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BuySellRow:
    """
    Cohort-wide value change for a ticker.

    ``value_change`` and ``pct_change`` are magnitudes: sells carry positive
    numbers and are distinguished by the list they appear in.
    """

    ticker: str
    issuer_name: str
    value_change: float
    pct_change: float
    current_value: float
    previous_value: float
    ownership_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PositionActivity(Enum):
    """Quarter-over-quarter classification of a manager's position."""

    NEW = "new"
    INCREASED = "increased"
    DECREASED = "decreased"
    SOLD = "sold"
    UNCHANGED = "unchanged"


@dataclass
class PositionRow:
    """One line of a manager's quarter-over-quarter portfolio diff."""

    ticker: str
    security_id: str
    issuer_name: str
    class_title: str
    shares: int
    value: float
    percent_of_portfolio: float
    activity: PositionActivity
    change_shares: int
    change_value: float
    change_percent: Optional[float] = None
    prev_shares: Optional[int] = None
    prev_value: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["activity"] = self.activity.value
        return data


@dataclass
class PortfolioDiff:
    """Ordered position rows plus a count per activity bucket."""

    rows: List[PositionRow] = field(default_factory=list)
    summary: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "holdings": [row.to_dict() for row in self.rows],
            "summary": dict(self.summary),
        }


def rows_to_frame(rows: Iterable[Any]) -> pd.DataFrame:
    """
    Convert derived records to a DataFrame, one column per field.

    Args:
        rows: Records exposing ``to_dict()``

    Returns:
        DataFrame preserving the input order
    """
    return pd.DataFrame([row.to_dict() for row in rows])
