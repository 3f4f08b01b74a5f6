# Superinvestors Holdings Module

from superinvestors.holdings.models import (
    AggregateRow,
    BuySellRow,
    CohortMember,
    Filing,
    Holding,
    OwnershipChangeRow,
    PortfolioDiff,
    PositionActivity,
    PositionRow,
    rows_to_frame,
)
from superinvestors.holdings.names import clean_manager_name
from superinvestors.holdings.periods import Period, previous
from superinvestors.holdings.tickers import TickerResolver, resolve_ticker

__all__ = [
    "Period",
    "previous",
    # Source records
    "Filing",
    "Holding",
    # Derived records
    "CohortMember",
    "AggregateRow",
    "OwnershipChangeRow",
    "BuySellRow",
    "PositionActivity",
    "PositionRow",
    "PortfolioDiff",
    "rows_to_frame",
    # Helpers
    "TickerResolver",
    "resolve_ticker",
    "clean_manager_name",
]
