"""
Superinvestors: cohort analytics over 13F institutional holdings filings.
"""

from superinvestors.core.errors import SuperinvestorsError
from superinvestors.data.store import FilingStore, InMemoryFilingStore
from superinvestors.holdings.periods import Period
from superinvestors.services import (
    AnalysisContext,
    GrandPortfolioService,
    ManagerPortfolioService,
    SuperinvestorStatsService,
)

__version__ = "0.1.0"

__all__ = [
    "Period",
    "FilingStore",
    "InMemoryFilingStore",
    "AnalysisContext",
    "GrandPortfolioService",
    "SuperinvestorStatsService",
    "ManagerPortfolioService",
    "SuperinvestorsError",
]
