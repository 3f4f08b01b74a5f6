# Superinvestors Data Module

from superinvestors.data.cache import AggregateCache, cohort_hash
from superinvestors.data.store import FilingStore, InMemoryFilingStore, select_live_filings

__all__ = [
    "FilingStore",
    "InMemoryFilingStore",
    "select_live_filings",
    "AggregateCache",
    "cohort_hash",
]
