# Superinvestors Analytics Module

from superinvestors.analytics.aggregation import AggregationEngine, rows_by_ticker
from superinvestors.analytics.changes import NEW_POSITION_PCT, ChangeAnalyzer, ChangeMode
from superinvestors.analytics.cohort import CohortSelector
from superinvestors.analytics.portfolio_diff import ManagerPortfolioDiffer, summarize
from superinvestors.analytics.ranking import RankingService, default_ranking, ticker_tie_break

__all__ = [
    # Pipeline stages
    "CohortSelector",
    "AggregationEngine",
    "rows_by_ticker",
    "ChangeAnalyzer",
    "ChangeMode",
    "NEW_POSITION_PCT",
    "ManagerPortfolioDiffer",
    "summarize",
    # Ranking
    "RankingService",
    "default_ranking",
    "ticker_tie_break",
]
