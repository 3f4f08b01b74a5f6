# Superinvestors Services Module

from superinvestors.services.base import ReportService, report_scope
from superinvestors.services.context import AnalysisContext
from superinvestors.services.grand_portfolio import GrandPortfolioService
from superinvestors.services.manager_portfolio import ManagerPortfolioService
from superinvestors.services.superinvestor_stats import SuperinvestorStatsService

__all__ = [
    "AnalysisContext",
    "ReportService",
    "report_scope",
    "GrandPortfolioService",
    "SuperinvestorStatsService",
    "ManagerPortfolioService",
]
