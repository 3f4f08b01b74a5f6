"""
Grand Portfolio Module

The cohort's combined portfolio: consensus holdings, largest aggregate
positions, conviction holdings and changes in consensus.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from superinvestors.config.logging import business_logger
from superinvestors.holdings.models import AggregateRow, OwnershipChangeRow
from superinvestors.holdings.periods import Period
from superinvestors.services.base import ReportService, report_scope
from superinvestors.services.context import AnalysisContext

logger = logging.getLogger(__name__)


class GrandPortfolioService(ReportService):
    """
    Cohort-wide views of one period's holdings.

    Example:
        >>> service = GrandPortfolioService(store)
        >>> ctx = service.build_context(Period(2025, 2))
        >>> service.consensus_holdings(ctx)[:3]
    """

    def consensus_holdings(self, context: AnalysisContext) -> List[AggregateRow]:
        """Securities ranked by number of cohort owners, then value."""
        return self.aggregate(context)[: self.settings.CONSENSUS_LIMIT]

    def top_holdings_by_value(self, context: AnalysisContext) -> List[AggregateRow]:
        """Consensus holdings ranked by aggregate value."""
        return self.ranking.top_n(
            self.consensus_holdings(context),
            key_fn=lambda r: r.total_value,
            n=self.settings.TOP_VALUE_LIMIT,
        )

    def top_conviction_holdings(self, context: AnalysisContext) -> List[AggregateRow]:
        """
        Widely held securities ranked by their largest single allocation.

        Only rows owned by at least ``CONVICTION_MIN_OWNERS`` managers and
        with a computable position percentage qualify.
        """
        candidates = [
            r
            for r in self.consensus_holdings(context)
            if r.owner_count >= self.settings.CONVICTION_MIN_OWNERS
            and r.max_position_pct is not None
        ]
        return self.ranking.top_n(
            candidates,
            key_fn=lambda r: r.max_position_pct,
            n=self.settings.TOP_VALUE_LIMIT,
        )

    def emerging_consensus(
        self, context: AnalysisContext, prior: Optional[Period] = None
    ) -> List[OwnershipChangeRow]:
        """Securities gaining owners since ``prior`` (default: previous quarter)."""
        prior = prior or context.period.previous()
        return self.analyzer.emerging(
            self.aggregate(context),
            self.aggregate(context, prior),
            limit=self.settings.CONSENSUS_CHANGE_LIMIT,
        )

    def fading_consensus(
        self, context: AnalysisContext, prior: Optional[Period] = None
    ) -> List[OwnershipChangeRow]:
        """Securities losing owners since ``prior`` (default: previous quarter)."""
        prior = prior or context.period.previous()
        return self.analyzer.fading(
            self.aggregate(context),
            self.aggregate(context, prior),
            limit=self.settings.CONSENSUS_CHANGE_LIMIT,
        )

    def portfolio_stats(self, context: AnalysisContext) -> Dict[str, Any]:
        """
        Summary of the grand portfolio.

        Returns:
            Dictionary with total_managers, total_unique_stocks, total_value,
            avg_stocks_per_manager and most_popular_stock
        """
        rows = self.aggregate(context)
        if not rows:
            logger.info(f"No holdings for cohort in {context.period.label}")
        return {
            "total_managers": len(context.members),
            "total_unique_stocks": len(rows),
            "total_value": float(sum(r.total_value for r in rows)),
            "avg_stocks_per_manager": self.avg_stocks_per_manager(context),
            "most_popular_stock": rows[0].to_dict() if rows else None,
        }

    def avg_stocks_per_manager(self, context: AnalysisContext) -> float:
        """Mean reported holdings count across the cohort, one decimal."""
        if not context.members:
            return 0.0
        total_holdings = sum(m.holdings_count for m in context.members)
        return round(total_holdings / len(context.members), 1)

    def report(
        self, context: AnalysisContext, prior: Optional[Period] = None
    ) -> Dict[str, Any]:
        """
        All grand portfolio views for the context as plain dictionaries.
        """
        start = time.perf_counter()
        prior = prior or context.period.previous()

        with report_scope("grand_portfolio", context.period.label, context.request_id):
            result = {
                "period": context.to_dict(),
                "comparison_period": {
                    "year": prior.year,
                    "quarter": prior.quarter,
                    "period": prior.label,
                },
                "stats": self.portfolio_stats(context),
                "consensus_holdings": [r.to_dict() for r in self.consensus_holdings(context)],
                "top_holdings_by_value": [
                    r.to_dict() for r in self.top_holdings_by_value(context)
                ],
                "top_conviction_holdings": [
                    r.to_dict() for r in self.top_conviction_holdings(context)
                ],
                "emerging_consensus": [
                    r.to_dict() for r in self.emerging_consensus(context, prior)
                ],
                "fading_consensus": [
                    r.to_dict() for r in self.fading_consensus(context, prior)
                ],
            }

            business_logger.log_analysis_complete(
                "grand_portfolio",
                context.period.label,
                (time.perf_counter() - start) * 1000,
                result_count=len(result["consensus_holdings"]),
                cohort_size=len(context.members),
            )
        return result
