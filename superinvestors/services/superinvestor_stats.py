"""
Superinvestor Statistics Module

Ranked statistics across the cohort's portfolios: most owned stocks,
largest aggregate allocations, big bets, top buys and sells over one and
two quarter horizons, and period-over-period comparisons.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Union

from superinvestors.analytics.aggregation import rows_by_ticker
from superinvestors.analytics.changes import ChangeMode
from superinvestors.config.logging import business_logger
from superinvestors.holdings.models import AggregateRow, BuySellRow
from superinvestors.holdings.periods import Period
from superinvestors.holdings.tickers import TickerResolver
from superinvestors.services.base import ReportService, report_scope
from superinvestors.services.context import AnalysisContext

logger = logging.getLogger(__name__)

# (field compared, prior-value key, change key) per ranked category
COMPARISON_FIELDS = {
    "top_owned": ("owner_count", "prev_owner_count", "owner_change"),
    "top_by_pct": ("weighted_pct", "prev_weighted_pct", "weighted_pct_change"),
    "big_bets": ("max_position_pct", "prev_max_position_pct", "max_position_pct_change"),
}


class SuperinvestorStatsService(ReportService):
    """
    Ranked statistics for a cohort and period.
    """

    # =========================================================================
    # Single-period rankings
    # =========================================================================

    def top_stocks_by_ownership_count(
        self, context: AnalysisContext, period: Optional[Period] = None
    ) -> List[AggregateRow]:
        """Most widely owned stocks; ties go to the larger aggregate value."""
        rows = self.aggregate(context, period)
        return self.ranking.top_n(
            rows,
            key_fn=lambda r: (r.owner_count, r.total_value),
            n=self.settings.STATS_LIMIT,
        )

    def top_stocks_by_aggregate_percentage(
        self, context: AnalysisContext, period: Optional[Period] = None
    ) -> List[AggregateRow]:
        """
        Stocks with the largest summed portfolio weight across managers.

        ``weighted_pct`` adds up each owner's position percentage, so a stock
        that is 10% of two portfolios scores 20.
        """
        rows = [r for r in self.aggregate(context, period) if r.weighted_pct is not None]
        return self.ranking.top_n(
            rows, key_fn=lambda r: r.weighted_pct, n=self.settings.STATS_LIMIT
        )

    def top_big_bets(
        self, context: AnalysisContext, period: Optional[Period] = None
    ) -> List[AggregateRow]:
        """Stocks with the highest single-manager allocation."""
        rows = [r for r in self.aggregate(context, period) if r.max_position_pct is not None]
        return self.ranking.top_n(
            rows, key_fn=lambda r: r.max_position_pct, n=self.settings.STATS_LIMIT
        )

    # =========================================================================
    # Buys / sells
    # =========================================================================

    def top_buys(
        self,
        context: AnalysisContext,
        quarters_back: int = 1,
        mode: Union[ChangeMode, str] = ChangeMode.VALUE,
    ) -> List[BuySellRow]:
        """
        Largest cohort-wide increases against ``quarters_back`` quarters ago.

        Args:
            context: Request context
            quarters_back: Comparison horizon in quarters (1 or 2 in reports)
            mode: Rank by value change or by percentage change
        """
        prior = context.period.shift(-quarters_back)
        return self.analyzer.buys(
            self.aggregate(context),
            self.aggregate(context, prior),
            mode=ChangeMode(mode),
            limit=self.settings.STATS_LIMIT,
        )

    def top_sells(
        self,
        context: AnalysisContext,
        quarters_back: int = 1,
        mode: Union[ChangeMode, str] = ChangeMode.VALUE,
    ) -> List[BuySellRow]:
        """Largest cohort-wide decreases against ``quarters_back`` quarters ago."""
        prior = context.period.shift(-quarters_back)
        return self.analyzer.sells(
            self.aggregate(context),
            self.aggregate(context, prior),
            mode=ChangeMode(mode),
            limit=self.settings.STATS_LIMIT,
        )

    # =========================================================================
    # Cohort listing
    # =========================================================================

    def superinvestors_list(self, context: AnalysisContext) -> List[Dict[str, Any]]:
        """
        Cohort members with their largest holdings, biggest portfolio first.

        Returns:
            List of dicts with cik, name, investor, portfolio_value,
            num_stocks and top_holdings (tickers)
        """
        result = []
        for member in context.members:
            if not member.filing_id:
                logger.debug(f"Skipping {member.manager_id}: no filing in {context.period}")
                continue
            context.deadline.check(f"listing holdings for {member.manager_id}")
            result.append(
                {
                    "cik": member.manager_id,
                    "name": member.name,
                    "investor": member.investor,
                    "portfolio_value": member.total_value,
                    "num_stocks": member.holdings_count,
                    "top_holdings": self._top_holdings(member.filing_id),
                }
            )

        return sorted(result, key=lambda s: -(s["portfolio_value"] or 0))

    def _top_holdings(self, filing_id: str) -> List[str]:
        holdings = [h for h in self.store.list_holdings(filing_id) if h.value is not None]
        resolver = TickerResolver.from_store(self.store, [h.security_id for h in holdings])
        ranked = self.ranking.top_n(
            holdings,
            key_fn=lambda h: h.value,
            n=self.settings.MANAGER_TOP_HOLDINGS,
            tie_break_fn=lambda h: h.security_id,
        )
        return [resolver.resolve(h.security_id) for h in ranked]

    # =========================================================================
    # Period comparison
    # =========================================================================

    def period_stats(
        self, context: AnalysisContext, period: Optional[Period] = None
    ) -> Dict[str, List[AggregateRow]]:
        """Top-owned, top-by-percentage and big-bet rankings for one period."""
        return {
            "top_owned": self.top_stocks_by_ownership_count(context, period),
            "top_by_pct": self.top_stocks_by_aggregate_percentage(context, period),
            "big_bets": self.top_big_bets(context, period),
        }

    def compare_periods(
        self, context: AnalysisContext, prior: Optional[Period] = None
    ) -> Dict[str, List[Dict[str, Any]]]:
        """
        Current-period rankings annotated with the prior period's figures.

        A row also present in the prior period's ranking of the same
        category gains the prior value and the change; otherwise it is
        flagged ``is_new``.
        """
        prior = prior or context.period.previous()
        current_stats = self.period_stats(context)
        prior_stats = self.period_stats(context, prior)

        compared = {}
        for category, (field_name, prev_key, change_key) in COMPARISON_FIELDS.items():
            prior_rows = rows_by_ticker(prior_stats[category])
            annotated = []
            for row in current_stats[category]:
                data = row.to_dict()
                prev = prior_rows.get(row.ticker)
                if prev is None:
                    data["is_new"] = True
                else:
                    prev_value = getattr(prev, field_name) or 0
                    data[prev_key] = prev_value
                    data[change_key] = (getattr(row, field_name) or 0) - prev_value
                    data["is_new"] = False
                annotated.append(data)
            compared[category] = annotated

        return compared

    # =========================================================================
    # Full report
    # =========================================================================

    def report(self, context: AnalysisContext) -> Dict[str, Any]:
        """
        All statistics for the context as plain dictionaries.
        """
        start = time.perf_counter()
        prior = context.period.previous()

        def as_dicts(fetch: Callable[[], List[Any]]) -> List[Dict[str, Any]]:
            return [row.to_dict() for row in fetch()]

        with report_scope("superinvestor_stats", context.period.label, context.request_id):
            compared = self.compare_periods(context, prior)
            stats = dict(compared)
            for quarters_back in (1, 2):
                for mode, suffix in ((ChangeMode.VALUE, ""), (ChangeMode.PERCENTAGE, "_pct")):
                    stats[f"top_buys_{quarters_back}q{suffix}"] = as_dicts(
                        lambda: self.top_buys(context, quarters_back, mode)
                    )
                    stats[f"top_sells_{quarters_back}q{suffix}"] = as_dicts(
                        lambda: self.top_sells(context, quarters_back, mode)
                    )

            result = {
                "periods": {
                    "current": context.to_dict(),
                    "comparison": {
                        "year": prior.year,
                        "quarter": prior.quarter,
                        "period": prior.label,
                    },
                },
                "superinvestors": self.superinvestors_list(context),
                "stats": stats,
            }

            business_logger.log_analysis_complete(
                "superinvestor_stats",
                context.period.label,
                (time.perf_counter() - start) * 1000,
                cohort_size=len(context.members),
            )
        return result
