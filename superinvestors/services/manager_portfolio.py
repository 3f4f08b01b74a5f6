"""
Manager Portfolio Module

Single-manager views: the quarter-over-quarter position diff of one
manager and the raw holdings of one filing.
"""

import logging
from typing import Any, Dict, List, Optional

from superinvestors.analytics.portfolio_diff import ManagerPortfolioDiffer
from superinvestors.analytics.ranking import RankingService, default_ranking
from superinvestors.core.errors import ManagerNotFoundError
from superinvestors.data.store import FilingStore, select_live_filings
from superinvestors.holdings.models import Filing
from superinvestors.holdings.names import clean_manager_name
from superinvestors.holdings.periods import Period
from superinvestors.holdings.tickers import TickerResolver
from superinvestors.services.base import report_scope

logger = logging.getLogger(__name__)


class ManagerPortfolioService:
    """
    Portfolio detail for individual managers.

    Example:
        >>> service = ManagerPortfolioService(store)
        >>> result = service.manager_portfolio("0001067983", Period(2025, 2))
        >>> result["summary"]["new_positions"]
    """

    def __init__(self, store: FilingStore, ranking: Optional[RankingService] = None):
        self.store = store
        self.ranking = ranking or default_ranking
        self.differ = ManagerPortfolioDiffer(ranking=self.ranking)

    def manager_portfolio(
        self,
        manager_id: str,
        period: Optional[Period] = None,
        request_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Diff a manager's filing against the previous quarter's.

        Args:
            manager_id: Manager CIK
            period: Reporting period; the latest filed period when omitted
            request_id: Correlation id for the request's logs

        Returns:
            Dictionary with the manager header, holdings rows and summary

        Raises:
            ManagerNotFoundError: If the manager has no live filing for the period
        """
        label = period.label if period is not None else "latest"
        with report_scope("manager_portfolio", label, request_id):
            if period is not None:
                period.validate()

            filings = select_live_filings(self.store.list_manager_filings(manager_id))
            by_period = {f.period: f for f in filings}

            if period is None:
                current = max(filings, key=lambda f: f.period) if filings else None
            else:
                current = by_period.get(period)

            if current is None:
                raise ManagerNotFoundError(
                    detail=f"No filing for manager {manager_id}"
                    + (f" in {period}" if period is not None else ""),
                    context={"manager_id": manager_id, "period": str(period) if period else None},
                )

            prior = by_period.get(current.period.previous())
            current_holdings = self.store.list_holdings(current.filing_id)
            prior_holdings = self.store.list_holdings(prior.filing_id) if prior else None

            security_ids = [h.security_id for h in current_holdings]
            if prior_holdings:
                security_ids.extend(h.security_id for h in prior_holdings)
            resolver = TickerResolver.from_store(self.store, security_ids)

            diff = self.differ.diff(
                current_holdings,
                current.total_value,
                prior_holdings=prior_holdings,
                resolver=resolver,
            )

            logger.info(
                f"Portfolio diff for {manager_id} {current.period}: "
                f"{diff.summary['total_positions']} positions",
                extra={"ctx_manager_id": manager_id, "ctx_has_prior": prior is not None},
            )

        result = {"manager": self._header(current)}
        result.update(diff.to_dict())
        return result

    def filing_holdings(self, filing_id: str) -> List[Dict[str, Any]]:
        """
        Holdings of one filing, largest value first.

        ``pct`` is the share of the filing's total value rounded to one
        decimal, or None when the holding value is unknown or the total is 0.

        Raises:
            FilingNotFoundError: If the filing is unknown
        """
        filing = self.store.get_filing(filing_id)
        holdings = self.store.list_holdings(filing_id)
        resolver = TickerResolver.from_store(self.store, [h.security_id for h in holdings])
        total = filing.total_value

        ranked = self.ranking.rank(
            holdings,
            key_fn=lambda h: h.value if h.value is not None else float("-inf"),
            tie_break_fn=lambda h: (h.issuer_name or "", h.security_id),
        )

        rows = []
        for holding in ranked:
            pct = None
            if holding.value is not None and total > 0:
                pct = round(holding.value * 100.0 / total, 1)
            rows.append(
                {
                    "ticker": resolver.resolve(holding.security_id),
                    "security_id": holding.security_id,
                    "issuer_name": holding.issuer_name,
                    "class_title": holding.class_title,
                    "value": holding.value,
                    "shares": holding.shares_or_principal,
                    "pct": pct,
                }
            )
        return rows

    @staticmethod
    def _header(filing: Filing) -> Dict[str, Any]:
        return {
            "cik": filing.manager_id,
            "name": filing.name,
            "investor": clean_manager_name(filing.name),
            "portfolio_value": filing.total_value,
            "holdings_count": filing.holdings_count,
            "period": filing.period.label,
            "year": filing.period.year,
            "quarter": filing.period.quarter,
            "date_filed": filing.date_filed.isoformat(),
            "filing_id": filing.filing_id,
        }
