"""
Manager Portfolio Diff Module

Compares one manager's holdings in two consecutive filings position by
position and classifies each position as new, increased, decreased,
unchanged or sold.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from superinvestors.analytics.ranking import RankingService, default_ranking
from superinvestors.holdings.models import Holding, PortfolioDiff, PositionActivity, PositionRow
from superinvestors.holdings.tickers import TickerResolver

logger = logging.getLogger(__name__)

SUMMARY_KEYS = {
    PositionActivity.NEW: "new_positions",
    PositionActivity.INCREASED: "increased_positions",
    PositionActivity.DECREASED: "decreased_positions",
    PositionActivity.SOLD: "sold_positions",
    PositionActivity.UNCHANGED: "unchanged_positions",
}


@dataclass
class _Position:
    """Holdings of one ticker within one filing, summed."""

    ticker: str
    security_id: str
    issuer_name: str
    class_title: str
    shares: int = 0
    value: float = 0.0


def _consolidate(holdings: Iterable[Holding], resolver: TickerResolver) -> Dict[str, _Position]:
    # Several lines (share classes, options) can resolve to one ticker; the
    # first line seen supplies the descriptive fields.
    positions: Dict[str, _Position] = {}
    for holding in holdings:
        ticker = resolver.resolve(holding.security_id)
        position = positions.get(ticker)
        if position is None:
            position = _Position(
                ticker=ticker,
                security_id=holding.security_id,
                issuer_name=holding.issuer_name or "",
                class_title=holding.class_title or "",
            )
            positions[ticker] = position
        position.shares += holding.shares_or_principal or 0
        position.value += holding.value or 0.0
    return positions


class ManagerPortfolioDiffer:
    """
    Quarter-over-quarter diff of a single manager's portfolio.
    """

    def __init__(self, ranking: Optional[RankingService] = None):
        self.ranking = ranking or default_ranking

    def diff(
        self,
        current_holdings: Iterable[Holding],
        current_total_value: float,
        prior_holdings: Optional[Iterable[Holding]] = None,
        resolver: Optional[TickerResolver] = None,
    ) -> PortfolioDiff:
        """
        Diff the current filing against the prior one.

        Args:
            current_holdings: Holdings of the current filing
            current_total_value: Reported total value of the current filing
            prior_holdings: Holdings of the previous filing, or None when the
                manager did not file for the previous period
            resolver: Ticker resolver shared with the other views

        Returns:
            PortfolioDiff ordered by percent of portfolio desc, then issuer
        """
        resolver = resolver or TickerResolver()
        total = float(current_total_value or 0)
        current = _consolidate(current_holdings, resolver)
        prior = _consolidate(prior_holdings, resolver) if prior_holdings is not None else None

        rows: List[PositionRow] = []
        for ticker, position in current.items():
            percent = position.value * 100.0 / total if total > 0 else 0.0
            prev = prior.get(ticker) if prior is not None else None

            if prev is None:
                rows.append(
                    PositionRow(
                        ticker=ticker,
                        security_id=position.security_id,
                        issuer_name=position.issuer_name,
                        class_title=position.class_title,
                        shares=position.shares,
                        value=position.value,
                        percent_of_portfolio=percent,
                        activity=PositionActivity.NEW,
                        change_shares=position.shares,
                        change_value=position.value,
                    )
                )
                continue

            shares_change = position.shares - prev.shares
            if shares_change > 0:
                activity = PositionActivity.INCREASED
            elif shares_change < 0:
                activity = PositionActivity.DECREASED
            else:
                activity = PositionActivity.UNCHANGED

            rows.append(
                PositionRow(
                    ticker=ticker,
                    security_id=position.security_id,
                    issuer_name=position.issuer_name,
                    class_title=position.class_title,
                    shares=position.shares,
                    value=position.value,
                    percent_of_portfolio=percent,
                    activity=activity,
                    change_shares=shares_change,
                    change_value=position.value - prev.value,
                    change_percent=(
                        shares_change * 100.0 / prev.shares if prev.shares > 0 else None
                    ),
                    prev_shares=prev.shares,
                    prev_value=prev.value,
                )
            )

        if prior is not None:
            for ticker, prev in prior.items():
                if ticker in current:
                    continue
                rows.append(
                    PositionRow(
                        ticker=ticker,
                        security_id=prev.security_id,
                        issuer_name=prev.issuer_name,
                        class_title=prev.class_title,
                        shares=0,
                        value=0.0,
                        percent_of_portfolio=0.0,
                        activity=PositionActivity.SOLD,
                        change_shares=-prev.shares,
                        change_value=-prev.value,
                        change_percent=-100.0 if prev.shares > 0 else None,
                        prev_shares=prev.shares,
                        prev_value=prev.value,
                    )
                )

        ordered = self.ranking.rank(
            rows,
            key_fn=lambda r: r.percent_of_portfolio,
            tie_break_fn=lambda r: (r.issuer_name, r.ticker),
        )
        summary = summarize(ordered)
        logger.debug(
            f"Diffed {len(current)} current positions against "
            f"{len(prior) if prior is not None else 'no'} prior positions",
            extra={"ctx_summary": summary},
        )
        return PortfolioDiff(rows=ordered, summary=summary)


def summarize(rows: Iterable[PositionRow]) -> Dict[str, int]:
    """Count rows per activity bucket; every bucket is present."""
    summary = {key: 0 for key in SUMMARY_KEYS.values()}
    total = 0
    for row in rows:
        summary[SUMMARY_KEYS[row.activity]] += 1
        total += 1
    summary["total_positions"] = total
    return summary
