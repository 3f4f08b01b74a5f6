"""
Period-over-Period Change Analysis Module

Compares cohort aggregates for two periods: which securities gained or
lost distinct owners (emerging / fading consensus) and which saw the
largest cohort-wide value increases or decreases (buys / sells).
"""

import logging
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from superinvestors.analytics.aggregation import rows_by_ticker
from superinvestors.analytics.ranking import RankingService, default_ranking
from superinvestors.holdings.models import AggregateRow, BuySellRow, OwnershipChangeRow

logger = logging.getLogger(__name__)

# Reported as the percentage change of a position with no prior value
NEW_POSITION_PCT = 100.0


class ChangeMode(Enum):
    """How buy and sell lists are ranked."""

    VALUE = "value"
    PERCENTAGE = "percentage"


class ChangeAnalyzer:
    """
    Compare two sets of aggregate rows computed for the same cohort.
    """

    def __init__(self, ranking: Optional[RankingService] = None):
        self.ranking = ranking or default_ranking

    # =========================================================================
    # Emerging / fading consensus
    # =========================================================================

    def emerging(
        self,
        current: Sequence[AggregateRow],
        prior: Sequence[AggregateRow],
        limit: Optional[int] = 20,
    ) -> List[OwnershipChangeRow]:
        """
        Securities that gained distinct owners.

        Args:
            current: Aggregate rows for the current period
            prior: Aggregate rows for the prior period
            limit: Maximum rows returned

        Returns:
            Rows with ``owner_change > 0``, largest gain first
        """
        current_map = rows_by_ticker(current)
        prior_map = rows_by_ticker(prior)

        changes = []
        for ticker, curr in current_map.items():
            prev = prior_map.get(ticker)
            prev_count = prev.owner_count if prev else 0
            change = curr.owner_count - prev_count
            if change > 0:
                changes.append(
                    OwnershipChangeRow(
                        ticker=ticker,
                        issuer_name=curr.issuer_name,
                        current_owners=curr.owner_count,
                        previous_owners=prev_count,
                        owner_change=change,
                        total_value=curr.total_value,
                    )
                )

        return self.ranking.top_n(changes, key_fn=lambda c: c.owner_change, n=limit)

    def fading(
        self,
        current: Sequence[AggregateRow],
        prior: Sequence[AggregateRow],
        limit: Optional[int] = 20,
    ) -> List[OwnershipChangeRow]:
        """
        Securities that lost distinct owners.

        ``owner_change`` is reported as a positive count of owners lost and
        ``total_value`` is the prior period's value.
        """
        current_map = rows_by_ticker(current)
        prior_map = rows_by_ticker(prior)

        changes = []
        for ticker, prev in prior_map.items():
            curr = current_map.get(ticker)
            curr_count = curr.owner_count if curr else 0
            change = prev.owner_count - curr_count
            if change > 0:
                changes.append(
                    OwnershipChangeRow(
                        ticker=ticker,
                        issuer_name=prev.issuer_name,
                        current_owners=curr_count,
                        previous_owners=prev.owner_count,
                        owner_change=change,
                        total_value=prev.total_value,
                    )
                )

        return self.ranking.top_n(changes, key_fn=lambda c: c.owner_change, n=limit)

    # =========================================================================
    # Buys / sells
    # =========================================================================

    def value_changes(
        self,
        current: Sequence[AggregateRow],
        prior: Sequence[AggregateRow],
    ) -> Tuple[List[BuySellRow], List[BuySellRow]]:
        """
        Split cohort-wide value changes into unranked buys and sells.

        A ticker missing from the prior period is a buy of its full value
        with ``pct_change`` fixed at 100.0; a ticker missing from the
        current period is a sell of its full prior value.

        Returns:
            Tuple of (buys, sells); sells carry positive magnitudes
        """
        current_map = rows_by_ticker(current)
        prior_map = rows_by_ticker(prior)

        buys: List[BuySellRow] = []
        sells: List[BuySellRow] = []

        for ticker, curr in current_map.items():
            prev = prior_map.get(ticker)
            if prev is None:
                if curr.total_value > 0:
                    buys.append(
                        BuySellRow(
                            ticker=ticker,
                            issuer_name=curr.issuer_name,
                            value_change=curr.total_value,
                            pct_change=NEW_POSITION_PCT,
                            current_value=curr.total_value,
                            previous_value=0.0,
                            ownership_count=curr.owner_count,
                        )
                    )
                continue

            value_change = curr.total_value - prev.total_value
            if value_change == 0:
                continue
            pct_change = (
                value_change / prev.total_value * 100.0 if prev.total_value > 0 else 0.0
            )
            row = BuySellRow(
                ticker=ticker,
                issuer_name=curr.issuer_name,
                value_change=abs(value_change),
                pct_change=abs(pct_change),
                current_value=curr.total_value,
                previous_value=prev.total_value,
                ownership_count=curr.owner_count,
            )
            if value_change > 0:
                buys.append(row)
            else:
                sells.append(row)

        for ticker, prev in prior_map.items():
            if ticker in current_map or prev.total_value <= 0:
                continue
            sells.append(
                BuySellRow(
                    ticker=ticker,
                    issuer_name=prev.issuer_name,
                    value_change=prev.total_value,
                    pct_change=NEW_POSITION_PCT,
                    current_value=0.0,
                    previous_value=prev.total_value,
                    ownership_count=0,
                )
            )

        logger.debug(
            f"Compared {len(current_map)} current and {len(prior_map)} prior tickers: "
            f"{len(buys)} buys, {len(sells)} sells"
        )
        return buys, sells

    def buys(
        self,
        current: Sequence[AggregateRow],
        prior: Sequence[AggregateRow],
        mode: ChangeMode = ChangeMode.VALUE,
        limit: Optional[int] = 10,
    ) -> List[BuySellRow]:
        """
        Largest cohort-wide increases.

        Args:
            current: Aggregate rows for the current period
            prior: Aggregate rows for the comparison period
            mode: Rank by absolute value change or by percentage change
            limit: Maximum rows returned
        """
        buys, _ = self.value_changes(current, prior)
        return self._rank_changes(buys, mode, limit)

    def sells(
        self,
        current: Sequence[AggregateRow],
        prior: Sequence[AggregateRow],
        mode: ChangeMode = ChangeMode.VALUE,
        limit: Optional[int] = 10,
    ) -> List[BuySellRow]:
        """Largest cohort-wide decreases, reported as positive magnitudes."""
        _, sells = self.value_changes(current, prior)
        return self._rank_changes(sells, mode, limit)

    def _rank_changes(
        self, rows: List[BuySellRow], mode: ChangeMode, limit: Optional[int]
    ) -> List[BuySellRow]:
        mode = ChangeMode(mode)
        if mode is ChangeMode.PERCENTAGE:
            return self.ranking.top_n(rows, key_fn=lambda r: r.pct_change, n=limit)
        return self.ranking.top_n(rows, key_fn=lambda r: r.value_change, n=limit)
