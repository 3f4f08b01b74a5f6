"""
Holdings Aggregation Module

Groups a cohort's holdings for one period by security and computes
ownership, value and position-size statistics per group.
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from superinvestors.analytics.ranking import RankingService, default_ranking
from superinvestors.config.logging import log_performance
from superinvestors.core.deadline import Deadline, unbounded
from superinvestors.data.store import FilingStore, select_live_filings
from superinvestors.holdings.models import AggregateRow
from superinvestors.holdings.periods import Period
from superinvestors.holdings.tickers import TickerResolver

logger = logging.getLogger(__name__)

POSITION_COLUMNS = [
    "manager_id",
    "manager_name",
    "filing_id",
    "filing_total",
    "security_id",
    "ticker",
    "issuer_name",
    "class_title",
    "value",
    "shares",
    "position_pct",
]


def _optional_float(value) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


class AggregationEngine:
    """
    Aggregate cohort holdings by (ticker, issuer).

    Holdings with an unknown value are ignored entirely: they count neither
    toward ownership nor toward value. Holdings from filings reporting a
    zero total are kept for ownership and value but left out of the
    position-percent statistics.
    """

    def __init__(self, store: FilingStore, ranking: Optional[RankingService] = None):
        """
        Initialize the aggregation engine.

        Args:
            store: Filing store to read from
            ranking: Ranking service used for the default ordering
        """
        self.store = store
        self.ranking = ranking or default_ranking

    def load_positions(
        self,
        cohort: Sequence[str],
        period: Period,
        deadline: Optional[Deadline] = None,
    ) -> pd.DataFrame:
        """
        Get one row per contributing holding of the cohort in ``period``.

        Args:
            cohort: Ordered manager ids
            period: Reporting period
            deadline: Optional time budget checked between filings

        Returns:
            DataFrame with POSITION_COLUMNS, in cohort then filing order
        """
        deadline = deadline or unbounded()
        period.validate()
        if not cohort:
            return pd.DataFrame(columns=POSITION_COLUMNS)

        order = {manager_id: i for i, manager_id in enumerate(cohort)}
        filings = select_live_filings(
            self.store.list_filings(list(cohort), period, exclude_restated=True)
        )
        filings.sort(key=lambda f: order.get(f.manager_id, len(order)))

        records = []
        for filing in filings:
            deadline.check(f"loading holdings for {filing.manager_id}")
            for holding in self.store.list_holdings(filing.filing_id):
                if holding.value is None:
                    continue
                records.append(
                    {
                        "manager_id": filing.manager_id,
                        "manager_name": filing.name,
                        "filing_id": filing.filing_id,
                        "filing_total": filing.total_value,
                        "security_id": holding.security_id,
                        "issuer_name": holding.issuer_name or "",
                        "class_title": holding.class_title or "",
                        "value": holding.value,
                        "shares": holding.shares_or_principal,
                    }
                )

        if not records:
            return pd.DataFrame(columns=POSITION_COLUMNS)

        frame = pd.DataFrame.from_records(records)

        resolver = TickerResolver.from_store(self.store, frame["security_id"].tolist())
        frame["ticker"] = frame["security_id"].map(resolver.resolve)

        frame["value"] = frame["value"].astype(float)
        frame["shares"] = pd.to_numeric(frame["shares"], errors="coerce").fillna(0).astype("int64")

        # NaN where the filing total is zero keeps those rows out of the
        # percent statistics without a division by zero
        totals = frame["filing_total"].astype(float).where(frame["filing_total"] > 0, np.nan)
        frame["position_pct"] = frame["value"] * 100.0 / totals

        logger.debug(
            f"Loaded {len(frame)} positions from {len(filings)} filings for {period.label}"
        )
        return frame[POSITION_COLUMNS]

    @log_performance(threshold_ms=2000)
    def aggregate(
        self,
        cohort: Sequence[str],
        period: Period,
        deadline: Optional[Deadline] = None,
    ) -> List[AggregateRow]:
        """
        Aggregate cohort holdings for one period.

        Args:
            cohort: Ordered manager ids
            period: Reporting period
            deadline: Optional time budget

        Returns:
            Rows ordered by owner count desc, total value desc, then
            ticker and issuer name ascending
        """
        positions = self.load_positions(cohort, period, deadline=deadline)
        rows = self.aggregate_positions(positions)
        logger.debug(f"Aggregated {len(rows)} securities for {period.label}")
        return rows

    def aggregate_positions(self, positions: pd.DataFrame) -> List[AggregateRow]:
        """
        Group a positions frame (as from ``load_positions``) into rows.
        """
        if positions.empty:
            return []

        grouped = positions.groupby(["ticker", "issuer_name"], sort=True)
        summary = grouped.agg(
            owner_count=("manager_id", "nunique"),
            total_value=("value", "sum"),
            total_shares=("shares", "sum"),
            avg_position_pct=("position_pct", "mean"),
            max_position_pct=("position_pct", "max"),
            min_position_pct=("position_pct", "min"),
            weighted_pct=("position_pct", "sum"),
            pct_count=("position_pct", "count"),
        )
        owner_names = grouped["manager_name"].unique()

        rows = []
        for (ticker, issuer_name), stats in summary.iterrows():
            has_pct = int(stats["pct_count"]) > 0
            rows.append(
                AggregateRow(
                    ticker=ticker,
                    issuer_name=issuer_name,
                    owner_count=int(stats["owner_count"]),
                    total_value=float(stats["total_value"]),
                    total_shares=int(stats["total_shares"]),
                    avg_position_pct=_optional_float(stats["avg_position_pct"]),
                    max_position_pct=_optional_float(stats["max_position_pct"]),
                    min_position_pct=_optional_float(stats["min_position_pct"]),
                    weighted_pct=float(stats["weighted_pct"]) if has_pct else None,
                    owner_names=sorted(owner_names.loc[(ticker, issuer_name)]),
                )
            )

        return self.ranking.rank(rows, key_fn=lambda r: (r.owner_count, r.total_value))


def rows_by_ticker(rows: Sequence[AggregateRow]) -> Dict[str, AggregateRow]:
    """
    Map ticker to row.

    A ticker reported under several issuer names keeps its first row in the
    given order, which for default-ordered rows is the most widely held.
    """
    mapping: Dict[str, AggregateRow] = {}
    for row in rows:
        mapping.setdefault(row.ticker, row)
    return mapping
