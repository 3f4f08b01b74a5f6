"""
Filing Store Interface Module

Defines the read-only interface the engine uses to reach filings, holdings
and ticker mappings, plus an in-memory implementation backed by plain
records or pandas DataFrames.
"""

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from superinvestors.core.errors import DataInconsistencyError, FilingNotFoundError
from superinvestors.holdings.models import Filing, Holding
from superinvestors.holdings.periods import Period

logger = logging.getLogger(__name__)


class FilingStore(ABC):
    """
    Abstract read-only source of filings and holdings.

    Implementations sit in front of whatever storage holds the ingested
    13F data; the engine never writes through this interface.
    """

    @abstractmethod
    def list_filings(
        self,
        manager_ids: Sequence[str],
        period: Period,
        exclude_restated: bool = True,
    ) -> List[Filing]:
        """
        Get filings of the given managers for one period.

        Args:
            manager_ids: Manager CIKs
            period: Reporting period
            exclude_restated: Drop filings superseded by a later correction

        Returns:
            List of filings (possibly several per manager)
        """
        pass

    @abstractmethod
    def list_period_filings(
        self, period: Period, exclude_restated: bool = True
    ) -> List[Filing]:
        """Get every manager's filings for one period."""
        pass

    @abstractmethod
    def list_manager_filings(
        self, manager_id: str, exclude_restated: bool = True
    ) -> List[Filing]:
        """Get all filings of one manager, most recent period first."""
        pass

    @abstractmethod
    def get_filing(self, filing_id: str) -> Filing:
        """
        Get a single filing.

        Raises:
            FilingNotFoundError: If the identifier is unknown
        """
        pass

    @abstractmethod
    def list_holdings(self, filing_id: str) -> List[Holding]:
        """Get the holdings reported in one filing."""
        pass

    @abstractmethod
    def resolve_tickers(self, security_ids: Sequence[str]) -> Dict[str, str]:
        """
        Map security identifiers to ticker symbols.

        Identifiers without a known symbol are absent from the result.
        """
        pass


def select_live_filings(filings: Iterable[Filing], strict: bool = False) -> List[Filing]:
    """
    Keep one live filing per (manager, period).

    Restated filings are dropped. When several live filings remain for the
    same manager and period, the latest ``date_filed`` wins (filing id breaks
    exact ties) and the condition is logged.

    Args:
        filings: Candidate filings
        strict: Raise DataInconsistencyError instead of resolving duplicates

    Returns:
        Winning filings in first-seen order of their (manager, period) key
    """
    grouped: Dict[tuple, List[Filing]] = {}
    for filing in filings:
        if filing.is_restated:
            continue
        grouped.setdefault((filing.manager_id, filing.period), []).append(filing)

    selected = []
    for (manager_id, period), candidates in grouped.items():
        if len(candidates) > 1:
            winner = max(candidates, key=lambda f: (f.date_filed, f.filing_id))
            context = {
                "manager_id": manager_id,
                "period": str(period),
                "filing_ids": [f.filing_id for f in candidates],
                "selected": winner.filing_id,
            }
            if strict:
                raise DataInconsistencyError(
                    detail=f"{len(candidates)} live filings for {manager_id} in {period}",
                    context=context,
                )
            logger.warning(
                f"Duplicate live filings for {manager_id} in {period}; "
                f"using {winner.filing_id} filed {winner.date_filed}",
                extra={f"ctx_{k}": v for k, v in context.items()},
            )
            selected.append(winner)
        else:
            selected.append(candidates[0])
    return selected


class InMemoryFilingStore(FilingStore):
    """
    Filing store over an in-memory snapshot.

    Useful for tests, notebooks and embedding the engine in batch jobs that
    already hold the data as DataFrames.
    """

    def __init__(
        self,
        filings: Optional[Iterable[Filing]] = None,
        holdings: Optional[Iterable[Holding]] = None,
        tickers: Optional[Dict[str, str]] = None,
    ):
        self._filings: Dict[str, Filing] = {}
        for filing in filings or []:
            self._filings[filing.filing_id] = filing

        self._holdings: Dict[str, List[Holding]] = defaultdict(list)
        for holding in holdings or []:
            self._holdings[holding.filing_id].append(holding)

        self._tickers: Dict[str, str] = dict(tickers or {})

        logger.debug(
            f"InMemoryFilingStore loaded {len(self._filings)} filings, "
            f"{sum(len(h) for h in self._holdings.values())} holdings"
        )

    @classmethod
    def from_frames(
        cls,
        filings: pd.DataFrame,
        holdings: pd.DataFrame,
        tickers: Optional[pd.DataFrame] = None,
    ) -> "InMemoryFilingStore":
        """
        Build a store from DataFrames.

        Args:
            filings: Columns filing_id, manager_id, name, year, quarter,
                date_filed, total_value and optionally holdings_count,
                superseded_by
            holdings: Columns filing_id, security_id, issuer_name and
                optionally class_title, value, shares_or_principal
            tickers: Columns security_id, symbol

        Returns:
            InMemoryFilingStore instance
        """
        filings = filings.astype(object).where(pd.notna(filings), None)
        holdings = holdings.astype(object).where(pd.notna(holdings), None)

        filing_records = [
            Filing(
                filing_id=str(row["filing_id"]),
                manager_id=str(row["manager_id"]),
                name=row["name"],
                period=Period(int(row["year"]), int(row["quarter"])),
                date_filed=_to_date(row["date_filed"]),
                total_value=row.get("total_value") or 0.0,
                holdings_count=row.get("holdings_count") or 0,
                superseded_by=row.get("superseded_by"),
            )
            for row in filings.to_dict("records")
        ]

        holding_records = [
            Holding(
                filing_id=str(row["filing_id"]),
                security_id=str(row["security_id"]),
                issuer_name=row["issuer_name"],
                class_title=row.get("class_title") or "",
                value=row.get("value"),
                shares_or_principal=row.get("shares_or_principal"),
            )
            for row in holdings.to_dict("records")
        ]

        mapping = {}
        if tickers is not None and not tickers.empty:
            for row in tickers.dropna(subset=["symbol"]).to_dict("records"):
                mapping[str(row["security_id"])] = str(row["symbol"])

        return cls(filing_records, holding_records, mapping)

    def list_filings(
        self,
        manager_ids: Sequence[str],
        period: Period,
        exclude_restated: bool = True,
    ) -> List[Filing]:
        wanted = set(manager_ids)
        return [
            f
            for f in self._filings.values()
            if f.manager_id in wanted
            and f.period == period
            and not (exclude_restated and f.is_restated)
        ]

    def list_period_filings(
        self, period: Period, exclude_restated: bool = True
    ) -> List[Filing]:
        return [
            f
            for f in self._filings.values()
            if f.period == period and not (exclude_restated and f.is_restated)
        ]

    def list_manager_filings(
        self, manager_id: str, exclude_restated: bool = True
    ) -> List[Filing]:
        filings = [
            f
            for f in self._filings.values()
            if f.manager_id == manager_id and not (exclude_restated and f.is_restated)
        ]
        return sorted(filings, key=lambda f: (f.period, f.date_filed), reverse=True)

    def get_filing(self, filing_id: str) -> Filing:
        try:
            return self._filings[filing_id]
        except KeyError:
            raise FilingNotFoundError(
                detail=f"Unknown filing {filing_id}",
                context={"filing_id": filing_id},
            ) from None

    def list_holdings(self, filing_id: str) -> List[Holding]:
        if filing_id not in self._filings:
            raise FilingNotFoundError(
                detail=f"Unknown filing {filing_id}",
                context={"filing_id": filing_id},
            )
        return list(self._holdings.get(filing_id, []))

    def resolve_tickers(self, security_ids: Sequence[str]) -> Dict[str, str]:
        return {sid: self._tickers[sid] for sid in security_ids if sid in self._tickers}


def _to_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(value).date()
