"""
Deterministic top-N ranking.
"""

from typing import Any, Callable, Iterable, List, Optional, TypeVar

R = TypeVar("R")


def ticker_tie_break(row: Any) -> tuple:
    """Alphabetical ticker, then issuer name."""
    return (getattr(row, "ticker", "") or "", getattr(row, "issuer_name", "") or "")


class RankingService:
    """
    Stable, fully deterministic ranking.

    Rows are ordered by ``key_fn`` (descending by default); rows with equal
    keys are ordered ascending by ``tie_break_fn``. The result never depends
    on the input order unless both keys tie exactly.
    """

    def __init__(self, tie_break_fn: Callable[[Any], Any] = ticker_tie_break):
        self.tie_break_fn = tie_break_fn

    def rank(
        self,
        rows: Iterable[R],
        key_fn: Callable[[R], Any],
        descending: bool = True,
        tie_break_fn: Optional[Callable[[R], Any]] = None,
    ) -> List[R]:
        """Return all rows in ranked order."""
        tie_break = tie_break_fn or self.tie_break_fn
        # Two stable passes: the tie-break stays ascending whatever the
        # direction of the primary key.
        ordered = sorted(rows, key=tie_break)
        ordered.sort(key=key_fn, reverse=descending)
        return ordered

    def top_n(
        self,
        rows: Iterable[R],
        key_fn: Callable[[R], Any],
        n: Optional[int] = None,
        tie_break_fn: Optional[Callable[[R], Any]] = None,
        descending: bool = True,
    ) -> List[R]:
        """
        Select the first ``n`` rows by ``key_fn``.

        Args:
            rows: Candidate rows
            key_fn: Primary sort key
            n: Number of rows to keep; None keeps all
            tie_break_fn: Secondary key, ascending (default: ticker, issuer)
            descending: Sort the primary key high to low

        Returns:
            Ranked list of at most ``n`` rows
        """
        ranked = self.rank(rows, key_fn, descending=descending, tie_break_fn=tie_break_fn)
        if n is None:
            return ranked
        return ranked[: max(n, 0)]


default_ranking = RankingService()
