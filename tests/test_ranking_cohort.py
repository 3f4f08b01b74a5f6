"""
Tests for deterministic ranking and cohort selection.
"""

import itertools
from datetime import date
from unittest.mock import Mock

import pytest

from superinvestors.analytics.cohort import CohortSelector
from superinvestors.analytics.ranking import RankingService, default_ranking
from superinvestors.config.settings import EngineSettings
from superinvestors.core.errors import InvalidPeriodError
from superinvestors.data.cache import AggregateCache
from superinvestors.data.store import InMemoryFilingStore
from superinvestors.holdings.models import AggregateRow, Filing
from superinvestors.holdings.periods import Period

CURRENT = Period(2025, 2)


def row(ticker, owners, value, issuer=None):
    return AggregateRow(ticker, issuer or f"{ticker} INC", owners, value)


class TestRankingService:
    """Tests for RankingService."""

    def test_descending_primary_key(self):
        """Test ordering by the primary key."""
        rows = [row("A", 1, 10), row("B", 3, 10), row("C", 2, 10)]
        ranked = default_ranking.rank(rows, key_fn=lambda r: r.owner_count)
        assert [r.ticker for r in ranked] == ["B", "C", "A"]

    def test_ties_broken_by_ticker(self):
        """Test that equal keys fall back to ticker ascending."""
        rows = [row("MSFT", 2, 10), row("AAPL", 2, 10), row("KO", 2, 10)]
        ranked = default_ranking.rank(rows, key_fn=lambda r: r.owner_count)
        assert [r.ticker for r in ranked] == ["AAPL", "KO", "MSFT"]

    def test_ties_on_ticker_broken_by_issuer(self):
        """Test the issuer name as the last tie-break."""
        rows = [row("X", 1, 10, "ZETA CORP"), row("X", 1, 10, "ALPHA CORP")]
        ranked = default_ranking.rank(rows, key_fn=lambda r: r.owner_count)
        assert [r.issuer_name for r in ranked] == ["ALPHA CORP", "ZETA CORP"]

    def test_tie_break_stays_ascending_when_ascending(self):
        """Test that ascending order keeps the ticker tie-break ascending."""
        rows = [row("B", 1, 10), row("A", 1, 10), row("C", 0, 10)]
        ranked = default_ranking.rank(rows, key_fn=lambda r: r.owner_count, descending=False)
        assert [r.ticker for r in ranked] == ["C", "A", "B"]

    def test_order_independent_of_input(self):
        """Test that every input permutation ranks identically."""
        rows = [row("A", 2, 5), row("B", 2, 5), row("C", 3, 1), row("D", 2, 9)]
        results = {
            tuple(r.ticker for r in default_ranking.rank(p, key_fn=lambda r: (r.owner_count, r.total_value)))
            for p in itertools.permutations(rows)
        }
        assert results == {("C", "D", "A", "B")}

    def test_top_n_limits(self):
        """Test that top_n truncates after ranking."""
        rows = [row(t, i, 1) for i, t in enumerate("ABCDE")]
        assert [r.ticker for r in default_ranking.top_n(rows, lambda r: r.owner_count, n=2)] == [
            "E",
            "D",
        ]

    def test_top_n_none_keeps_all(self):
        """Test that n=None returns every row."""
        rows = [row("A", 1, 1), row("B", 2, 1)]
        assert len(default_ranking.top_n(rows, lambda r: r.owner_count)) == 2

    def test_custom_tie_break(self):
        """Test a service-level custom tie-break."""
        ranking = RankingService(tie_break_fn=lambda r: -r.total_value)
        rows = [row("A", 1, 5), row("B", 1, 9)]
        assert [r.ticker for r in ranking.rank(rows, lambda r: r.owner_count)] == ["B", "A"]


class TestCohortSelector:
    """Tests for CohortSelector."""

    def test_select_by_value(self, store, settings):
        """Test threshold filtering and value ordering."""
        selector = CohortSelector(store, settings=settings)
        assert selector.select(CURRENT) == ["0002", "0001", "0003"]

    def test_restated_filing_ignored(self, store, settings):
        """Test that a restated filing's larger total does not count."""
        selector = CohortSelector(store, settings=settings)
        members = selector.select_members(CURRENT)
        gamma = [m for m in members if m.manager_id == "0003"][0]
        assert gamma.filing_id == "F3"
        assert gamma.total_value == 600.0

    def test_threshold_is_exclusive(self, store, settings):
        """Test that a filing equal to the threshold is excluded."""
        selector = CohortSelector(store, settings=settings)
        assert selector.select(CURRENT, min_total_value=600) == ["0002", "0001"]

    def test_max_size(self, store, settings):
        """Test that the cohort is capped."""
        selector = CohortSelector(store, settings=settings)
        assert selector.select(CURRENT, max_size=1) == ["0002"]

    def test_members_carry_clean_names(self, store, settings):
        """Test the display fields of cohort members."""
        members = CohortSelector(store, settings=settings).select_members(CURRENT)
        assert [m.investor for m in members] == ["BETA PARTNERS", "ALPHA CAPITAL", "GAMMA"]

    def test_no_match_is_empty(self, store, settings):
        """Test that an empty period yields an empty cohort."""
        selector = CohortSelector(store, settings=settings)
        assert selector.select(Period(2020, 1)) == []

    def test_invalid_quarter(self, store, settings):
        """Test that an invalid quarter raises InvalidPeriodError."""
        selector = CohortSelector(store, settings=settings)
        with pytest.raises(InvalidPeriodError):
            selector.select(Period(2025, 5))

    def test_equal_values_ordered_by_manager_id(self):
        """Test the deterministic tie-break on equal totals."""
        filings = [
            Filing("X", "0009", "NINE", CURRENT, date(2025, 8, 1), 1000),
            Filing("Y", "0005", "FIVE", CURRENT, date(2025, 8, 1), 1000),
        ]
        selector = CohortSelector(
            InMemoryFilingStore(filings), settings=EngineSettings(MIN_TOTAL_VALUE=0)
        )
        assert selector.select(CURRENT) == ["0005", "0009"]

    def test_recomputed_without_cache(self, store, settings):
        """Test that each call queries the store again."""
        store.list_period_filings = Mock(wraps=store.list_period_filings)
        selector = CohortSelector(store, settings=settings)
        selector.select(CURRENT)
        selector.select(CURRENT)
        assert store.list_period_filings.call_count == 2

    def test_cached_selection(self, store, settings):
        """Test that a cache serves repeated selections."""
        store.list_period_filings = Mock(wraps=store.list_period_filings)
        selector = CohortSelector(store, settings=settings, cache=AggregateCache(ttl_seconds=300))
        first = selector.select(CURRENT)
        second = selector.select(CURRENT)
        assert first == second
        assert store.list_period_filings.call_count == 1
