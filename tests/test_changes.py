"""
Tests for period-over-period change analysis.
"""

import pytest

from superinvestors.analytics.aggregation import AggregationEngine
from superinvestors.analytics.changes import NEW_POSITION_PCT, ChangeAnalyzer, ChangeMode
from superinvestors.holdings.models import AggregateRow
from superinvestors.holdings.periods import Period

CURRENT = Period(2025, 2)
PRIOR = Period(2025, 1)
TWO_BACK = Period(2024, 4)


def row(ticker, owners, value):
    return AggregateRow(ticker, f"{ticker} INC", owners, value)


@pytest.fixture
def analyzer():
    """Change analyzer with the default ranking."""
    return ChangeAnalyzer()


@pytest.fixture
def aggregates(store, cohort):
    """Fixture aggregates for the current, prior and two-back periods."""
    engine = AggregationEngine(store)
    return {
        period: engine.aggregate(cohort, period) for period in (CURRENT, PRIOR, TWO_BACK)
    }


class TestEmergingFading:
    """Tests for emerging and fading consensus."""

    def test_owner_gain_is_emerging_not_fading(self, analyzer):
        """Test that a 3 -> 7 owner move is emerging by 4 and not fading."""
        current = [row("TICK", 7, 700.0)]
        prior = [row("TICK", 3, 300.0)]

        emerging = analyzer.emerging(current, prior)
        fading = analyzer.fading(current, prior)

        assert len(emerging) == 1
        assert emerging[0].owner_change == 4
        assert emerging[0].previous_owners == 3
        assert fading == []

    def test_new_ticker_counts_from_zero(self, analyzer):
        """Test that a ticker absent from the prior period emerges fully."""
        emerging = analyzer.emerging([row("NEW", 2, 10.0)], [])
        assert emerging[0].owner_change == 2
        assert emerging[0].previous_owners == 0

    def test_fading_reports_prior_value(self, analyzer):
        """Test that fading rows carry the prior period's value."""
        fading = analyzer.fading([row("OLD", 1, 10.0)], [row("OLD", 4, 90.0)])
        assert fading[0].owner_change == 3
        assert fading[0].total_value == 90.0

    def test_limit(self, analyzer):
        """Test the row limit."""
        current = [row(f"T{i:02d}", i + 1, 1.0) for i in range(30)]
        assert len(analyzer.emerging(current, [], limit=20)) == 20

    def test_fixture_periods(self, analyzer, aggregates):
        """Test emerging and fading over the fixture quarters."""
        emerging = analyzer.emerging(aggregates[CURRENT], aggregates[PRIOR])
        fading = analyzer.fading(aggregates[CURRENT], aggregates[PRIOR])

        assert [r.ticker for r in emerging] == ["999999999", "AAPL", "MSFT", "NVDA"]
        assert [r.ticker for r in fading] == ["GE", "KO"]
        assert {r.owner_change for r in emerging + fading} == {1}


class TestBuysSells:
    """Tests for buys and sells."""

    def test_new_position_is_full_buy(self, analyzer):
        """Test that a ticker absent before is bought at exactly 100 percent."""
        buys = analyzer.buys([row("NEW", 1, 500.0)], [])
        assert len(buys) == 1
        assert buys[0].value_change == 500.0
        assert buys[0].pct_change == NEW_POSITION_PCT == 100.0
        assert buys[0].previous_value == 0.0

    def test_zero_value_new_position_skipped(self, analyzer):
        """Test that a new ticker with no value is not a buy."""
        assert analyzer.buys([row("NEW", 1, 0.0)], []) == []

    def test_unchanged_value_skipped(self, analyzer):
        """Test that an unchanged value is neither buy nor sell."""
        buys, sells = analyzer.value_changes([row("X", 1, 10.0)], [row("X", 2, 10.0)])
        assert buys == [] and sells == []

    def test_zero_prior_value_pct(self, analyzer):
        """Test that growth from a zero prior value reports 0 percent."""
        buys = analyzer.buys([row("X", 1, 10.0)], [row("X", 1, 0.0)])
        assert buys[0].value_change == 10.0
        assert buys[0].pct_change == 0.0

    def test_sells_are_magnitudes(self, analyzer):
        """Test that sells report positive changes."""
        sells = analyzer.sells([row("X", 1, 60.0)], [row("X", 1, 90.0)])
        assert sells[0].value_change == 30.0
        assert sells[0].pct_change == pytest.approx(33.333, rel=1e-3)

    def test_fixture_buys_by_value(self, analyzer, aggregates):
        """Test buy ranking by value with a ticker tie-break."""
        buys = analyzer.buys(aggregates[CURRENT], aggregates[PRIOR])
        assert [r.ticker for r in buys] == ["KO", "AAPL", "NVDA", "999999999"]
        assert [r.value_change for r in buys] == [330.0, 120.0, 120.0, 50.0]

    def test_fixture_buys_by_percentage(self, analyzer, aggregates):
        """Test buy ranking by percentage change."""
        buys = analyzer.buys(aggregates[CURRENT], aggregates[PRIOR], mode=ChangeMode.PERCENTAGE)
        assert [r.ticker for r in buys] == ["KO", "999999999", "NVDA", "AAPL"]

    def test_fixture_sells(self, analyzer, aggregates):
        """Test sells including a fully exited ticker."""
        sells = analyzer.sells(aggregates[CURRENT], aggregates[PRIOR])
        assert [r.ticker for r in sells] == ["MSFT", "GE"]
        ge = sells[1]
        assert ge.value_change == 200.0
        assert ge.pct_change == 100.0
        assert ge.current_value == 0.0
        assert ge.ownership_count == 0

    def test_fixture_sells_by_percentage(self, analyzer, aggregates):
        """Test that string modes are accepted."""
        sells = analyzer.sells(aggregates[CURRENT], aggregates[PRIOR], mode="percentage")
        assert [r.ticker for r in sells] == ["GE", "MSFT"]

    def test_two_quarter_horizon(self, analyzer, aggregates):
        """Test buys against two quarters back."""
        buys = analyzer.buys(aggregates[CURRENT], aggregates[TWO_BACK])
        assert [r.ticker for r in buys] == ["KO", "AAPL", "NVDA", "MSFT", "999999999"]
        aapl = buys[1]
        assert aapl.value_change == 380.0
        assert aapl.pct_change == pytest.approx(475.0)

    def test_limit(self, analyzer):
        """Test the row limit."""
        current = [row(f"T{i:02d}", 1, float(i + 1)) for i in range(15)]
        assert len(analyzer.buys(current, [], limit=10)) == 10
