"""
Tests for the single-manager quarter-over-quarter portfolio diff.
"""

import pytest

from superinvestors.analytics.portfolio_diff import ManagerPortfolioDiffer, summarize
from superinvestors.holdings.models import Holding, PositionActivity
from superinvestors.holdings.tickers import TickerResolver


def holding(security_id, value, shares, issuer=None, filing_id="CUR"):
    return Holding(
        filing_id=filing_id,
        security_id=security_id,
        issuer_name=issuer or f"{security_id} CORP",
        class_title="COM",
        value=value,
        shares_or_principal=shares,
    )


@pytest.fixture
def differ():
    """Portfolio differ with the default ranking."""
    return ManagerPortfolioDiffer()


def rows_by_ticker(diff):
    return {r.ticker: r for r in diff.rows}


class TestDiff:
    """Tests for ManagerPortfolioDiffer.diff."""

    def test_no_prior_filing_everything_new(self, differ):
        """Test that without a prior filing every position is new."""
        diff = differ.diff([holding("A", 100, 10), holding("B", 300, 30)], 400)

        assert {r.activity for r in diff.rows} == {PositionActivity.NEW}
        assert all(r.change_percent is None for r in diff.rows)
        assert diff.summary["new_positions"] == 2
        assert diff.summary["total_positions"] == 2

    def test_classification(self, differ):
        """Test increased, decreased and unchanged positions."""
        current = [holding("UP", 100, 20), holding("DOWN", 100, 5), holding("SAME", 100, 10)]
        prior = [
            holding("UP", 50, 10, filing_id="PRE"),
            holding("DOWN", 200, 10, filing_id="PRE"),
            holding("SAME", 80, 10, filing_id="PRE"),
        ]

        rows = rows_by_ticker(differ.diff(current, 300, prior))

        assert rows["UP"].activity is PositionActivity.INCREASED
        assert rows["UP"].change_shares == 10
        assert rows["UP"].change_percent == pytest.approx(100.0)
        assert rows["DOWN"].activity is PositionActivity.DECREASED
        assert rows["DOWN"].change_percent == pytest.approx(-50.0)
        assert rows["SAME"].activity is PositionActivity.UNCHANGED
        assert rows["SAME"].change_value == 20.0
        assert rows["SAME"].prev_shares == 10

    def test_sold_position_row(self, differ):
        """Test that a position missing from the current filing is sold."""
        diff = differ.diff(
            [holding("KEEP", 100, 10)],
            100,
            [holding("KEEP", 100, 10, filing_id="PRE"), holding("GONE", 40, 4, filing_id="PRE")],
        )

        gone = rows_by_ticker(diff)["GONE"]
        assert gone.activity is PositionActivity.SOLD
        assert gone.shares == 0
        assert gone.value == 0.0
        assert gone.percent_of_portfolio == 0.0
        assert gone.change_shares == -4
        assert gone.change_value == -40.0
        assert gone.change_percent == -100.0
        assert gone.prev_value == 40.0
        assert diff.summary["sold_positions"] == 1

    def test_empty_prior_filing_marks_all_new(self, differ):
        """Test that an existing but empty prior filing yields new positions."""
        diff = differ.diff([holding("A", 100, 10)], 100, [])
        assert diff.rows[0].activity is PositionActivity.NEW

    def test_percent_of_portfolio(self, differ):
        """Test position weight against the reported total."""
        rows = rows_by_ticker(differ.diff([holding("A", 250, 10)], 1000))
        assert rows["A"].percent_of_portfolio == pytest.approx(25.0)

    def test_zero_total_value(self, differ):
        """Test that a zero total yields zero weights instead of an error."""
        rows = rows_by_ticker(differ.diff([holding("A", 250, 10)], 0))
        assert rows["A"].percent_of_portfolio == 0.0

    def test_lines_consolidated_by_ticker(self, differ):
        """Test that lines resolving to one ticker are summed."""
        resolver = TickerResolver({"CUSIP1": "BRK", "CUSIP2": "BRK"})
        diff = differ.diff(
            [holding("CUSIP1", 100, 1), holding("CUSIP2", 50, 10)], 150, resolver=resolver
        )
        assert len(diff.rows) == 1
        assert diff.rows[0].ticker == "BRK"
        assert diff.rows[0].shares == 11
        assert diff.rows[0].value == 150.0

    def test_unknown_value_counts_as_zero(self, differ):
        """Test that a line without value keeps its shares."""
        rows = rows_by_ticker(differ.diff([holding("A", None, 10)], 100))
        assert rows["A"].value == 0.0
        assert rows["A"].shares == 10

    def test_ordering(self, differ):
        """Test ordering by weight then issuer name."""
        current = [
            holding("C", 100, 1, issuer="CHARLIE"),
            holding("A", 100, 1, issuer="ALPHA"),
            holding("B", 300, 1, issuer="BRAVO"),
        ]
        diff = differ.diff(current, 500, [holding("Z", 10, 1, issuer="ZULU", filing_id="PRE")])
        assert [r.ticker for r in diff.rows] == ["B", "A", "C", "Z"]


class TestSummarize:
    """Tests for summarize."""

    def test_every_bucket_present(self):
        """Test that empty buckets report zero."""
        summary = summarize([])
        assert summary == {
            "new_positions": 0,
            "increased_positions": 0,
            "decreased_positions": 0,
            "sold_positions": 0,
            "unchanged_positions": 0,
            "total_positions": 0,
        }
