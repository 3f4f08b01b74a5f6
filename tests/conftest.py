"""
Shared test fixtures for the superinvestors test suite.

The fixture store holds three quarters of filings for four managers:

    manager  name                 2024Q4   2025Q1   2025Q2
    0001     ALPHA CAPITAL LLC    800      900      1000
    0002     BETA PARTNERS LP     2000     2000     2000
    0003     GAMMA INC            -        700      600 (plus a restated copy)
    0004     SMALL FUND           -        -        100

With MIN_TOTAL_VALUE=500 the 2025Q2 cohort is [0002, 0001, 0003].
"""

from datetime import date

import pytest

from superinvestors.config.settings import EngineSettings, clear_settings_cache
from superinvestors.data.store import InMemoryFilingStore
from superinvestors.holdings.models import Filing, Holding
from superinvestors.holdings.periods import Period

CURRENT = Period(2025, 2)
PRIOR = Period(2025, 1)
TWO_BACK = Period(2024, 4)

AAPL = "037833100"
MSFT = "594918104"
KO = "191216100"
NVDA = "67066G104"
GE = "369604301"
UNMAPPED = "999999999"

TICKERS = {
    AAPL: "AAPL",
    MSFT: "MSFT",
    KO: "KO",
    NVDA: "NVDA",
    GE: "GE",
}

ISSUERS = {
    AAPL: "APPLE INC",
    MSFT: "MICROSOFT CORP",
    KO: "COCA COLA CO",
    NVDA: "NVIDIA CORP",
    GE: "GENERAL ELECTRIC CO",
    UNMAPPED: "ZZZ CORP",
}


def make_holding(filing_id, security_id, value, shares):
    return Holding(
        filing_id=filing_id,
        security_id=security_id,
        issuer_name=ISSUERS[security_id],
        class_title="COM",
        value=value,
        shares_or_principal=shares,
    )


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Keep the cached settings from leaking between tests."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings():
    """Engine settings with a threshold that fits the fixture values."""
    return EngineSettings(MIN_TOTAL_VALUE=500, TIMEOUT_SECONDS=None)


@pytest.fixture
def filings():
    """Filings for the fixture managers."""
    return [
        # 2025Q2
        Filing("F1", "0001", "ALPHA CAPITAL LLC", CURRENT, date(2025, 8, 10), 1000, 4),
        Filing("F2", "0002", "BETA PARTNERS LP", CURRENT, date(2025, 8, 12), 2000, 3),
        Filing("F3", "0003", "GAMMA INC", CURRENT, date(2025, 8, 20), 600, 2),
        Filing(
            "F3R", "0003", "GAMMA INC", CURRENT, date(2025, 8, 1), 5000, 1,
            superseded_by="F3",
        ),
        Filing("F4", "0004", "SMALL FUND", CURRENT, date(2025, 8, 14), 100, 1),
        # 2025Q1
        Filing("P1", "0001", "ALPHA CAPITAL LLC", PRIOR, date(2025, 5, 10), 900, 2),
        Filing("P2", "0002", "BETA PARTNERS LP", PRIOR, date(2025, 5, 12), 2000, 3),
        Filing("P3", "0003", "GAMMA INC", PRIOR, date(2025, 5, 15), 700, 1),
        # 2024Q4
        Filing("Q1", "0001", "ALPHA CAPITAL LLC", TWO_BACK, date(2025, 2, 10), 800, 1),
        Filing("Q2", "0002", "BETA PARTNERS LP", TWO_BACK, date(2025, 2, 12), 2000, 1),
    ]


@pytest.fixture
def holdings():
    """Holdings for the fixture filings."""
    return [
        # 2025Q2
        make_holding("F1", AAPL, 100, 10),
        make_holding("F1", MSFT, 200, 20),
        make_holding("F1", UNMAPPED, 50, 5),
        make_holding("F1", KO, None, 10),
        make_holding("F2", AAPL, 300, 30),
        make_holding("F2", MSFT, 400, 40),
        make_holding("F2", KO, 500, 50),
        make_holding("F3", AAPL, 60, 6),
        make_holding("F3", NVDA, 120, 12),
        make_holding("F3R", AAPL, 999, 99),
        make_holding("F4", AAPL, 10, 1),
        # 2025Q1
        make_holding("P1", AAPL, 90, 9),
        make_holding("P1", KO, 100, 10),
        make_holding("P2", AAPL, 250, 25),
        make_holding("P2", MSFT, 900, 90),
        make_holding("P2", GE, 200, 20),
        make_holding("P3", KO, 70, 7),
        # 2024Q4
        make_holding("Q1", AAPL, 80, 8),
        make_holding("Q2", MSFT, 500, 50),
    ]


@pytest.fixture
def store(filings, holdings):
    """In-memory filing store over the fixture data."""
    return InMemoryFilingStore(filings, holdings, TICKERS)


@pytest.fixture
def cohort():
    """The 2025Q2 cohort selected at MIN_TOTAL_VALUE=500."""
    return ["0002", "0001", "0003"]
