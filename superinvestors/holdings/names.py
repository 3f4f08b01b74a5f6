"""
Manager display-name cleanup.
"""

import re

# Legal-entity and generic business words stripped from the end of a filer
# name, matched case-insensitively and only at the trailing position.
LEGAL_SUFFIXES = (
    "LLC",
    "LP",
    "L.P.",
    "INC",
    "CORP",
    "LTD",
    "LIMITED",
    "PARTNERS",
    "CAPITAL",
    "MANAGEMENT",
    "ADVISORS",
    "ADVISOR",
    "FUND",
    "FUNDS",
    "ASSET",
    "INVESTMENTS",
    "GROUP",
    "TRUST",
    "CO",
)

_SUFFIX_PATTERN = re.compile(
    r"[\s,]+(?:" + "|".join(re.escape(s) for s in LEGAL_SUFFIXES) + r")\.?\s*$",
    re.IGNORECASE,
)


def clean_manager_name(name: str) -> str:
    """
    Strip one trailing legal suffix from a filer name.

    The substitution runs once, so ``"ACME CAPITAL MANAGEMENT LLC"`` becomes
    ``"ACME CAPITAL MANAGEMENT"``. A trailing comma left behind is dropped.

    >>> clean_manager_name("BERKSHIRE HATHAWAY INC")
    'BERKSHIRE HATHAWAY'
    """
    if not name:
        return ""
    cleaned = _SUFFIX_PATTERN.sub("", name.strip(), count=1)
    return cleaned.rstrip(" ,")
