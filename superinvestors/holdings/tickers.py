"""
Security identifier to display ticker resolution.

Every component that groups or displays a ticker goes through
``TickerResolver`` so two views never disagree on a security's key.
"""

import logging
from typing import Dict, Iterable, Mapping, Optional

logger = logging.getLogger(__name__)


def resolve_ticker(security_id: str, mapping: Mapping[str, str]) -> str:
    """Mapped symbol for ``security_id``, or the identifier itself."""
    symbol = mapping.get(security_id)
    return symbol if symbol else security_id


class TickerResolver:
    """
    Resolve CUSIPs to ticker symbols from a fixed mapping snapshot.
    """

    def __init__(self, mapping: Optional[Mapping[str, str]] = None):
        self._mapping: Dict[str, str] = dict(mapping or {})

    @classmethod
    def from_store(cls, store, security_ids: Iterable[str]) -> "TickerResolver":
        """
        Build a resolver holding the store's symbols for ``security_ids``.

        Args:
            store: FilingStore implementation
            security_ids: Identifiers that will be resolved
        """
        unique_ids = sorted(set(security_ids))
        mapping = store.resolve_tickers(unique_ids) if unique_ids else {}
        logger.debug(
            f"Resolved {len(mapping)} of {len(unique_ids)} security ids to symbols"
        )
        return cls(mapping)

    @property
    def mapping(self) -> Dict[str, str]:
        return dict(self._mapping)

    def resolve(self, security_id: str) -> str:
        return resolve_ticker(security_id, self._mapping)

    def __contains__(self, security_id: str) -> bool:
        return security_id in self._mapping
