"""
Cohort Selection Module

Picks the managers ("superinvestors") analyzed for a period: the largest
live filers above a value threshold.
"""

import logging
from typing import List, Optional

from superinvestors.config.settings import EngineSettings, get_engine_settings
from superinvestors.data.cache import AggregateCache
from superinvestors.data.store import FilingStore, select_live_filings
from superinvestors.holdings.models import CohortMember
from superinvestors.holdings.names import clean_manager_name
from superinvestors.holdings.periods import Period

logger = logging.getLogger(__name__)


class CohortSelector:
    """
    Select the cohort of managers for a reporting period.

    The cohort is recomputed on every call unless a cache is supplied, in
    which case results live for the cache's TTL. New periods and corrected
    filings therefore show up without restarting the process.
    """

    def __init__(
        self,
        store: FilingStore,
        settings: Optional[EngineSettings] = None,
        cache: Optional[AggregateCache] = None,
    ):
        """
        Initialize the selector.

        Args:
            store: Filing store to query
            settings: Engine settings (defaults from environment)
            cache: Optional short-TTL cache for selections
        """
        self.store = store
        self.settings = settings or get_engine_settings()
        self.cache = cache

    def select(
        self,
        period: Period,
        min_total_value: Optional[float] = None,
        max_size: Optional[int] = None,
    ) -> List[str]:
        """
        Get cohort manager ids for ``period``, largest portfolio first.

        Args:
            period: Reporting period
            min_total_value: Exclusive lower bound on filing total value
            max_size: Maximum cohort size

        Returns:
            Ordered list of manager ids; empty when nobody qualifies

        Raises:
            InvalidPeriodError: If the period is invalid
        """
        return [m.manager_id for m in self.select_members(period, min_total_value, max_size)]

    def select_members(
        self,
        period: Period,
        min_total_value: Optional[float] = None,
        max_size: Optional[int] = None,
    ) -> List[CohortMember]:
        """
        Get the cohort as display records (id, name, cleaned name, value).

        Arguments and errors as for ``select``.
        """
        period.validate()
        threshold = (
            self.settings.MIN_TOTAL_VALUE if min_total_value is None else min_total_value
        )
        limit = self.settings.MAX_COHORT_SIZE if max_size is None else max_size

        if self.cache is None:
            return self._compute_members(period, threshold, limit)

        key = f"cohort:{period}:{threshold}:{limit}"
        return list(
            self.cache.get_or_compute(
                key, lambda: self._compute_members(period, threshold, limit)
            )
        )

    def _compute_members(
        self, period: Period, threshold: float, limit: int
    ) -> List[CohortMember]:
        filings = select_live_filings(
            self.store.list_period_filings(period, exclude_restated=True)
        )
        eligible = [f for f in filings if f.total_value > threshold]
        eligible.sort(key=lambda f: f.manager_id)
        eligible.sort(key=lambda f: f.total_value, reverse=True)

        members = []
        seen = set()
        for filing in eligible[: max(limit, 0)]:
            if filing.manager_id in seen:
                continue
            seen.add(filing.manager_id)
            members.append(
                CohortMember(
                    manager_id=filing.manager_id,
                    name=filing.name,
                    investor=clean_manager_name(filing.name),
                    total_value=filing.total_value,
                    holdings_count=filing.holdings_count,
                    filing_id=filing.filing_id,
                )
            )

        logger.info(
            f"Selected cohort of {len(members)} managers for {period.label}",
            extra={
                "ctx_period": str(period),
                "ctx_min_total_value": threshold,
                "ctx_max_size": limit,
                "ctx_eligible": len(eligible),
            },
        )
        return members
