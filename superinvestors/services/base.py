"""
Shared plumbing for report services.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence

from superinvestors.analytics.aggregation import AggregationEngine
from superinvestors.analytics.changes import ChangeAnalyzer
from superinvestors.analytics.cohort import CohortSelector
from superinvestors.analytics.ranking import RankingService, default_ranking
from superinvestors.config.logging import LogContext
from superinvestors.config.settings import EngineSettings, get_engine_settings
from superinvestors.core.deadline import Deadline
from superinvestors.core.errors import SuperinvestorsError, wrap_exception
from superinvestors.data.cache import AggregateCache
from superinvestors.data.store import FilingStore, select_live_filings
from superinvestors.holdings.models import AggregateRow, CohortMember
from superinvestors.holdings.names import clean_manager_name
from superinvestors.holdings.periods import Period
from superinvestors.services.context import AnalysisContext

logger = logging.getLogger(__name__)


@contextmanager
def report_scope(
    analysis_type: str, period: str, request_id: Optional[str] = None
) -> Iterator[LogContext]:
    """
    Correlate the logs of one report and type its failures.

    Engine errors are logged at their code's severity and re-raised as is;
    any other exception is wrapped with ``wrap_exception`` and raised from
    the original.
    """
    with LogContext(request_id=request_id, analysis_type=analysis_type, period=period) as scope:
        try:
            yield scope
        except SuperinvestorsError as e:
            e.log()
            raise
        except Exception as e:
            error = wrap_exception(e, context={"analysis_type": analysis_type, "period": period})
            error.log()
            raise error from e


class ReportService:
    """
    Base class wiring the store, cache and analytics components together.

    Services hold no per-request state: everything derived for a request
    lives in the AnalysisContext returned by ``build_context``.
    """

    def __init__(
        self,
        store: FilingStore,
        settings: Optional[EngineSettings] = None,
        cache: Optional[AggregateCache] = None,
        ranking: Optional[RankingService] = None,
    ):
        """
        Initialize the service.

        Args:
            store: Filing store to read from
            settings: Engine settings (defaults from environment)
            cache: Shared aggregate cache; None disables cross-request caching
            ranking: Ranking service shared by all components
        """
        self.store = store
        self.settings = settings or get_engine_settings()
        self.cache = cache
        self.ranking = ranking or default_ranking
        cohort_cache = (
            AggregateCache(ttl_seconds=self.settings.COHORT_CACHE_TTL_SECONDS)
            if cache is not None
            else None
        )
        self.selector = CohortSelector(store, settings=self.settings, cache=cohort_cache)
        self.engine = AggregationEngine(store, ranking=self.ranking)
        self.analyzer = ChangeAnalyzer(ranking=self.ranking)

    def build_context(
        self,
        period: Period,
        cohort: Optional[Sequence[str]] = None,
        timeout_seconds: Optional[float] = None,
        request_id: Optional[str] = None,
    ) -> AnalysisContext:
        """
        Fix the cohort and time budget for one request.

        Args:
            period: Reporting period
            cohort: Explicit manager ids; selected by value when omitted
            timeout_seconds: Time budget; settings default when omitted
            request_id: Correlation id for the request's logs; generated
                when the report runs if omitted

        Returns:
            AnalysisContext for the request
        """
        period.validate()
        budget = timeout_seconds if timeout_seconds is not None else self.settings.TIMEOUT_SECONDS
        deadline = Deadline(budget)

        if cohort is None:
            members = self.selector.select_members(period)
        else:
            members = self._members_for(cohort, period)

        return AnalysisContext(
            period=period, members=members, deadline=deadline, request_id=request_id
        )

    def aggregate(self, context: AnalysisContext, period: Optional[Period] = None) -> List[AggregateRow]:
        """
        Aggregate rows for the context's cohort in ``period``.

        Looks in the context first, then the shared cache, and computes on a
        miss. Results are stored only once fully computed.
        """
        period = period or context.period
        if period in context.aggregates:
            return list(context.aggregates[period])

        context.deadline.check(f"aggregating {period}")

        def compute() -> List[AggregateRow]:
            return self.engine.aggregate(context.cohort, period, deadline=context.deadline)

        if self.cache is None:
            rows = compute()
        else:
            key = AggregateCache.make_key("aggregate", period, context.cohort)
            rows = self.cache.get_or_compute(
                key, compute, ttl_seconds=self.settings.CACHE_TTL_SECONDS
            )

        # Callers get their own list; the stored one is shared across requests.
        context.aggregates[period] = rows
        return list(rows)

    def _members_for(self, manager_ids: Sequence[str], period: Period) -> List[CohortMember]:
        # Explicit cohorts keep the caller's order; managers without a live
        # filing in the period stay in the cohort with a zero value.
        filings = {
            f.manager_id: f
            for f in select_live_filings(
                self.store.list_filings(list(manager_ids), period, exclude_restated=True)
            )
        }
        members = []
        seen = set()
        for manager_id in manager_ids:
            if manager_id in seen:
                continue
            seen.add(manager_id)
            filing = filings.get(manager_id)
            if filing is None:
                logger.debug(f"Cohort manager {manager_id} has no live filing in {period}")
                members.append(
                    CohortMember(
                        manager_id=manager_id,
                        name=manager_id,
                        investor=manager_id,
                        total_value=0.0,
                        holdings_count=0,
                        filing_id="",
                    )
                )
                continue
            members.append(
                CohortMember(
                    manager_id=manager_id,
                    name=filing.name,
                    investor=clean_manager_name(filing.name),
                    total_value=filing.total_value,
                    holdings_count=filing.holdings_count,
                    filing_id=filing.filing_id,
                )
            )
        return members
