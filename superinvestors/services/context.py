"""
Per-request analysis context.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from superinvestors.core.deadline import Deadline
from superinvestors.data.cache import cohort_hash
from superinvestors.holdings.models import AggregateRow, CohortMember
from superinvestors.holdings.periods import Period


@dataclass
class AnalysisContext:
    """
    Everything one report computation shares between its stages.

    The cohort is fixed once when the context is built and reused for
    every period compared within the request. ``aggregates`` memoizes
    aggregate rows per period for the lifetime of this context only.
    """

    period: Period
    members: List[CohortMember]
    deadline: Deadline
    request_id: Optional[str] = None
    aggregates: Dict[Period, List[AggregateRow]] = field(default_factory=dict)

    @property
    def cohort(self) -> List[str]:
        return [m.manager_id for m in self.members]

    @property
    def cohort_key(self) -> str:
        return cohort_hash(self.cohort)

    def to_dict(self) -> Dict:
        return {
            "year": self.period.year,
            "quarter": self.period.quarter,
            "period": self.period.label,
            "manager_count": len(self.members),
        }
