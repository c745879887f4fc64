"""Data models for the reporting module."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from venue_occupancy.core.time_range import TimeRangeType
from venue_occupancy.modules.insights.models import Insight
from venue_occupancy.modules.integrity.models import (
    DataCoverageWindow,
    DataFlowSignal,
    DataIntegrityIssue,
)
from venue_occupancy.modules.replay.models import MetricsComparison, MetricsSnapshot


class ReportingStatusKind(Enum):
    """Overall trust level of a report."""

    OK = "ok"
    MISSING = "missing"  # No data at all
    STALE = "stale"  # Coverage gaps
    DATA_ISSUE = "data_issue"  # Hard integrity issues

    @property
    def priority(self) -> int:
        """Higher is more severe."""
        return _PRIORITY[self]


_PRIORITY = {
    ReportingStatusKind.OK: 0,
    ReportingStatusKind.MISSING: 1,
    ReportingStatusKind.STALE: 2,
    ReportingStatusKind.DATA_ISSUE: 3,
}


@dataclass(frozen=True)
class ReportingStatus:
    """Overall status of a report, with a human-readable reason."""

    kind: ReportingStatusKind
    reason: str = ""

    @classmethod
    def ok(cls) -> "ReportingStatus":
        return cls(ReportingStatusKind.OK, "Data valid")

    @property
    def priority(self) -> int:
        return self.kind.priority

    @property
    def has_issue(self) -> bool:
        return self.kind is not ReportingStatusKind.OK

    @staticmethod
    def most_severe(lhs: "ReportingStatus", rhs: "ReportingStatus") -> "ReportingStatus":
        """The more severe of two statuses (rhs wins ties)."""
        return lhs if lhs.priority > rhs.priority else rhs


@dataclass(frozen=True)
class PeriodReport:
    """
    Everything known about one venue over one period.

    Attributes:
        snapshot: Metrics for the period
        previous_snapshot: Metrics for the previous period (None when it has no entries)
        comparison: Current vs previous (None when incomparable)
        capacity: Venue capacity used for the metrics
        integrity_issues: Hard issues, most recent first, deduplicated and capped
        flow_signals: Soft signals
        coverage_window: First/last entry and coverage gaps
        status: Overall status
        insights: Up to three insights, in rule order
    """

    snapshot: MetricsSnapshot
    previous_snapshot: Optional[MetricsSnapshot]
    comparison: Optional[MetricsComparison]
    capacity: int
    integrity_issues: tuple[DataIntegrityIssue, ...] = field(default_factory=tuple)
    flow_signals: tuple[DataFlowSignal, ...] = field(default_factory=tuple)
    coverage_window: DataCoverageWindow = field(default_factory=DataCoverageWindow)
    status: ReportingStatus = field(default_factory=ReportingStatus.ok)
    insights: tuple[Insight, ...] = field(default_factory=tuple)

    @property
    def is_comparable(self) -> bool:
        return self.comparison is not None

    @property
    def rotation_rate(self) -> Optional[float]:
        """
        Entries per place per day: total_in / (capacity * days).

        A TODAY report counts as one day. None when capacity or days are 0.
        """
        if self.capacity <= 0:
            return None
        if self.snapshot.time_range.type is TimeRangeType.TODAY:
            days = 1
        else:
            days = self.snapshot.days_covered
        if days <= 0:
            return None
        return self.snapshot.total_in / (self.capacity * days)
