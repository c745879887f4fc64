"""Data models for the integrity module.

Hard issues are proven impossible states and always deserve an alert.
Soft signals are expected patterns (drain at closing, overnight silence)
surfaced for context only.

Licensed under MIT License
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

# (start, end) of an affected stretch of time
Interval = tuple[datetime, datetime]


class GapSeverity(Enum):
    """Classification of the silence between two consecutive entries.

    INFO: 20-59 min, a normal slowdown (shown, not an issue)
    WARNING: 1-3h, significant gap
    CRITICAL: 3-6h, major data loss
    INACTIVITY: 6h or more, expected downtime (closed, night)
    """

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"
    INACTIVITY = "inactivity"

    @property
    def is_coverage_problem(self) -> bool:
        """Severities worth reporting as holes in coverage."""
        return self in (GapSeverity.WARNING, GapSeverity.CRITICAL)


class IssueKind(Enum):
    """Kinds of hard integrity issues."""

    NEGATIVE_COUNT = "negative_count"  # people present < 0 beyond noise
    STALE_SOURCE = "stale_source"  # counter stopped reporting


class IssueSeverity(Enum):
    WARNING = "warning"
    CRITICAL = "critical"


class SignalKind(Enum):
    """Kinds of soft flow signals."""

    NEGATIVE_DRAIN = "negative_drain"  # more exits than entries over the period
    INACTIVITY_PERIOD = "inactivity_period"  # long silence, probably closed
    HIGH_ACTIVITY = "high_activity"  # informational


@dataclass(frozen=True)
class DataGapConfiguration:
    """Thresholds for gap classification.

    Attributes:
        display_threshold: Gaps shorter than this are ignored.
        issue_threshold: Gaps at least this long are WARNING.
        inactivity_threshold: Gaps at least this long are INACTIVITY.
        critical_threshold: Gaps at least this long (and below inactivity) are CRITICAL.
    """

    display_threshold: timedelta = timedelta(minutes=20)
    issue_threshold: timedelta = timedelta(hours=1)
    inactivity_threshold: timedelta = timedelta(hours=6)
    critical_threshold: timedelta = timedelta(hours=3)

    @classmethod
    def for_window(cls, window: timedelta) -> "DataGapConfiguration":
        """Config for analysis scoped to a rolling window of the given length."""
        return cls(issue_threshold=window)

    def to_dict(self) -> dict:
        """Serialize to dict (minutes)."""
        return {
            "display_threshold_minutes": self.display_threshold.total_seconds() / 60,
            "issue_threshold_minutes": self.issue_threshold.total_seconds() / 60,
            "inactivity_threshold_minutes": self.inactivity_threshold.total_seconds() / 60,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DataGapConfiguration":
        """Deserialize from dict (minutes)."""
        return cls(
            display_threshold=timedelta(minutes=data.get("display_threshold_minutes", 20)),
            issue_threshold=timedelta(minutes=data.get("issue_threshold_minutes", 60)),
            inactivity_threshold=timedelta(minutes=data.get("inactivity_threshold_minutes", 360)),
        )


DEFAULT_GAP_CONFIG = DataGapConfiguration()


@dataclass(frozen=True)
class ClassifiedGap:
    """A silence between two consecutive entries."""

    start: datetime
    end: datetime
    severity: GapSeverity

    @property
    def interval(self) -> Interval:
        return (self.start, self.end)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


@dataclass(frozen=True)
class DataCoverageWindow:
    """First/last entry seen, plus gaps worth surfacing."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None
    gaps: tuple[Interval, ...] = field(default_factory=tuple)

    @property
    def has_gaps(self) -> bool:
        return len(self.gaps) > 0

    @property
    def has_issues(self) -> bool:
        """Gaps, or no data at all."""
        return self.has_gaps or (self.start is None and self.end is None)


@dataclass(frozen=True)
class DataIntegrityIssue:
    """A hard integrity issue.

    Attributes:
        kind: What went wrong.
        severity: WARNING or CRITICAL (NEGATIVE_COUNT is always CRITICAL).
        message: Human-readable description.
        detected_at: When the problem occurred.
        affected_range: Optional stretch of time involved.
    """

    kind: IssueKind
    severity: IssueSeverity
    message: str
    detected_at: datetime
    affected_range: Optional[Interval] = None

    @property
    def is_critical(self) -> bool:
        return self.severity is IssueSeverity.CRITICAL


@dataclass(frozen=True)
class DataFlowSignal:
    """A soft, non-alarming signal about the entry flow."""

    kind: SignalKind
    message: str
    detected_at: datetime
    affected_range: Optional[Interval] = None
