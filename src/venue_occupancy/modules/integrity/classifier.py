"""Integrity classifier for entry streams.

Separates proven corruption (hard issues) from benign operational patterns
(soft signals and gaps). Every method is a pure function of its arguments and
shares the replay engine's (timestamp, id) ordering.
"""

import logging
from datetime import datetime, timedelta, UTC
from typing import Optional, Sequence

from venue_occupancy.core.entry import Entry, count_kinds, sort_entries
from venue_occupancy.core.formatting import format_clock
from venue_occupancy.core.time_range import TimeRange

from .models import (
    DEFAULT_GAP_CONFIG,
    ClassifiedGap,
    DataCoverageWindow,
    DataFlowSignal,
    DataGapConfiguration,
    DataIntegrityIssue,
    GapSeverity,
    Interval,
    IssueKind,
    IssueSeverity,
    SignalKind,
)

_LOGGER = logging.getLogger(__name__)

# Running count at or below this is an impossible state, not noise
HARD_NEGATIVE_THRESHOLD = -5

# Net flow below this raises a drain signal
NEGATIVE_DRAIN_THRESHOLD = -10

# Stale sources silent for longer than this many whole minutes are critical
STALE_CRITICAL_MINUTES = 30


class IntegrityClassifier:
    """Classifies entry streams into hard issues, soft signals and gaps."""

    def __init__(
        self,
        hard_negative_threshold: int = HARD_NEGATIVE_THRESHOLD,
        negative_drain_threshold: int = NEGATIVE_DRAIN_THRESHOLD,
    ) -> None:
        self.hard_negative_threshold = hard_negative_threshold
        self.negative_drain_threshold = negative_drain_threshold

    # =========================================================================
    # Hard issues
    # =========================================================================

    def validate(self, entries: Sequence[Entry], time_range: TimeRange) -> list[DataIntegrityIssue]:
        """Detect hard integrity issues (people present < 0 beyond noise).

        The running count is replayed unclamped. Dips to -1..-4 are noise and
        reset to 0 silently. Reaching the hard threshold emits one critical
        issue, then the count restarts from 0 and replay continues.

        Args:
            entries: Entries to check, in any order.
            time_range: Period being validated.

        Returns:
            Critical NEGATIVE_COUNT issues, oldest first.
        """
        issues: list[DataIntegrityIssue] = []
        if not entries:
            return issues

        running = 0
        for entry in sort_entries(entries):
            running += entry.delta
            if running >= 0:
                continue

            if running > self.hard_negative_threshold:
                running = 0
                continue

            _LOGGER.warning(
                f"Negative count {running} for {entry.location_id} at "
                f"{entry.timestamp.isoformat()} (entry {entry.id})"
            )
            issues.append(
                DataIntegrityIssue(
                    kind=IssueKind.NEGATIVE_COUNT,
                    severity=IssueSeverity.CRITICAL,
                    message=(
                        f"Inconsistency: negative count ({running}) at "
                        f"{format_clock(entry.timestamp)}"
                    ),
                    detected_at=entry.timestamp,
                )
            )
            running = 0

        return issues

    @staticmethod
    def deduplicate_issues(
        issues: Sequence[DataIntegrityIssue], limit: int = 3
    ) -> list[DataIntegrityIssue]:
        """Most recent first, one per (kind, detected_at), capped to `limit`."""
        seen: set[tuple[IssueKind, datetime]] = set()
        deduped: list[DataIntegrityIssue] = []

        for issue in sorted(issues, key=lambda i: i.detected_at, reverse=True):
            key = (issue.kind, issue.detected_at)
            if key in seen:
                continue
            seen.add(key)
            deduped.append(issue)
            if len(deduped) == limit:
                break

        return deduped

    def detect_stale_source(
        self,
        last_seen_at: Optional[datetime],
        threshold: timedelta = timedelta(minutes=5),
        now: Optional[datetime] = None,
    ) -> Optional[DataIntegrityIssue]:
        """Check whether a source has stopped reporting.

        Args:
            last_seen_at: Last entry time from the source (None = never seen).
            threshold: Allowed silence.
            now: Reference time (default: current UTC time).

        Returns:
            None when fresh; a WARNING or CRITICAL STALE_SOURCE issue otherwise.
        """
        now = now or datetime.now(UTC)

        if last_seen_at is None:
            return DataIntegrityIssue(
                kind=IssueKind.STALE_SOURCE,
                severity=IssueSeverity.WARNING,
                message="Source never seen",
                detected_at=now,
            )

        silence = now - last_seen_at
        if silence <= threshold:
            return None

        minutes = int(silence.total_seconds() // 60)
        severity = IssueSeverity.CRITICAL if minutes > STALE_CRITICAL_MINUTES else IssueSeverity.WARNING
        return DataIntegrityIssue(
            kind=IssueKind.STALE_SOURCE,
            severity=severity,
            message=f"Source silent for {minutes} min",
            detected_at=now,
            affected_range=(last_seen_at, now),
        )

    # =========================================================================
    # Soft signals
    # =========================================================================

    def analyze_flow_signals(
        self,
        entries: Sequence[Entry],
        time_range: TimeRange,
        config: DataGapConfiguration = DEFAULT_GAP_CONFIG,
    ) -> list[DataFlowSignal]:
        """Detect soft signals: net drain and inactivity periods.

        Args:
            entries: Entries to analyze, in any order.
            time_range: Period being analyzed.
            config: Gap thresholds.

        Returns:
            NEGATIVE_DRAIN (at most one) followed by INACTIVITY_PERIOD signals.
        """
        signals: list[DataFlowSignal] = []
        if not entries:
            return signals

        ordered = sort_entries(entries)
        total_in, total_out = count_kinds(ordered)
        net_flow = total_in - total_out

        if net_flow < self.negative_drain_threshold:
            signals.append(
                DataFlowSignal(
                    kind=SignalKind.NEGATIVE_DRAIN,
                    message=f"Net drain: {net_flow} (more exits than entries, normal at end of period)",
                    detected_at=ordered[-1].timestamp,
                    affected_range=(time_range.start, time_range.end),
                )
            )

        for gap in self.detect_gaps_with_classification(ordered, config):
            if gap.severity is not GapSeverity.INACTIVITY:
                continue
            hours = int(gap.duration.total_seconds() // 3600)
            signals.append(
                DataFlowSignal(
                    kind=SignalKind.INACTIVITY_PERIOD,
                    message=(
                        f"Inactivity: {format_clock(gap.start)} to {format_clock(gap.end)} "
                        f"({hours}h, venue closed or counter idle)"
                    ),
                    detected_at=gap.start,
                    affected_range=gap.interval,
                )
            )

        return signals

    # =========================================================================
    # Gaps & coverage
    # =========================================================================

    def detect_gaps_with_classification(
        self,
        entries: Sequence[Entry],
        config: DataGapConfiguration = DEFAULT_GAP_CONFIG,
    ) -> list[ClassifiedGap]:
        """Classify the silence between each pair of consecutive entries.

        Gaps shorter than the display threshold are dropped.
        """
        ordered = sort_entries(entries)
        gaps: list[ClassifiedGap] = []

        for current, following in zip(ordered, ordered[1:]):
            duration = following.timestamp - current.timestamp
            if duration < config.display_threshold:
                continue

            gaps.append(
                ClassifiedGap(
                    start=current.timestamp,
                    end=following.timestamp,
                    severity=_classify_gap(duration, config),
                )
            )

        return gaps

    def detect_gaps(self, entries: Sequence[Entry], threshold: timedelta) -> list[Interval]:
        """Every gap of at least `threshold`, regardless of severity."""
        config = DataGapConfiguration(display_threshold=threshold, issue_threshold=threshold)
        return [gap.interval for gap in self.detect_gaps_with_classification(entries, config)]

    def compute_coverage_window(
        self,
        entries: Sequence[Entry],
        config: DataGapConfiguration = DEFAULT_GAP_CONFIG,
    ) -> DataCoverageWindow:
        """First/last entry and the WARNING/CRITICAL gaps between them."""
        if not entries:
            return DataCoverageWindow()

        ordered = sort_entries(entries)
        gaps = tuple(
            gap.interval
            for gap in self.detect_gaps_with_classification(ordered, config)
            if gap.severity.is_coverage_problem
        )
        return DataCoverageWindow(start=ordered[0].timestamp, end=ordered[-1].timestamp, gaps=gaps)


def _classify_gap(duration: timedelta, config: DataGapConfiguration) -> GapSeverity:
    if duration >= config.inactivity_threshold:
        return GapSeverity.INACTIVITY
    if duration >= config.critical_threshold:
        return GapSeverity.CRITICAL
    if duration >= config.issue_threshold:
        return GapSeverity.WARNING
    return GapSeverity.INFO
