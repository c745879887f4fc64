"""
Tests for IntegrityClassifier.

These tests verify:
- Hard issues: negative count beyond noise, stale sources
- Soft signals: net drain, inactivity periods
- Gap classification and coverage windows
"""

from datetime import datetime, timedelta, UTC

import pytest

from venue_occupancy.core.entry import Entry, EntryKind
from venue_occupancy.core.time_range import TimeRange, TimeRangeType
from venue_occupancy.modules.integrity import (
    DataGapConfiguration,
    DataIntegrityIssue,
    GapSeverity,
    IntegrityClassifier,
    IssueKind,
    IssueSeverity,
    SignalKind,
)


@pytest.fixture
def base_time():
    """Fixed base time for deterministic tests."""
    return datetime(2025, 1, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def classifier():
    return IntegrityClassifier()


def entry(id, kind, timestamp, delta=None):
    return Entry(
        id=id,
        location_id="club",
        timestamp=timestamp,
        kind=kind,
        delta=kind.delta if delta is None else delta,
        device_id="door-1",
    )


def day_range(base_time):
    return TimeRange(TimeRangeType.TODAY, base_time - timedelta(hours=12), base_time + timedelta(hours=12))


def at(base_time, minutes):
    return base_time + timedelta(minutes=minutes)


# =============================================================================
# Negative count
# =============================================================================


class TestNegativeCount:
    """Test hard negative-count detection."""

    def test_minus_six_is_one_critical_issue(self, classifier, base_time):
        """Test a running count of -6 raises exactly one critical issue at that entry."""
        entries = [
            entry("1", EntryKind.IN, at(base_time, 0), delta=5),
            entry("2", EntryKind.OUT, at(base_time, 10), delta=-3),
            entry("3", EntryKind.OUT, at(base_time, 20), delta=-8),
            entry("4", EntryKind.OUT, at(base_time, 30)),
        ]

        issues = classifier.validate(entries, day_range(base_time))

        assert len(issues) == 1
        issue = issues[0]
        assert issue.kind is IssueKind.NEGATIVE_COUNT
        assert issue.severity is IssueSeverity.CRITICAL
        assert issue.is_critical
        assert issue.detected_at == at(base_time, 20)
        assert issue.message == "Inconsistency: negative count (-6) at 12:20"

    def test_small_dips_are_noise(self, classifier, base_time):
        """Test counts between -1 and -4 reset silently."""
        entries = [entry(f"out-{i}", EntryKind.OUT, at(base_time, i)) for i in range(20)]
        entries.append(entry("bulk", EntryKind.OUT, at(base_time, 30), delta=-4))

        assert classifier.validate(entries, day_range(base_time)) == []

    def test_threshold_is_inclusive(self, classifier, base_time):
        """Test a count of exactly -5 is an issue."""
        entries = [entry("1", EntryKind.OUT, base_time, delta=-5)]

        issues = classifier.validate(entries, day_range(base_time))

        assert len(issues) == 1
        assert "(-5)" in issues[0].message

    def test_count_resets_after_issue(self, classifier, base_time):
        """Test classification resumes from 0 after a critical issue."""
        entries = [
            entry("1", EntryKind.OUT, at(base_time, 0), delta=-6),
            entry("2", EntryKind.IN, at(base_time, 5), delta=3),
            entry("3", EntryKind.OUT, at(base_time, 10), delta=-3),
            entry("4", EntryKind.OUT, at(base_time, 15), delta=-7),
        ]

        issues = classifier.validate(entries, day_range(base_time))

        assert [i.detected_at for i in issues] == [at(base_time, 0), at(base_time, 15)]
        assert "(-7)" in issues[1].message

    def test_validate_is_idempotent(self, classifier, base_time):
        """Test running validation twice gives the same result."""
        entries = [
            entry("2", EntryKind.OUT, at(base_time, 5), delta=-9),
            entry("1", EntryKind.IN, at(base_time, 0)),
        ]

        assert classifier.validate(entries, day_range(base_time)) == classifier.validate(
            entries, day_range(base_time)
        )

    def test_empty_entries(self, classifier, base_time):
        """Test no entries means no issues."""
        assert classifier.validate([], day_range(base_time)) == []


class TestDeduplicateIssues:
    """Test issue deduplication for display."""

    def test_most_recent_first_capped(self, base_time):
        """Test duplicates are dropped and only the most recent are kept."""

        def issue(minutes):
            return DataIntegrityIssue(
                kind=IssueKind.NEGATIVE_COUNT,
                severity=IssueSeverity.CRITICAL,
                message=f"at {minutes}",
                detected_at=at(base_time, minutes),
            )

        issues = [issue(0), issue(10), issue(10), issue(20), issue(30)]

        deduped = IntegrityClassifier.deduplicate_issues(issues)

        assert [i.detected_at for i in deduped] == [at(base_time, 30), at(base_time, 20), at(base_time, 10)]

    def test_same_time_different_kind_kept(self, base_time):
        """Test the dedupe key includes the kind."""
        issues = [
            DataIntegrityIssue(IssueKind.NEGATIVE_COUNT, IssueSeverity.CRITICAL, "a", base_time),
            DataIntegrityIssue(IssueKind.STALE_SOURCE, IssueSeverity.WARNING, "b", base_time),
        ]

        assert len(IntegrityClassifier.deduplicate_issues(issues, limit=5)) == 2


# =============================================================================
# Stale source
# =============================================================================


class TestStaleSource:
    """Test stale source detection."""

    def test_never_seen(self, classifier, base_time):
        issue = classifier.detect_stale_source(None, now=base_time)

        assert issue.kind is IssueKind.STALE_SOURCE
        assert issue.severity is IssueSeverity.WARNING
        assert issue.message == "Source never seen"

    def test_fresh_source(self, classifier, base_time):
        assert classifier.detect_stale_source(at(base_time, -3), now=base_time) is None

    @pytest.mark.parametrize(
        "silent_minutes,severity",
        [
            (10, IssueSeverity.WARNING),
            (30, IssueSeverity.WARNING),
            (31, IssueSeverity.CRITICAL),
        ],
    )
    def test_silence_severity(self, classifier, base_time, silent_minutes, severity):
        """Test silence beyond 30 whole minutes is critical."""
        last_seen = at(base_time, -silent_minutes)

        issue = classifier.detect_stale_source(last_seen, now=base_time)

        assert issue.severity is severity
        assert issue.message == f"Source silent for {silent_minutes} min"
        assert issue.affected_range == (last_seen, base_time)

    def test_custom_threshold(self, classifier, base_time):
        """Test the allowed silence is configurable."""
        last_seen = at(base_time, -10)

        assert classifier.detect_stale_source(last_seen, timedelta(minutes=15), base_time) is None


# =============================================================================
# Gaps, coverage and soft signals
# =============================================================================


class TestGaps:
    """Test gap classification and coverage."""

    @pytest.fixture
    def gappy_entries(self, base_time):
        """Entries separated by 45 min, 2h, 3h30 and 7h."""
        return [
            entry("1", EntryKind.IN, at(base_time, 0)),
            entry("2", EntryKind.IN, at(base_time, 45)),
            entry("3", EntryKind.IN, at(base_time, 165)),
            entry("4", EntryKind.IN, at(base_time, 375)),
            entry("5", EntryKind.IN, at(base_time, 795)),
        ]

    def test_classification(self, classifier, gappy_entries):
        """Test each gap gets its severity."""
        gaps = classifier.detect_gaps_with_classification(gappy_entries)

        assert [g.severity for g in gaps] == [
            GapSeverity.INFO,
            GapSeverity.WARNING,
            GapSeverity.CRITICAL,
            GapSeverity.INACTIVITY,
        ]
        assert gaps[0].duration == timedelta(minutes=45)
        assert gaps[3].duration == timedelta(hours=7)

    def test_short_gaps_ignored(self, classifier, base_time):
        """Test silences below the display threshold are dropped."""
        entries = [entry("1", EntryKind.IN, at(base_time, 0)), entry("2", EntryKind.IN, at(base_time, 19))]

        assert classifier.detect_gaps_with_classification(entries) == []

    def test_coverage_holds_only_warning_and_critical(self, classifier, base_time, gappy_entries):
        """Test INFO and INACTIVITY gaps are not coverage problems."""
        coverage = classifier.compute_coverage_window(gappy_entries)

        assert coverage.start == at(base_time, 0)
        assert coverage.end == at(base_time, 795)
        assert coverage.gaps == (
            (at(base_time, 45), at(base_time, 165)),
            (at(base_time, 165), at(base_time, 375)),
        )
        assert coverage.has_gaps

    def test_gaps_are_not_hard_issues(self, classifier, base_time, gappy_entries):
        """Test silence never produces a hard issue."""
        assert classifier.validate(gappy_entries, day_range(base_time)) == []

    def test_empty_coverage(self, classifier):
        """Test no data gives an empty coverage window."""
        coverage = classifier.compute_coverage_window([])

        assert coverage.start is None
        assert not coverage.has_gaps
        assert coverage.has_issues

    def test_legacy_gap_detection(self, classifier, base_time):
        """Test plain gap detection with a single threshold."""
        entries = [
            entry("1", EntryKind.IN, at(base_time, 0)),
            entry("2", EntryKind.IN, at(base_time, 15)),
            entry("3", EntryKind.IN, at(base_time, 20)),
        ]

        assert classifier.detect_gaps(entries, timedelta(minutes=10)) == [(at(base_time, 0), at(base_time, 15))]

    def test_gap_config_from_dict(self):
        """Test thresholds can be loaded from minutes."""
        config = DataGapConfiguration.from_dict({"issue_threshold_minutes": 30})

        assert config.issue_threshold == timedelta(minutes=30)
        assert config.display_threshold == timedelta(minutes=20)
        assert DataGapConfiguration.from_dict(config.to_dict()) == config


class TestFlowSignals:
    """Test soft signals."""

    def test_inactivity_signal(self, classifier, base_time):
        """Test a 7h gap is reported as an inactivity period at the gap start."""
        entries = [
            entry("1", EntryKind.IN, at(base_time, 0)),
            entry("2", EntryKind.OUT, at(base_time, 430)),
        ]

        signals = classifier.analyze_flow_signals(entries, day_range(base_time))

        assert len(signals) == 1
        assert signals[0].kind is SignalKind.INACTIVITY_PERIOD
        assert signals[0].detected_at == base_time
        assert "(7h," in signals[0].message
        assert signals[0].message.isascii()

    def test_negative_drain(self, classifier, base_time):
        """Test more than 10 net exits is a drain signal, not a hard issue."""
        entries = [entry(f"out-{i:02d}", EntryKind.OUT, at(base_time, i)) for i in range(11)]

        signals = classifier.analyze_flow_signals(entries, day_range(base_time))

        assert [s.kind for s in signals] == [SignalKind.NEGATIVE_DRAIN]
        assert signals[0].detected_at == at(base_time, 10)
        assert classifier.validate(entries, day_range(base_time)) == []

    def test_no_drain_at_threshold(self, classifier, base_time):
        """Test a net flow of exactly -10 is not a drain."""
        entries = [entry(f"out-{i:02d}", EntryKind.OUT, at(base_time, i)) for i in range(10)]

        assert classifier.analyze_flow_signals(entries, day_range(base_time)) == []

    def test_signals_idempotent(self, classifier, base_time):
        """Test repeated analysis gives the same result."""
        entries = [entry(f"out-{i:02d}", EntryKind.OUT, at(base_time, i * 60)) for i in range(12)]

        first = classifier.analyze_flow_signals(entries, day_range(base_time))

        assert first == classifier.analyze_flow_signals(entries, day_range(base_time))
