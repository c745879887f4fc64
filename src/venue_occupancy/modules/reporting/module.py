"""ReportingModule - batch reports over a period.

This module wires the ledger to the replay engine, the integrity classifier
and the insight engine. Reports are recomputed from the ledger on every call.
"""

import logging
from datetime import datetime, UTC
from typing import Dict, Optional, Sequence

from venue_occupancy.core.bus import EntryBus
from venue_occupancy.core.ledger import EventLedger
from venue_occupancy.core.manager import VenueManager
from venue_occupancy.core.time_range import TimeRange, TimeRangeType
from venue_occupancy.modules.base import VenueModule
from venue_occupancy.modules.insights.engine import InsightEngine
from venue_occupancy.modules.integrity.classifier import IntegrityClassifier
from venue_occupancy.modules.integrity.models import (
    DataCoverageWindow,
    DataGapConfiguration,
    DataIntegrityIssue,
)
from venue_occupancy.modules.replay.engine import PeriodReplayEngine
from venue_occupancy.modules.replay.models import MetricsSnapshot

from .models import PeriodReport, ReportingStatus, ReportingStatusKind

logger = logging.getLogger(__name__)


class ReportingModule(VenueModule):
    """
    Period reporting module.

    Features:
    - Snapshot of the selected period and of the previous one
    - Hard issues (deduplicated), soft signals and coverage
    - Overall status: data issue > stale > missing > ok
    - Insights vs the previous period
    """

    def __init__(
        self,
        ledger: EventLedger,
        replay_engine: Optional[PeriodReplayEngine] = None,
        classifier: Optional[IntegrityClassifier] = None,
        insight_engine: Optional[InsightEngine] = None,
    ) -> None:
        self._ledger = ledger
        self._replay = replay_engine or PeriodReplayEngine()
        self._classifier = classifier or IntegrityClassifier()
        self._insights = insight_engine or InsightEngine()
        self._bus: Optional[EntryBus] = None
        self._venue_manager: Optional[VenueManager] = None

    @property
    def id(self) -> str:
        return "reporting"

    @property
    def CURRENT_CONFIG_VERSION(self) -> int:
        return 1

    def attach(self, bus: EntryBus, venue_manager: VenueManager) -> None:
        """Attach to the kernel. Reports are pulled, so no subscription is made."""
        logger.info("Attaching ReportingModule")
        self._bus = bus
        self._venue_manager = venue_manager

    def build_report(
        self,
        venue_id: str,
        range_type: TimeRangeType,
        now: Optional[datetime] = None,
        offset_days: int = 0,
    ) -> PeriodReport:
        """
        Build the report of a venue for a preset period.

        Args:
            venue_id: The venue ID
            range_type: Preset period
            now: End of the period (defaults to datetime.now(UTC))
            offset_days: Shift the period by N days (negative = past)

        Returns:
            PeriodReport for the period

        Raises:
            ValueError: If venue doesn't exist or the module is not attached
        """
        if self._venue_manager is None:
            raise ValueError("ReportingModule is not attached")
        venue = self._venue_manager.get_venue(venue_id)
        if not venue:
            raise ValueError(f"Venue '{venue_id}' does not exist")

        if now is None:
            now = datetime.now(UTC)

        config = self.effective_config(self._venue_manager, venue_id)
        gap_config = DataGapConfiguration.from_dict(config)
        tz = venue.tz

        time_range = TimeRange.from_type(range_type, now, offset_days=offset_days, tz=tz)
        previous_range = time_range.previous_period()
        entries = self._ledger.fetch(time_range, location_id=venue_id)
        previous_entries = self._ledger.fetch(previous_range, location_id=venue_id)

        snapshot = self._replay.compute(entries, time_range, venue.max_capacity, venue_id, tz)
        comparison = self._replay.compare(
            snapshot, previous_entries, previous_range, venue.max_capacity
        )
        previous_snapshot = comparison.previous if comparison else None

        issues = self._classifier.deduplicate_issues(
            self._classifier.validate(entries, time_range),
            limit=config["display_limit"],
        )
        signals = self._classifier.analyze_flow_signals(entries, time_range, gap_config)
        coverage = self._classifier.compute_coverage_window(entries, gap_config)
        status = self.compute_status(snapshot, issues, coverage)

        insights = self._insights.generate(
            snapshot,
            previous_snapshot,
            entries,
            previous_entries,
            time_range,
            previous_range,
        )

        logger.info(
            f"Built {range_type.value} report for {venue_id}: "
            f"{snapshot.total_entries} entries, status={status.kind.value}, "
            f"{len(insights)} insights"
        )
        return PeriodReport(
            snapshot=snapshot,
            previous_snapshot=previous_snapshot,
            comparison=comparison,
            capacity=venue.max_capacity,
            integrity_issues=tuple(issues),
            flow_signals=tuple(signals),
            coverage_window=coverage,
            status=status,
            insights=tuple(insights),
        )

    @staticmethod
    def compute_status(
        snapshot: MetricsSnapshot,
        issues: Sequence[DataIntegrityIssue],
        coverage: DataCoverageWindow,
    ) -> ReportingStatus:
        """
        Overall status of a report.

        Priority: hard issues > coverage gaps > no data > ok.
        """
        critical = sum(1 for issue in issues if issue.is_critical)
        if critical:
            reason = "1 inconsistency detected" if critical == 1 else f"{critical} inconsistencies detected"
            return ReportingStatus(ReportingStatusKind.DATA_ISSUE, reason)

        if coverage.has_gaps:
            count = len(coverage.gaps)
            reason = "1 data gap" if count == 1 else f"{count} data gaps"
            return ReportingStatus(ReportingStatusKind.STALE, reason)

        if snapshot.total_entries == 0:
            return ReportingStatus(ReportingStatusKind.MISSING, "No data available")

        return ReportingStatus.ok()

    def default_config(self) -> Dict:
        """Default configuration for a venue."""
        return {
            "version": self.CURRENT_CONFIG_VERSION,
            "display_limit": 3,  # hard issues shown per report
            "display_threshold_minutes": 20,
            "issue_threshold_minutes": 60,
            "inactivity_threshold_minutes": 360,
        }

    def migrate_config(self, config: Dict) -> Dict:
        """Upgrade version 0 configs that kept gap thresholds in a nested dict."""
        if config.get("version", 0) >= self.CURRENT_CONFIG_VERSION:
            return config

        migrated = {k: v for k, v in config.items() if k != "thresholds"}
        thresholds = config.get("thresholds", {})
        if "display" in thresholds:
            migrated["display_threshold_minutes"] = thresholds["display"]
        if "issue" in thresholds:
            migrated["issue_threshold_minutes"] = thresholds["issue"]
        if "inactivity" in thresholds:
            migrated["inactivity_threshold_minutes"] = thresholds["inactivity"]
        migrated["version"] = self.CURRENT_CONFIG_VERSION

        logger.info(f"Migrated reporting config from version {config.get('version', 0)}")
        return migrated

    def location_config_schema(self) -> Dict:
        """JSON schema for UI configuration."""
        return {
            "type": "object",
            "properties": {
                "display_limit": {
                    "type": "integer",
                    "title": "Issues Shown",
                    "description": "Most recent hard issues listed per report",
                    "minimum": 1,
                    "default": 3,
                },
                "display_threshold_minutes": {
                    "type": "integer",
                    "title": "Minimum Gap (minutes)",
                    "description": "Silences shorter than this are ignored",
                    "minimum": 1,
                    "default": 20,
                },
                "issue_threshold_minutes": {
                    "type": "integer",
                    "title": "Coverage Gap (minutes)",
                    "description": "Silences at least this long count as coverage gaps",
                    "minimum": 1,
                    "default": 60,
                },
                "inactivity_threshold_minutes": {
                    "type": "integer",
                    "title": "Inactivity (minutes)",
                    "description": "Silences at least this long are treated as closing time",
                    "minimum": 60,
                    "default": 360,
                },
            },
        }
