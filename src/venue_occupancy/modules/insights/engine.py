"""Rule-based insights comparing a period with the previous one.

Three independently gated rules, always evaluated in the same order:
entries delta, peak shift, concentration. Insights are recomputed per query
and never cached across periods.
"""

import logging
from datetime import tzinfo
from typing import Optional, Sequence

from venue_occupancy.core.entry import Entry
from venue_occupancy.core.formatting import (
    format_count,
    format_count_with_sign,
    format_decimal,
    format_ratio_percent,
    format_signed_percent,
)
from venue_occupancy.core.time_range import TimeRange
from venue_occupancy.modules.replay.models import MetricsSnapshot

from .buckets import BucketGranularity, bucketize, peak_bucket, top_quartile_share
from .models import Insight, InsightConfig, InsightKind

_LOGGER = logging.getLogger(__name__)


class InsightEngine:
    """Derives up to three explainable insights from two periods."""

    def __init__(self, config: Optional[InsightConfig] = None, tz: Optional[tzinfo] = None) -> None:
        """Initialize the engine.

        Args:
            config: Rule gates (defaults: ±5% stable volume, +10 pts concentration).
            tz: Zone for bucket boundaries (default: each range's own zone).
        """
        self.config = config or InsightConfig()
        self.tz = tz

    def generate(
        self,
        current_snapshot: MetricsSnapshot,
        previous_snapshot: Optional[MetricsSnapshot],
        current_entries: Sequence[Entry],
        previous_entries: Sequence[Entry],
        current_range: TimeRange,
        previous_range: TimeRange,
    ) -> list[Insight]:
        """Generate insights for the current period.

        Args:
            current_snapshot: Metrics for the active period.
            previous_snapshot: Metrics for the previous period (None if missing).
            current_entries: Raw entries for the active period.
            previous_entries: Raw entries for the previous period.
            current_range: Active range (its type selects bucket granularity).
            previous_range: Previous range of the same duration.

        Returns:
            At most three insights: delta, peak shift, concentration.
        """
        results: list[Insight] = []

        delta = self._entries_delta(current_snapshot, previous_snapshot)
        if delta:
            results.append(delta)

        peak = self._peak_shift(current_entries, previous_entries, current_range, previous_range)
        if peak:
            results.append(peak)

        concentration = self._concentration(
            current_snapshot,
            previous_snapshot,
            current_entries,
            previous_entries,
            current_range,
            previous_range,
        )
        if concentration:
            results.append(concentration)

        _LOGGER.debug(
            f"Generated {len(results)} insights for {current_snapshot.location_id}: "
            f"{[i.kind.value for i in results]}"
        )
        return results[: self.config.max_insights]

    # =========================================================================
    # Rule A: entries delta
    # =========================================================================

    def _entries_delta(
        self,
        current: MetricsSnapshot,
        previous: Optional[MetricsSnapshot],
    ) -> Optional[Insight]:
        if previous is None or previous.total_in <= 0:
            return None

        delta = current.total_in - previous.total_in
        percent = delta / previous.total_in * 100.0
        if delta > 0:
            direction = "increase"
        elif delta < 0:
            direction = "decrease"
        else:
            direction = "stable"

        percent_text = format_signed_percent(percent, 1, self.config.decimal_separator)
        return Insight(
            kind=InsightKind.ENTRIES_DELTA,
            title=f"Entries {direction} vs previous period ({percent_text})",
            rule="Delta = (current − previous) / previous",
            inputs=(
                f"Current: {format_count(current.total_in)}",
                f"Previous: {format_count(previous.total_in)}",
                f"Raw delta: {format_count_with_sign(delta)}",
            ),
            thresholds=(
                "Skipped when the previous period is missing or 0",
                "Based on entries (in) only",
            ),
        )

    # =========================================================================
    # Rule B: peak shift
    # =========================================================================

    def _peak_shift(
        self,
        current_entries: Sequence[Entry],
        previous_entries: Sequence[Entry],
        current_range: TimeRange,
        previous_range: TimeRange,
    ) -> Optional[Insight]:
        if not current_entries or not previous_entries:
            return None

        granularity = BucketGranularity.from_range_type(current_range.type)
        current_peak = peak_bucket(bucketize(current_entries, current_range, granularity, self.tz))
        previous_peak = peak_bucket(bucketize(previous_entries, previous_range, granularity, self.tz))
        if current_peak is None or previous_peak is None:
            return None

        current_index, current_bucket = current_peak
        previous_index, previous_bucket = previous_peak
        if current_bucket.count == 0 or previous_bucket.count == 0:
            return None

        shift = current_index - previous_index
        if shift == 0:
            return None

        direction = "earlier" if shift < 0 else "later"
        return Insight(
            kind=InsightKind.PEAK_SHIFT,
            title=f"Peak {direction} than usual",
            rule=f"Compare current vs previous peak bucket ({granularity.label} granularity)",
            inputs=(
                f"Current: {current_bucket.label} ({format_count(current_bucket.count)} entries)",
                f"Previous: {previous_bucket.label} ({format_count(previous_bucket.count)} entries)",
            ),
            thresholds=(
                "Minimum shift: 1 bucket",
                "No insight when peaks match or a baseline is empty",
            ),
        )

    # =========================================================================
    # Rule C: concentration
    # =========================================================================

    def _concentration(
        self,
        current: MetricsSnapshot,
        previous: Optional[MetricsSnapshot],
        current_entries: Sequence[Entry],
        previous_entries: Sequence[Entry],
        current_range: TimeRange,
        previous_range: TimeRange,
    ) -> Optional[Insight]:
        if previous is None or previous.total_in <= 0:
            return None
        if not current_entries or not previous_entries:
            return None

        current_total = current.total_in
        previous_total = previous.total_in
        # Volume changes are already explained by the delta rule
        if abs(current_total - previous_total) > previous_total * self.config.stable_volume_tolerance:
            return None

        granularity = BucketGranularity.from_range_type(current_range.type)
        top_share = self.config.top_share
        current_share = top_quartile_share(
            bucketize(current_entries, current_range, granularity, self.tz), top_share
        )
        previous_share = top_quartile_share(
            bucketize(previous_entries, previous_range, granularity, self.tz), top_share
        )
        if current_share is None or previous_share is None:
            return None

        share_delta = current_share - previous_share
        if share_delta < self.config.concentration_threshold:
            return None

        sep = self.config.decimal_separator
        points = format_decimal(float(share_delta * 100), 1, sep)
        return Insight(
            kind=InsightKind.CONCENTRATION,
            title=f"Stable volume but more concentrated flow (+{points} pts top quartile)",
            rule=f"Compare the share of entries in the busiest {granularity.top_quartile_label}",
            inputs=(
                f"Current entries: {format_count(current_total)}",
                f"Previous entries: {format_count(previous_total)}",
                f"Top 25% current: {format_ratio_percent(float(current_share), 1, sep)}",
                f"Top 25% previous: {format_ratio_percent(float(previous_share), 1, sep)}",
            ),
            thresholds=(
                f"Total within ±{format_decimal(float(self.config.stable_volume_tolerance * 100), 0)}% of previous",
                f"Top 25% share up ≥ {format_decimal(float(self.config.concentration_threshold * 100), 0)} points",
                "Skipped when the previous period is empty",
            ),
        )
