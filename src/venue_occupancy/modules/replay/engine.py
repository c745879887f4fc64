"""The period replay engine.

Turns a raw entry list into time-weighted occupancy statistics by replaying
the entries in deterministic order. The engine is a pure function of its
inputs: it holds only its immutable config and can be shared across threads.

Licensed under MIT License
"""

import logging
import math
from datetime import datetime, timedelta, tzinfo
from typing import Optional, Sequence

from venue_occupancy.core.entry import Entry, count_kinds, sort_entries
from venue_occupancy.core.time_range import TimeRange

from .models import MetricsComparison, MetricsSnapshot, ReplayConfig

_LOGGER = logging.getLogger(__name__)


class PeriodReplayEngine:
    """The functional core of period statistics."""

    def __init__(self, config: Optional[ReplayConfig] = None) -> None:
        """Initialize the engine.

        Args:
            config: Idle-time policy (defaults: 2h soft idle, 6h hard idle, limit 10).
        """
        self.config = config or ReplayConfig()

    def compute(
        self,
        entries: Sequence[Entry],
        time_range: TimeRange,
        capacity: int,
        location_id: str,
        tz: Optional[tzinfo] = None,
    ) -> MetricsSnapshot:
        """Compute a snapshot for one period.

        Degenerate inputs (capacity <= 0, no entries, empty range) yield the
        zeroed snapshot instead of raising.

        Args:
            entries: Entries for the period, in any order.
            time_range: The period.
            capacity: Venue capacity used for occupancy ratios.
            location_id: Venue ID stamped on the snapshot.
            tz: Zone for calendar-day counting (default: each entry's own zone).

        Returns:
            MetricsSnapshot for the period.
        """
        if capacity <= 0 or not entries or time_range.is_empty:
            _LOGGER.debug(
                f"Zeroed snapshot for {location_id}: capacity={capacity}, "
                f"entries={len(entries)}, duration={time_range.duration}"
            )
            return MetricsSnapshot.empty(time_range, location_id)

        ordered = sort_entries(entries)
        total_in, total_out = count_kinds(ordered)
        days_covered = self._days_covered(ordered, tz)
        avg_entries_per_day = total_in / days_covered if days_covered > 0 else 0.0

        avg_occupancy, peak_count, peak_timestamp, active_seconds = self._replay_occupancy(
            ordered, time_range, capacity
        )

        snapshot = MetricsSnapshot(
            time_range=time_range,
            location_id=location_id,
            total_entries=len(ordered),
            total_in=total_in,
            total_out=total_out,
            net_change=total_in - total_out,
            days_covered=days_covered,
            avg_entries_per_day=avg_entries_per_day,
            avg_occupancy=avg_occupancy,
            peak_count=peak_count,
            peak_timestamp=peak_timestamp,
            active_duration=timedelta(seconds=active_seconds),
        )
        _LOGGER.debug(
            f"Replayed {len(ordered)} entries for {location_id}: "
            f"avg={avg_occupancy:.3f}, peak={peak_count}, net={snapshot.net_change}"
        )
        return snapshot

    def compare(
        self,
        current: MetricsSnapshot,
        previous_entries: Sequence[Entry],
        previous_range: TimeRange,
        capacity: int,
    ) -> Optional[MetricsComparison]:
        """Pair a snapshot with the previous period's.

        Returns:
            MetricsComparison, or None when the previous period has no entries.
        """
        if not previous_entries:
            return None

        previous = self.compute(previous_entries, previous_range, capacity, current.location_id)
        return MetricsComparison(current=current, previous=previous)

    # =========================================================================
    # Replay
    # =========================================================================

    def _replay_occupancy(
        self,
        ordered: list[Entry],
        time_range: TimeRange,
        capacity: int,
    ) -> tuple[float, int, Optional[datetime], float]:
        """Walk segments between entries, weighting occupancy by active time.

        Returns:
            (avg_occupancy, peak_count, peak_timestamp, active_seconds)
        """
        raw_count = 0
        peak_count = 0
        peak_timestamp: Optional[datetime] = None
        weighted_sum = 0.0
        active_seconds = 0.0
        cursor = time_range.start

        for entry in ordered:
            segment_end = min(entry.timestamp, time_range.end)
            ratio_time, seconds = self._weigh_segment(segment_end - cursor, raw_count, capacity)
            weighted_sum += ratio_time
            active_seconds += seconds

            raw_count += entry.delta
            cursor = max(cursor, segment_end)

            bounded = _bound(raw_count, capacity)
            if bounded > peak_count:
                peak_count = bounded
                peak_timestamp = entry.timestamp
            elif bounded == peak_count and peak_timestamp is None:
                peak_timestamp = entry.timestamp

        # Trailing segment up to the end of the range
        ratio_time, seconds = self._weigh_segment(time_range.end - cursor, raw_count, capacity)
        weighted_sum += ratio_time
        active_seconds += seconds

        avg = weighted_sum / active_seconds if active_seconds > 0 else 0.0
        if not math.isfinite(avg):
            avg = 0.0
        avg = min(max(avg, 0.0), 1.0)

        return avg, peak_count, peak_timestamp, active_seconds

    def _weigh_segment(self, duration: timedelta, raw_count: int, capacity: int) -> tuple[float, float]:
        """Contribution of one segment as (ratio * seconds, seconds).

        Inactive segments contribute nothing: they are treated as unobserved,
        neither empty nor full.
        """
        if duration <= timedelta(0):
            return 0.0, 0.0

        bounded = _bound(raw_count, capacity)
        if self._is_inactive(duration, bounded):
            return 0.0, 0.0

        seconds = duration.total_seconds()
        return (bounded / capacity) * seconds, seconds

    def _is_inactive(self, duration: timedelta, bounded_count: int) -> bool:
        if duration >= self.config.hard_idle:
            return True
        return duration >= self.config.soft_idle and bounded_count <= self.config.idle_occupancy_limit

    @staticmethod
    def _days_covered(ordered: list[Entry], tz: Optional[tzinfo]) -> int:
        days = {(e.timestamp.astimezone(tz) if tz else e.timestamp).date() for e in ordered}
        return len(days)


def _bound(raw_count: int, capacity: int) -> int:
    return min(max(0, raw_count), capacity)
