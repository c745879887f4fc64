"""Rolling-window aggregator for the live counter.

Design:
- Single owner: all mutable state lives inside one aggregated_state() call
- Rehydrate from history, then fold the live channel one entry at a time
- Every fold yields a new frozen CounterState
"""

import logging
from collections import deque
from datetime import datetime, timedelta
from typing import Callable, Deque, Iterable, Iterator, Optional

from venue_occupancy.core.channel import EventChannel
from venue_occupancy.core.entry import Entry, _utc_now, count_kinds, sort_entries
from venue_occupancy.core.time_range import TimeRange, TimeRangeType
from venue_occupancy.modules.integrity.classifier import IntegrityClassifier
from venue_occupancy.modules.integrity.models import DataGapConfiguration

from .models import CounterState, OccupancyStatus

_LOGGER = logging.getLogger(__name__)


class LiveWindowAggregator:
    """
    Folds a live entry channel into CounterState snapshots.

    Usage:
        aggregator = LiveWindowAggregator(channel, capacity=150)
        for state in aggregator.aggregated_state(initial_entries=today):
            publish(state)
    """

    def __init__(
        self,
        source: EventChannel,
        capacity: int = 100,
        window_minutes: int = 5,
        location_id: str = "",
        classifier: Optional[IntegrityClassifier] = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """
        Initialize the aggregator.

        Args:
            source: Live entries (iteration ends when closed or cancelled)
            capacity: Venue capacity for occupancy ratio and status
            window_minutes: Rolling window length
            location_id: Venue ID stamped on every snapshot
            classifier: Integrity classifier for window analysis
            clock: Source of `last_updated` timestamps

        Raises:
            ValueError: If window_minutes is not positive
        """
        if window_minutes <= 0:
            raise ValueError(f"Window length must be positive, got {window_minutes} minutes")

        self.source = source
        self.capacity = capacity
        self.window_minutes = window_minutes
        self.window = timedelta(minutes=window_minutes)
        self.location_id = location_id
        self.classifier = classifier or IntegrityClassifier()
        self._clock = clock
        self._gap_config = DataGapConfiguration.for_window(self.window)

    def cancel(self) -> None:
        """Stop consuming; the iterator ends without emitting partial state."""
        _LOGGER.debug(f"Cancelling live aggregation for {self.location_id}")
        self.source.cancel()

    def aggregated_state(self, initial_entries: Iterable[Entry] = ()) -> Iterator[CounterState]:
        """
        Yield a CounterState after rehydration and after every live entry.

        Args:
            initial_entries: History to replay first (one snapshot is emitted
                for it when non-empty)

        Yields:
            Frozen CounterState snapshots, in fold order
        """
        current_count = 0
        last_event_at: Optional[datetime] = None
        recent: Deque[Entry] = deque()
        # Ids folded from history, kept only until live entries pass the window
        rehydrated_ids: set[str] = set()
        dedup_until: Optional[datetime] = None

        history = sort_entries(initial_entries)
        if history:
            for entry in history:
                current_count = max(0, current_count + entry.delta)
                last_event_at = entry.timestamp
                recent.append(entry)
                rehydrated_ids.add(entry.id)

            self._purge(recent, last_event_at - self.window)
            dedup_until = last_event_at + self.window
            _LOGGER.info(
                f"Rehydrated {self.location_id} from {len(history)} entries: count={current_count}"
            )
            yield self._compute_state(current_count, last_event_at, recent)

        for entry in self.source:
            if rehydrated_ids:
                if entry.id in rehydrated_ids:
                    rehydrated_ids.discard(entry.id)
                    _LOGGER.debug(f"Skipping already folded entry {entry.id}")
                    continue
                if dedup_until is not None and entry.timestamp > dedup_until:
                    rehydrated_ids.clear()

            current_count = max(0, current_count + entry.delta)
            last_event_at = entry.timestamp

            if recent and entry.timestamp < recent[-1].timestamp:
                # Out of order: keep the deque sorted so purging from the left stays valid
                ordered = sort_entries([*recent, entry])
                recent.clear()
                recent.extend(ordered)
            else:
                recent.append(entry)
            self._purge(recent, entry.timestamp - self.window)

            if self.source.cancelled:
                break

            _LOGGER.debug(
                f"Folded {entry.kind.value} for {self.location_id}: count={current_count}, "
                f"window={len(recent)}"
            )
            yield self._compute_state(current_count, last_event_at, recent)

        _LOGGER.debug(f"Live aggregation finished for {self.location_id}")

    @staticmethod
    def _purge(recent: Deque[Entry], cutoff: datetime) -> None:
        while recent and recent[0].timestamp < cutoff:
            recent.popleft()

    def _compute_state(
        self,
        current_count: int,
        last_event_at: Optional[datetime],
        recent: Deque[Entry],
    ) -> CounterState:
        entries_in, exits_out = count_kinds(recent)
        ratio = current_count / self.capacity if self.capacity > 0 else 0.0

        window_entries = list(recent)
        issues: tuple = ()
        signals: tuple = ()
        coverage = self.classifier.compute_coverage_window(window_entries, self._gap_config)
        if window_entries and last_event_at is not None:
            window_range = TimeRange(
                type=TimeRangeType.TODAY,
                start=last_event_at - self.window,
                end=last_event_at,
            )
            issues = tuple(self.classifier.validate(window_entries, window_range))
            signals = tuple(
                self.classifier.analyze_flow_signals(window_entries, window_range, self._gap_config)
            )

        return CounterState(
            location_id=self.location_id,
            current_count=current_count,
            last_updated=self._clock(),
            status=OccupancyStatus.from_ratio(ratio),
            last_event_at=last_event_at,
            occupancy_percent=ratio,
            remaining_spots=max(0, self.capacity - current_count),
            entries_in_window=entries_in,
            exits_in_window=exits_out,
            net_in_window=entries_in - exits_out,
            window_minutes=self.window_minutes,
            data_integrity_issues=issues,
            data_flow_signals=signals,
            coverage_window=coverage,
        )
