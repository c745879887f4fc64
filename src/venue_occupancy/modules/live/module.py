"""LiveCounterModule - real-time occupancy per venue.

This module runs one LiveWindowAggregator per venue, fed from the Entry Bus,
and keeps the latest CounterState of each venue.
"""

import logging
import threading
from datetime import datetime, timedelta, UTC
from typing import Dict, Optional

from venue_occupancy.core.bus import EntryBus
from venue_occupancy.core.channel import EventChannel
from venue_occupancy.core.entry import Entry
from venue_occupancy.core.ledger import EventLedger
from venue_occupancy.core.manager import VenueManager
from venue_occupancy.core.time_range import TimeRange, TimeRangeType
from venue_occupancy.modules.base import VenueModule
from venue_occupancy.modules.integrity.classifier import IntegrityClassifier
from venue_occupancy.modules.integrity.models import DataIntegrityIssue

from .aggregator import LiveWindowAggregator
from .models import CounterState, LiveConfig

logger = logging.getLogger(__name__)


class LiveCounterModule(VenueModule):
    """
    Live counter module.

    Features:
    - Rehydrates today's count from the ledger on start
    - One consumer thread per venue, single owner of that venue's state
    - Latest snapshot per venue, readable from any thread
    - Stale source checks driven by the host

    Note: This module does NOT poll for stale sources internally.
    The host integration calls check_stale(venue_id, now) when it wants to know.
    """

    def __init__(
        self,
        ledger: Optional[EventLedger] = None,
        classifier: Optional[IntegrityClassifier] = None,
    ) -> None:
        self._ledger = ledger
        self._classifier = classifier or IntegrityClassifier()
        self._bus: Optional[EntryBus] = None
        self._venue_manager: Optional[VenueManager] = None
        self._channels: Dict[str, EventChannel] = {}
        self._aggregators: Dict[str, LiveWindowAggregator] = {}
        self._threads: Dict[str, threading.Thread] = {}
        self._states: Dict[str, CounterState] = {}
        self._lock = threading.Lock()

    @property
    def id(self) -> str:
        return "live"

    @property
    def CURRENT_CONFIG_VERSION(self) -> int:
        return 1

    def attach(self, bus: EntryBus, venue_manager: VenueManager) -> None:
        """Attach to the kernel and open one channel per enabled venue."""
        logger.info("Attaching LiveCounterModule")
        self._bus = bus
        self._venue_manager = venue_manager

        for venue in venue_manager.all_venues():
            config = LiveConfig.from_dict(self.effective_config(venue_manager, venue.id))
            if not config.enabled:
                logger.debug(f"Skipping disabled venue: {venue.id}")
                continue

            self._channels[venue.id] = EventChannel()
            self._aggregators[venue.id] = LiveWindowAggregator(
                self._channels[venue.id],
                capacity=venue.max_capacity,
                window_minutes=config.window_minutes,
                location_id=venue.id,
                classifier=self._classifier,
            )
            logger.debug(
                f"Live counter for {venue.id}: capacity={venue.max_capacity}, "
                f"window={config.window_minutes} min"
            )

        bus.subscribe(self._on_entry)
        logger.info(f"Live counters ready for {len(self._channels)} venues")

    def _on_entry(self, entry: Entry) -> None:
        """Route a recorded entry to its venue's channel."""
        channel = self._channels.get(entry.location_id)
        if channel is None:
            logger.warning(f"Entry {entry.id} for unconfigured venue {entry.location_id}")
            return
        if channel.closed:
            logger.debug(f"Live counter for {entry.location_id} stopped, dropping {entry.id}")
            return
        channel.put(entry)

    def start(self, now: Optional[datetime] = None) -> None:
        """
        Rehydrate every venue from today's history and start consuming.

        Args:
            now: Reference time for "today" (defaults to datetime.now(UTC))
        """
        assert self._venue_manager is not None
        if now is None:
            now = datetime.now(UTC)

        for venue_id, aggregator in self._aggregators.items():
            if venue_id in self._threads:
                continue

            initial: list[Entry] = []
            if self._ledger is not None:
                venue = self._venue_manager.get_venue(venue_id)
                tz = venue.tz if venue else UTC
                today = TimeRange.through(TimeRangeType.TODAY, now, tz=tz)
                initial = self._ledger.fetch(today, location_id=venue_id)

            thread = threading.Thread(
                target=self._consume,
                args=(venue_id, aggregator, initial),
                name=f"live-{venue_id}",
                daemon=True,
            )
            self._threads[venue_id] = thread
            thread.start()
            logger.info(f"Started live counter for {venue_id} ({len(initial)} entries rehydrated)")

    def _consume(
        self,
        venue_id: str,
        aggregator: LiveWindowAggregator,
        initial: list[Entry],
    ) -> None:
        try:
            for state in aggregator.aggregated_state(initial):
                with self._lock:
                    self._states[venue_id] = state
        except Exception as e:
            logger.error(f"Live counter for {venue_id} failed: {e}", exc_info=True)

    def stop(self, cancel: bool = False, timeout: float = 5.0) -> None:
        """
        Stop every live counter.

        Args:
            cancel: Drop queued entries instead of draining them
            timeout: Seconds to wait for each consumer thread
        """
        for venue_id, channel in self._channels.items():
            if cancel:
                self._aggregators[venue_id].cancel()
            channel.close()

        for venue_id, thread in self._threads.items():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning(f"Live counter thread for {venue_id} did not stop in {timeout}s")

        self._threads.clear()
        logger.info("Live counters stopped")

    def get_counter_state(self, venue_id: str) -> Optional[CounterState]:
        """Latest snapshot for a venue, or None before the first entry."""
        with self._lock:
            return self._states.get(venue_id)

    def check_stale(
        self,
        venue_id: str,
        now: Optional[datetime] = None,
        threshold: timedelta = timedelta(minutes=5),
    ) -> Optional[DataIntegrityIssue]:
        """
        Check whether a venue's counter has gone silent.

        Args:
            venue_id: The venue ID
            now: Current time (defaults to datetime.now(UTC))
            threshold: Allowed silence

        Returns:
            A STALE_SOURCE issue, or None when the source is fresh
        """
        state = self.get_counter_state(venue_id)
        last_seen = state.last_event_at if state else None
        issue = self._classifier.detect_stale_source(last_seen, threshold, now)
        if issue:
            logger.debug(f"Stale source for {venue_id}: {issue.message}")
        return issue

    def dump_state(self) -> Dict:
        """Export the latest headline numbers per venue."""
        with self._lock:
            return {venue_id: state.to_dict() for venue_id, state in self._states.items()}

    def default_config(self) -> Dict:
        """Default configuration for a venue."""
        return {
            "version": self.CURRENT_CONFIG_VERSION,
            "enabled": True,
            "window_minutes": 5,
        }

    def location_config_schema(self) -> Dict:
        """JSON schema for UI configuration."""
        return {
            "type": "object",
            "properties": {
                "enabled": {
                    "type": "boolean",
                    "title": "Enable Live Counter",
                    "default": True,
                },
                "window_minutes": {
                    "type": "integer",
                    "title": "Rolling Window (minutes)",
                    "description": "Entries and exits are summed over this window",
                    "minimum": 1,
                    "default": 5,
                },
            },
        }
