"""
Event ledger contract and in-memory implementation.

The ledger is the source of truth: snapshots are always recomputed from it.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, List, Optional, TYPE_CHECKING

from venue_occupancy.core.entry import Entry, sort_entries
from venue_occupancy.core.time_range import TimeRange

if TYPE_CHECKING:
    from venue_occupancy.core.bus import EntryBus

logger = logging.getLogger(__name__)


class EventLedger(ABC):
    """
    Append-only store of entries, sorted on read.

    Implementations must:
    - Treat append as idempotent by entry id
    - Preserve per-venue append order
    - Return fetch results sorted by (timestamp, id) over [start, end)
    """

    @abstractmethod
    def append(self, entry: Entry) -> bool:
        """
        Append an entry.

        Args:
            entry: Entry to record

        Returns:
            True if stored, False if an entry with the same id already exists
        """
        pass

    @abstractmethod
    def fetch(
        self,
        time_range: TimeRange,
        location_id: Optional[str] = None,
        device_id: Optional[str] = None,
    ) -> List[Entry]:
        """
        Fetch entries inside a half-open range.

        Args:
            time_range: Query window
            location_id: Optional venue filter
            device_id: Optional device filter

        Returns:
            Entries sorted by (timestamp, id)
        """
        pass


class InMemoryEventLedger(EventLedger):
    """
    Thread-safe ledger kept in process memory.

    Appends are serialized per venue; reads take a copy under the same lock.
    When a bus is attached, every newly stored entry is published on it.
    """

    def __init__(self, bus: Optional["EntryBus"] = None) -> None:
        self._bus = bus
        self._entries: Dict[str, List[Entry]] = defaultdict(list)
        self._ids: Dict[str, set[str]] = defaultdict(set)
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, location_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(location_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[location_id] = lock
            return lock

    def append(self, entry: Entry) -> bool:
        with self._lock_for(entry.location_id):
            if entry.id in self._ids[entry.location_id]:
                logger.debug(f"Ignoring duplicate entry {entry.id} for {entry.location_id}")
                return False
            self._ids[entry.location_id].add(entry.id)
            self._entries[entry.location_id].append(entry)

        logger.debug(f"Stored entry {entry.id} ({entry.kind.value}) for {entry.location_id}")

        if self._bus:
            self._bus.publish(entry)
        return True

    def fetch(
        self,
        time_range: TimeRange,
        location_id: Optional[str] = None,
        device_id: Optional[str] = None,
    ) -> List[Entry]:
        if location_id is not None:
            location_ids = [location_id]
        else:
            with self._locks_guard:
                location_ids = list(self._locks)

        matched: List[Entry] = []
        for loc_id in location_ids:
            with self._lock_for(loc_id):
                stored = list(self._entries.get(loc_id, ()))
            matched.extend(
                e
                for e in stored
                if time_range.contains(e.timestamp)
                and (device_id is None or e.device_id == device_id)
            )

        result = sort_entries(matched)
        logger.debug(
            f"Fetched {len(result)} entries for {location_id or 'all venues'} "
            f"in [{time_range.start.isoformat()}, {time_range.end.isoformat()})"
        )
        return result

    def count(self, location_id: str) -> int:
        """Number of entries stored for a venue."""
        with self._lock_for(location_id):
            return len(self._entries.get(location_id, ()))
