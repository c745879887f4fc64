"""
Core components of the venue-occupancy kernel.

This package contains:
- entry: Entry value object and replay ordering
- time_range: Preset periods
- venue: Venue dataclass
- manager: VenueManager for venues and config
- ledger: EventLedger contract and in-memory implementation
- bus: Entry Bus implementation
- channel: Closeable live entry channel
"""

from venue_occupancy.core.entry import Entry, EntryKind, EventSource
from venue_occupancy.core.time_range import TimeRange, TimeRangeType
from venue_occupancy.core.venue import Venue
from venue_occupancy.core.manager import VenueManager
from venue_occupancy.core.ledger import EventLedger, InMemoryEventLedger
from venue_occupancy.core.bus import EntryBus, EntryFilter
from venue_occupancy.core.channel import EventChannel

__all__ = [
    "Entry",
    "EntryKind",
    "EventSource",
    "TimeRange",
    "TimeRangeType",
    "Venue",
    "VenueManager",
    "EventLedger",
    "InMemoryEventLedger",
    "EntryBus",
    "EntryFilter",
    "EventChannel",
]
