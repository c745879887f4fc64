"""
venue-occupancy: Occupancy analytics for counted venues.

This library turns a stream of signed entry/exit events into:
- Period metrics replayed from the ledger
- Data integrity findings (hard issues, soft signals, gaps)
- Explainable comparisons with the previous period
- A live rolling-window counter
"""

from venue_occupancy.core.entry import Entry, EntryKind, EventSource
from venue_occupancy.core.time_range import TimeRange, TimeRangeType
from venue_occupancy.core.venue import Venue
from venue_occupancy.core.bus import EntryBus, EntryFilter
from venue_occupancy.core.manager import VenueManager

__version__ = "0.1.0-alpha"

__all__ = [
    "Entry",
    "EntryKind",
    "EventSource",
    "TimeRange",
    "TimeRangeType",
    "Venue",
    "EntryBus",
    "EntryFilter",
    "VenueManager",
]
