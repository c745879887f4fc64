"""
Live module for venue-occupancy.

Real-time occupancy:
- Rolling-window aggregation of a live entry channel
- Capacity status (OK / WARNING / FULL)
- Window-scoped integrity analysis
"""

from .models import CounterState, LiveConfig, OccupancyStatus
from .aggregator import LiveWindowAggregator
from .module import LiveCounterModule

__all__ = [
    "LiveWindowAggregator",
    "LiveCounterModule",
    "CounterState",
    "LiveConfig",
    "OccupancyStatus",
]
