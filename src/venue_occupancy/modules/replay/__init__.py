"""
Replay module for venue-occupancy.

Replays a period's entries into time-weighted occupancy statistics.

Features:
- Deterministic (timestamp, id) replay order
- Idle segments excluded from the occupancy average
- Peak clamped to capacity, first occurrence wins ties
- Previous-period comparison
"""

from .models import MetricsComparison, MetricsSnapshot, ReplayConfig
from .engine import PeriodReplayEngine

__all__ = [
    "PeriodReplayEngine",
    "MetricsSnapshot",
    "MetricsComparison",
    "ReplayConfig",
]
