"""Data models for the live module.

CounterState snapshots are frozen: every folded entry yields a new one.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from venue_occupancy.modules.integrity.models import (
    DataCoverageWindow,
    DataFlowSignal,
    DataIntegrityIssue,
)

# Occupancy ratio at which a venue is considered full / nearly full
FULL_RATIO = 1.0
WARNING_RATIO = 0.8


class OccupancyStatus(Enum):
    """Capacity status of a venue."""

    OK = "ok"
    WARNING = "warning"
    FULL = "full"

    @classmethod
    def from_ratio(cls, ratio: float) -> "OccupancyStatus":
        if ratio >= FULL_RATIO:
            return cls.FULL
        if ratio >= WARNING_RATIO:
            return cls.WARNING
        return cls.OK


@dataclass(frozen=True)
class CounterState:
    """
    Live view of one venue.

    Attributes:
        location_id: Venue ID
        current_count: People present (never below 0)
        last_updated: When this snapshot was produced
        status: Capacity status
        last_event_at: Timestamp of the latest folded entry
        occupancy_percent: current_count / capacity as a ratio (may exceed 1.0)
        remaining_spots: Free places left (never below 0)
        entries_in_window: IN entries in the rolling window
        exits_in_window: OUT entries in the rolling window
        net_in_window: entries_in_window - exits_in_window
        window_minutes: Rolling window length
        data_integrity_issues: Hard issues found in the window
        data_flow_signals: Soft signals found in the window
        coverage_window: Coverage of the window
    """

    location_id: str
    current_count: int
    last_updated: datetime
    status: OccupancyStatus
    last_event_at: Optional[datetime] = None
    occupancy_percent: float = 0.0
    remaining_spots: int = 0
    entries_in_window: int = 0
    exits_in_window: int = 0
    net_in_window: int = 0
    window_minutes: int = 5
    data_integrity_issues: tuple[DataIntegrityIssue, ...] = field(default_factory=tuple)
    data_flow_signals: tuple[DataFlowSignal, ...] = field(default_factory=tuple)
    coverage_window: DataCoverageWindow = field(default_factory=DataCoverageWindow)

    @property
    def has_hard_integrity_issues(self) -> bool:
        return len(self.data_integrity_issues) > 0

    @property
    def has_soft_signals(self) -> bool:
        return len(self.data_flow_signals) > 0

    def to_dict(self) -> dict:
        """Serialize the headline numbers (for dump_state)."""
        return {
            "current_count": self.current_count,
            "status": self.status.value,
            "last_event_at": self.last_event_at.isoformat() if self.last_event_at else None,
            "occupancy_percent": self.occupancy_percent,
            "remaining_spots": self.remaining_spots,
            "entries_in_window": self.entries_in_window,
            "exits_in_window": self.exits_in_window,
            "window_minutes": self.window_minutes,
            "hard_issues": len(self.data_integrity_issues),
            "soft_signals": len(self.data_flow_signals),
        }


@dataclass(frozen=True)
class LiveConfig:
    """Per-venue live counter configuration."""

    enabled: bool = True
    window_minutes: int = 5

    def to_dict(self) -> dict:
        return {"enabled": self.enabled, "window_minutes": self.window_minutes}

    @classmethod
    def from_dict(cls, data: dict) -> "LiveConfig":
        return cls(
            enabled=data.get("enabled", True),
            window_minutes=data.get("window_minutes", 5),
        )
