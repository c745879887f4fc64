"""Data models for the replay module.

All snapshot classes are frozen (immutable); a snapshot is recomputed from the
ledger on every query and never stored as the source of truth.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from venue_occupancy.core.time_range import TimeRange


@dataclass(frozen=True)
class ReplayConfig:
    """Idle-time policy for occupancy averaging.

    Attributes:
        soft_idle: Segments at least this long are idle when nearly empty.
        hard_idle: Segments at least this long are always idle.
        idle_occupancy_limit: "Nearly empty" means at most this many people.
    """

    soft_idle: timedelta = timedelta(hours=2)
    hard_idle: timedelta = timedelta(hours=6)
    idle_occupancy_limit: int = 10


@dataclass(frozen=True)
class MetricsSnapshot:
    """Aggregated statistics over one time range.

    Attributes:
        time_range: Window these metrics cover.
        location_id: Venue ID.
        total_entries: All entries (in + out).
        total_in: Entries of kind IN.
        total_out: Entries of kind OUT.
        net_change: total_in - total_out.
        days_covered: Distinct calendar days with at least one entry.
        avg_entries_per_day: total_in / days_covered (0 when no days).
        avg_occupancy: Time-weighted occupancy ratio over active time (0.0-1.0).
        peak_count: Highest bounded count reached (0..capacity).
        peak_timestamp: First time the peak was reached.
        active_duration: Observed time used as the averaging denominator.
    """

    time_range: TimeRange
    location_id: str
    total_entries: int = 0
    total_in: int = 0
    total_out: int = 0
    net_change: int = 0
    days_covered: int = 0
    avg_entries_per_day: float = 0.0
    avg_occupancy: float = 0.0
    peak_count: int = 0
    peak_timestamp: Optional[datetime] = None
    active_duration: timedelta = timedelta(0)

    @classmethod
    def empty(cls, time_range: TimeRange, location_id: str) -> "MetricsSnapshot":
        """Zeroed snapshot for degenerate inputs."""
        return cls(time_range=time_range, location_id=location_id)

    @property
    def has_data(self) -> bool:
        return self.total_entries > 0


@dataclass(frozen=True)
class MetricsComparison:
    """Current period measured against the previous one."""

    current: MetricsSnapshot
    previous: MetricsSnapshot

    @property
    def entries_delta(self) -> int:
        return self.current.total_in - self.previous.total_in

    @property
    def entries_percent_change(self) -> Optional[float]:
        """Relative change in entries, in percent (None without a baseline)."""
        if self.previous.total_in <= 0:
            return None
        return self.entries_delta / self.previous.total_in * 100

    @property
    def avg_occupancy_delta(self) -> float:
        """Change in average occupancy ratio (0.05 = 5 points)."""
        return self.current.avg_occupancy - self.previous.avg_occupancy

    @property
    def peak_count_delta(self) -> int:
        return self.current.peak_count - self.previous.peak_count
