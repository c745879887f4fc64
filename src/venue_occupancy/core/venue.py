"""
Venue dataclass.

A Venue is a physical space whose occupancy is counted: a club, a hall, a gym.
"""

from dataclasses import dataclass, field
from typing import Dict
from zoneinfo import ZoneInfo


@dataclass
class Venue:
    """
    A counted space.

    Attributes:
        id: Unique identifier (matches Entry.location_id)
        name: Human-readable name
        max_capacity: Maximum number of people allowed inside
        timezone: IANA zone name used for calendar-day logic
        modules: Per-module configuration blobs
    """

    id: str
    name: str
    max_capacity: int = 100
    timezone: str = "UTC"
    modules: Dict[str, Dict] = field(default_factory=dict)

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)
