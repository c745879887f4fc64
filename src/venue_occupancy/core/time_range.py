"""
Time ranges for period queries.

A TimeRange is a half-open interval [start, end) tagged with the preset that
produced it. The preset drives bucket granularity for insights.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo, UTC
from enum import Enum
from typing import Optional


class TimeRangeType(Enum):
    """Preset period types."""

    TODAY = "today"
    LAST_7_DAYS = "last_7_days"
    LAST_30_DAYS = "last_30_days"
    YEAR = "year"


# Days before the start of the current day included by each preset
_LOOKBACK_DAYS = {
    TimeRangeType.TODAY: 0,
    TimeRangeType.LAST_7_DAYS: 6,
    TimeRangeType.LAST_30_DAYS: 29,
    TimeRangeType.YEAR: 364,
}


def start_of_day(moment: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Midnight of the calendar day containing `moment` in `tz` (or its own zone)."""
    local = moment.astimezone(tz) if tz else moment
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


@dataclass(frozen=True)
class TimeRange:
    """
    A half-open query window.

    Attributes:
        type: Preset that produced this range
        start: Inclusive start
        end: Exclusive end
    """

    type: TimeRangeType
    start: datetime
    end: datetime

    @classmethod
    def from_type(
        cls,
        range_type: TimeRangeType,
        now: datetime,
        offset_days: int = 0,
        tz: tzinfo = UTC,
    ) -> "TimeRange":
        """
        Build a preset range ending at `now`.

        Args:
            range_type: Preset type
            now: Reference time (end of the range)
            offset_days: Shift the whole window by N days (negative = past)
            tz: Zone used to find the start of day

        Returns:
            TimeRange from start of day (minus the preset lookback) to `now`
        """
        shifted_now = now.astimezone(tz) + timedelta(days=offset_days)
        today_start = start_of_day(shifted_now)
        start = today_start - timedelta(days=_LOOKBACK_DAYS[range_type])
        return cls(type=range_type, start=start, end=shifted_now)

    @classmethod
    def through(
        cls,
        range_type: TimeRangeType,
        now: datetime,
        tz: tzinfo = UTC,
    ) -> "TimeRange":
        """
        Build a preset range that also includes `now` itself.

        The exclusive end is the next representable instant after `now`
        (datetime resolution is one microsecond).

        Args:
            range_type: Preset type
            now: Last instant included in the range
            tz: Zone used to find the start of day

        Returns:
            TimeRange from the preset start to just after `now`
        """
        preset = cls.from_type(range_type, now, tz=tz)
        return cls(type=range_type, start=preset.start, end=preset.end + timedelta.resolution)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        """True when the range has no positive duration."""
        return self.end <= self.start

    def contains(self, moment: datetime) -> bool:
        """Check half-open membership."""
        return self.start <= moment < self.end

    def previous_period(self) -> "TimeRange":
        """Same-duration window ending exactly where this one starts."""
        return TimeRange(type=self.type, start=self.start - self.duration, end=self.start)
