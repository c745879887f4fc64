"""
Time bucketing for period comparison.

Buckets cover the whole half-open range, zero-filled, and count IN entries only.
"""

import math
from bisect import bisect_left
from datetime import datetime, timedelta, tzinfo, UTC
from enum import Enum
from fractions import Fraction
from typing import Optional, Sequence

from venue_occupancy.core.entry import Entry, EntryKind
from venue_occupancy.core.time_range import TimeRange, TimeRangeType

from .models import Bucket


class BucketGranularity(Enum):
    """Bucketing unit matched to a range preset."""

    HOUR = "hour"
    DAY = "day"
    MONTH = "month"

    @classmethod
    def from_range_type(cls, range_type: TimeRangeType) -> "BucketGranularity":
        if range_type is TimeRangeType.TODAY:
            return cls.HOUR
        if range_type is TimeRangeType.YEAR:
            return cls.MONTH
        return cls.DAY

    @property
    def label(self) -> str:
        return self.value

    @property
    def top_quartile_label(self) -> str:
        return f"25% of {self.value}s"

    def aligned_start(self, moment: datetime, tz: Optional[tzinfo] = None) -> datetime:
        """Start of the bucket containing `moment`, in `tz`."""
        local = moment.astimezone(tz) if tz else moment
        if self is BucketGranularity.HOUR:
            return local.replace(minute=0, second=0, microsecond=0)
        if self is BucketGranularity.DAY:
            return local.replace(hour=0, minute=0, second=0, microsecond=0)
        return local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    def advance(self, start: datetime) -> datetime:
        """Start of the following bucket."""
        if self is BucketGranularity.HOUR:
            # Elapsed hour, so DST transitions neither skip nor repeat a bucket
            return (start.astimezone(UTC) + timedelta(hours=1)).astimezone(start.tzinfo)
        if self is BucketGranularity.DAY:
            return start + timedelta(days=1)
        if start.month == 12:
            return start.replace(year=start.year + 1, month=1)
        return start.replace(month=start.month + 1)

    def label_for(self, start: datetime) -> str:
        if self is BucketGranularity.HOUR:
            return f"{start:%H}h"
        if self is BucketGranularity.DAY:
            return f"{start:%d %b}"
        return f"{start:%b %Y}"


def bucketize(
    entries: Sequence[Entry],
    time_range: TimeRange,
    granularity: BucketGranularity,
    tz: Optional[tzinfo] = None,
) -> list[Bucket]:
    """
    Count IN entries per bucket across the whole range.

    Args:
        entries: Entries of the period (any order)
        time_range: Range to cover
        granularity: Bucket unit
        tz: Zone for bucket boundaries (default: the range start's zone)

    Returns:
        Consecutive buckets from the one containing `start` up to `end` (exclusive)
    """
    tz = tz or time_range.start.tzinfo
    in_times = sorted(e.timestamp for e in entries if e.kind is EntryKind.IN)

    buckets: list[Bucket] = []
    cursor = granularity.aligned_start(time_range.start, tz)
    while cursor < time_range.end:
        following = granularity.advance(cursor)
        count = bisect_left(in_times, following) - bisect_left(in_times, cursor)
        buckets.append(
            Bucket(start=cursor, end=following, count=count, label=granularity.label_for(cursor))
        )
        cursor = following

    return buckets


def peak_bucket(buckets: Sequence[Bucket]) -> Optional[tuple[int, Bucket]]:
    """Index and bucket of the first maximum, or None when there are no buckets."""
    if not buckets:
        return None

    best = 0
    for index, bucket in enumerate(buckets):
        if bucket.count > buckets[best].count:
            best = index
    return best, buckets[best]


def top_quartile_share(buckets: Sequence[Bucket], top_share: Fraction = Fraction(1, 4)) -> Optional[Fraction]:
    """
    Fraction of the total held by the busiest buckets.

    Takes the smallest number of buckets covering `top_share` of the bucket
    count (at least one). None when there are no buckets or no entries.
    """
    if not buckets:
        return None

    total = sum(b.count for b in buckets)
    if total <= 0:
        return None

    counts = sorted((b.count for b in buckets), reverse=True)
    take = max(1, math.ceil(len(counts) * top_share))
    return Fraction(sum(counts[:take]), total)
