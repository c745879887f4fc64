"""Data models for the insights module."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from fractions import Fraction


class InsightKind(Enum):
    """Rule that produced an insight (also the fixed output order)."""

    ENTRIES_DELTA = "entries_delta"
    PEAK_SHIFT = "peak_shift"
    CONCENTRATION = "concentration"


@dataclass(frozen=True)
class Insight:
    """
    An explainable comparison result.

    Attributes:
        kind: Rule that produced it
        title: One-line headline
        rule: Short description of the rule (for an "explain" affordance)
        inputs: Literal input values used
        thresholds: Thresholds that gated the rule
    """

    kind: InsightKind
    title: str
    rule: str
    inputs: tuple[str, ...] = field(default_factory=tuple)
    thresholds: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Bucket:
    """Count of IN entries in [start, end)."""

    start: datetime
    end: datetime
    count: int
    label: str


@dataclass(frozen=True)
class InsightConfig:
    """
    Gates for the insight rules.

    Shares and tolerances are exact fractions so boundary checks are exact.
    """

    stable_volume_tolerance: Fraction = Fraction(5, 100)  # ±5% counts as stable volume
    concentration_threshold: Fraction = Fraction(10, 100)  # +10 points of top-quartile share
    top_share: Fraction = Fraction(1, 4)  # busiest 25% of buckets
    max_insights: int = 3
    decimal_separator: str = ","
