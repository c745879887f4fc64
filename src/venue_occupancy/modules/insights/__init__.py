"""
Insights module for venue-occupancy.

Explainable comparisons between a period and the previous one:
- Entries delta (volume change)
- Peak shift (busiest bucket moved)
- Concentration (same volume, busier top quartile)
"""

from .models import Bucket, Insight, InsightConfig, InsightKind
from .buckets import BucketGranularity, bucketize, peak_bucket, top_quartile_share
from .engine import InsightEngine

__all__ = [
    "InsightEngine",
    "Insight",
    "InsightConfig",
    "InsightKind",
    "Bucket",
    "BucketGranularity",
    "bucketize",
    "peak_bucket",
    "top_quartile_share",
]
