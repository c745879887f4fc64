"""
Integrity module for venue-occupancy.

Hard issues vs soft signals:
- Hard: negative count beyond noise, stale sources (alert)
- Soft: net drain, inactivity periods (context only)
- Gaps: classified INFO / WARNING / CRITICAL / INACTIVITY
"""

from .models import (
    ClassifiedGap,
    DataCoverageWindow,
    DataFlowSignal,
    DataGapConfiguration,
    DataIntegrityIssue,
    GapSeverity,
    IssueKind,
    IssueSeverity,
    SignalKind,
)
from .classifier import IntegrityClassifier

__all__ = [
    "IntegrityClassifier",
    "ClassifiedGap",
    "DataCoverageWindow",
    "DataFlowSignal",
    "DataGapConfiguration",
    "DataIntegrityIssue",
    "GapSeverity",
    "IssueKind",
    "IssueSeverity",
    "SignalKind",
]
