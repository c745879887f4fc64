"""
Reporting module for venue-occupancy.

Batch reports over a preset period: metrics, comparison, data quality and insights.
"""

from .models import PeriodReport, ReportingStatus, ReportingStatusKind
from .module import ReportingModule

__all__ = [
    "ReportingModule",
    "PeriodReport",
    "ReportingStatus",
    "ReportingStatusKind",
]
