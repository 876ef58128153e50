"""Reporting service for trade performance analysis."""

from tradejournal.services.reporting.models import PerformanceReport
from tradejournal.services.reporting.service import ReportingService, compute_cache_key

__all__ = [
    "ReportingService",
    "PerformanceReport",
    "compute_cache_key",
]
