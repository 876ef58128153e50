"""tradejournal services package.

Services orchestrate the analytics libraries for callers such as report
renderers and dashboards.
"""

from tradejournal.services.reporting import PerformanceReport, ReportingService

__all__: list[str] = [
    "PerformanceReport",
    "ReportingService",
]
