"""Reporting service - builds PerformanceReports from journaled trades.

Responsibilities:
- Filter the caller's trades down to closed trades
- Run the analyzers over one immutable, sorted snapshot
- Merge their results into a PerformanceReport

The analyzers share no state, so they may run on a thread pool
(ReportingConfig.parallel). Results are merged only after all of them
complete; the outcome is identical either way.
"""

import hashlib
import json
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Sequence

import structlog

from tradejournal.libraries.performance import metrics
from tradejournal.libraries.performance.base import BaseAnalyzer
from tradejournal.libraries.performance.calculators import (
    DailyPnlAnalyzer,
    EquityCurveBuilder,
    MetricsAggregator,
    RMultipleDistributionAnalyzer,
    SetupAttributionAnalyzer,
    StreakTracker,
    TimeBucketAnalyzer,
)
from tradejournal.libraries.performance.models import TradeRecord
from tradejournal.services.reporting.models import PerformanceReport
from tradejournal.system.config import ReportingConfig, get_system_config, parse_starting_capital


logger = structlog.get_logger(__name__)


def _canonical_value(value: Any) -> str:
    """JSON fallback for values the cache key hashes: scale-free decimals, ISO datetimes."""
    if isinstance(value, Decimal):
        return str(value.normalize())
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    raise TypeError(f"Cannot hash value of type {type(value).__name__}")


def compute_cache_key(trades: Iterable[TradeRecord], starting_capital: Decimal) -> str:
    """
    Fingerprint a report request.

    Trades are ordered chronologically before hashing, so the key does not
    depend on the order the caller supplied them in. Decimals are hashed
    in normalized form: 100 and 100.00 give the same key.

    Args:
        trades: Trades as supplied by the caller (open trades included)
        starting_capital: Starting balance for the equity curve

    Returns:
        SHA-256 hex digest
    """
    payload = {
        "starting_capital": Decimal(starting_capital),
        "trades": [t.model_dump() for t in metrics.sort_chronologically(trades)],
    }
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=_canonical_value)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class ReportingService:
    """
    Builds performance reports.

    Stateless between calls: concurrent build_report() calls with
    different inputs never interfere.

    Example:
        >>> service = ReportingService(ReportingConfig(starting_capital=Decimal("1000")))
        >>> report = service.build_report(trades)
        >>> report.metrics.total_pnl
        Decimal('80.00')
    """

    def __init__(self, config: ReportingConfig | None = None) -> None:
        """
        Initialize reporting service.

        Args:
            config: Report settings. If None, uses the system configuration.
        """
        self._config = config if config is not None else get_system_config().reporting

    @property
    def config(self) -> ReportingConfig:
        return self._config

    def build_report(
        self,
        trades: Iterable[TradeRecord],
        starting_capital: Decimal | int | str | None = None,
    ) -> PerformanceReport:
        """
        Build a performance report.

        Args:
            trades: Trades in any order; open trades are ignored
            starting_capital: Balance before the first trade. If None, uses
                              ReportingConfig.starting_capital.

        Returns:
            Immutable PerformanceReport

        Raises:
            ValueError: If starting_capital is not a finite positive number, or
                        the trades mix naive and tz-aware entry dates
        """
        started = time.perf_counter()
        capital = self._resolve_starting_capital(starting_capital)

        snapshot = tuple(trades)
        metrics.check_uniform_timezones(snapshot)
        closed = tuple(metrics.sort_chronologically(metrics.closed_trades(snapshot)))
        open_count = len(snapshot) - len(closed)

        logger.debug(
            "reporting.report.started",
            trades=len(snapshot),
            closed_trades=len(closed),
            starting_capital=str(capital),
            parallel=self._config.parallel,
        )
        if open_count:
            logger.debug("reporting.open_trades_excluded", open_trades=open_count)

        analyzers: dict[str, BaseAnalyzer[Any]] = {
            "metrics": MetricsAggregator(),
            "equity_curve": EquityCurveBuilder(starting_capital=capital),
            "streaks": StreakTracker(),
            "time_analysis": TimeBucketAnalyzer(),
            "setup_analysis": SetupAttributionAnalyzer(),
            "daily_pnl": DailyPnlAnalyzer(),
            "r_multiple_distribution": RMultipleDistributionAnalyzer(),
        }
        results = self._run_analyzers(analyzers, closed)

        equity_curve = results["equity_curve"]
        ending_balance = equity_curve[-1].balance if equity_curve else metrics.quantize(capital)

        report = PerformanceReport(
            cache_key=compute_cache_key(snapshot, capital),
            starting_capital=metrics.quantize(capital),
            ending_balance=ending_balance,
            total_return_pct=metrics.calculate_total_return(capital, ending_balance),
            max_drawdown_pct=metrics.calculate_max_drawdown(equity_curve),
            open_trades_excluded=open_count,
            metrics=results["metrics"],
            equity_curve=equity_curve,
            streaks=results["streaks"],
            time_analysis=results["time_analysis"],
            setup_analysis=results["setup_analysis"],
            daily_pnl=results["daily_pnl"],
            r_multiple_distribution=results["r_multiple_distribution"],
        )

        logger.info(
            "reporting.report.completed",
            total_trades=report.metrics.total_trades,
            total_pnl=str(report.metrics.total_pnl),
            setups=len(report.setup_analysis),
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return report

    def _resolve_starting_capital(self, starting_capital: Decimal | int | str | None) -> Decimal:
        if starting_capital is None:
            return self._config.starting_capital

        return parse_starting_capital(starting_capital)

    def _run_analyzers(
        self,
        analyzers: dict[str, BaseAnalyzer[Any]],
        trades: Sequence[TradeRecord],
    ) -> dict[str, Any]:
        """Run every analyzer over the same snapshot, sequentially or on a thread pool."""
        if not self._config.parallel:
            return {key: analyzer.compute(trades) for key, analyzer in analyzers.items()}

        workers = min(self._config.max_workers, len(analyzers))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="analyzer") as executor:
            futures = {key: executor.submit(analyzer.compute, trades) for key, analyzer in analyzers.items()}
            return {key: future.result() for key, future in futures.items()}
