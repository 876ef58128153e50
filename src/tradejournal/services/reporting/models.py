"""Performance report model.

The PerformanceReport is the single structure handed to report renderers
and dashboards. It is created once per request and never mutated, so it
can be cached under its cache_key.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from tradejournal.libraries.performance.models import (
    BucketStat,
    DailyPnl,
    EquityCurvePoint,
    MetricsSummary,
    StreakState,
    TimeAnalysis,
)


class PerformanceReport(BaseModel):
    """
    Complete performance report for a set of closed trades.

    JSON output (model_dump_json) uses these attribute names as keys,
    decimals as strings and datetimes as ISO-8601 strings.

    Attributes:
        cache_key: SHA-256 of the input trades and starting capital
        starting_capital: Balance before the first trade
        ending_balance: Balance after the last trade
        total_return_pct: Ending vs starting balance, in percent
        max_drawdown_pct: Largest drawdown on the equity curve
        open_trades_excluded: Open trades dropped from the input
        metrics: Scalar summary statistics
        equity_curve: One point per closed trade, chronological
        streaks: Current and longest win/loss streaks
        time_analysis: Hourly, daily and monthly breakdowns
        setup_analysis: Per-setup breakdown, best setup first
        daily_pnl: P&L per exit day with running total, ascending
        r_multiple_distribution: Trade counts over fixed R-multiple ranges
            (empty when no trade has an R-multiple)
    """

    model_config = ConfigDict(frozen=True)

    cache_key: str
    starting_capital: Decimal
    ending_balance: Decimal
    total_return_pct: Decimal = Decimal("0")
    max_drawdown_pct: Decimal = Decimal("0")
    open_trades_excluded: int = 0

    metrics: MetricsSummary = Field(default_factory=MetricsSummary)
    equity_curve: list[EquityCurvePoint] = Field(default_factory=list)
    streaks: StreakState = Field(default_factory=StreakState)
    time_analysis: TimeAnalysis = Field(default_factory=TimeAnalysis)
    setup_analysis: list[BucketStat] = Field(default_factory=list)
    daily_pnl: list[DailyPnl] = Field(default_factory=list)
    r_multiple_distribution: list[BucketStat] = Field(default_factory=list)

    @property
    def total_trades(self) -> int:
        """Closed trades covered by the report."""
        return self.metrics.total_trades

    @property
    def is_empty(self) -> bool:
        """No closed trades."""
        return self.metrics.total_trades == 0

    @property
    def monthly_pnl(self) -> list[BucketStat]:
        """Monthly P&L view (same buckets as time_analysis.monthly)."""
        return list(self.time_analysis.monthly)

    def to_json(self) -> str:
        """Serialize with deterministic field names and decimal-safe values."""
        return self.model_dump_json()
