"""Performance analytics library for trade journals.

This library turns journaled trades into performance statistics:

1. **Models** (`models.py`): Pydantic data structures
   - TradeRecord: Validated, immutable trade facts
   - EquityCurvePoint: Running balance and drawdown after a trade
   - StreakState: Current and longest win/loss streaks
   - BucketStat: Per-group statistics (hour, day, month, setup)
   - MetricsSummary: Scalar summary statistics

2. **Metrics** (`metrics.py`): Pure calculation functions
   - Trade stats: win_rate, profit_factor, expectancy, average R-multiple
   - Extremes: largest win/loss, best/worst day
   - Risk: drawdown, max_drawdown

3. **Analyzers** (`calculators.py`): Pure folds over closed trades
   - MetricsAggregator, EquityCurveBuilder, StreakTracker
   - TimeBucketAnalyzer, SetupAttributionAnalyzer
   - DailyPnlAnalyzer, RMultipleDistributionAnalyzer

4. **Ingestion** (`ingestion.py`): Derived fields computed once per trade
   - calculate_pnl, calculate_r_multiple, build_trade_record

Usage:
    >>> from tradejournal.libraries.performance import StreakTracker
    >>> StreakTracker().compute(trades).longest_win_streak
    2

Design Principles:
    - Decimal precision for financial calculations
    - Explicit edge case handling (zero trades, no losses, missing risk)
    - Order-dependent folds sort by (entry_date, trade_id) first
"""

from tradejournal.libraries.performance.base import BaseAnalyzer
from tradejournal.libraries.performance.calculators import (
    DEFAULT_STARTING_CAPITAL,
    R_MULTIPLE_RANGES,
    DailyPnlAnalyzer,
    EquityCurveBuilder,
    MetricsAggregator,
    RMultipleDistributionAnalyzer,
    SetupAttributionAnalyzer,
    StreakTracker,
    TimeBucketAnalyzer,
)
from tradejournal.libraries.performance.ingestion import (
    build_trade_record,
    calculate_duration_minutes,
    calculate_pnl,
    calculate_r_multiple,
)
from tradejournal.libraries.performance.metrics import (
    PROFIT_FACTOR_CAP,
    calculate_average_r_multiple,
    calculate_expectancy,
    calculate_max_drawdown,
    calculate_profit_factor,
    calculate_total_return,
    calculate_win_rate,
)
from tradejournal.libraries.performance.models import (
    BucketStat,
    DailyPnl,
    EquityCurvePoint,
    MetricsSummary,
    StreakState,
    TimeAnalysis,
    TradeRecord,
    TradeSide,
)

__all__ = [
    # Models
    "TradeSide",
    "TradeRecord",
    "EquityCurvePoint",
    "StreakState",
    "BucketStat",
    "TimeAnalysis",
    "DailyPnl",
    "MetricsSummary",
    # Metrics (pure functions)
    "PROFIT_FACTOR_CAP",
    "calculate_win_rate",
    "calculate_profit_factor",
    "calculate_expectancy",
    "calculate_average_r_multiple",
    "calculate_max_drawdown",
    "calculate_total_return",
    # Analyzers
    "BaseAnalyzer",
    "DEFAULT_STARTING_CAPITAL",
    "MetricsAggregator",
    "EquityCurveBuilder",
    "StreakTracker",
    "TimeBucketAnalyzer",
    "SetupAttributionAnalyzer",
    "DailyPnlAnalyzer",
    "RMultipleDistributionAnalyzer",
    "R_MULTIPLE_RANGES",
    # Ingestion
    "calculate_pnl",
    "calculate_r_multiple",
    "calculate_duration_minutes",
    "build_trade_record",
]
