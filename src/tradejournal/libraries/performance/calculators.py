"""Trade analyzers.

Each analyzer turns the same sequence of closed trades into one derived
result. Analyzers keep configuration only; every compute() call folds over
a sorted copy of its input and returns a new immutable result.

Analyzers:
- MetricsAggregator: scalar summary (counts, win rate, profit factor, ...)
- EquityCurveBuilder: running balance and drawdown per trade
- StreakTracker: current and longest win/loss streaks
- TimeBucketAnalyzer: hour-of-day, day-of-week and monthly breakdowns
- SetupAttributionAnalyzer: per-setup breakdown
- DailyPnlAnalyzer: P&L per exit day with cumulative total
- RMultipleDistributionAnalyzer: trade counts over fixed R ranges

Usage:
    >>> from tradejournal.libraries.performance.calculators import EquityCurveBuilder
    >>> from decimal import Decimal
    >>>
    >>> curve = EquityCurveBuilder(starting_capital=Decimal("1000")).compute(trades)
    >>> [p.balance for p in curve]
    [Decimal('1100.00'), Decimal('1050.00'), Decimal('1080.00')]
"""

import calendar
from collections import defaultdict
from decimal import Decimal
from typing import Sequence

from tradejournal.libraries.performance import metrics
from tradejournal.libraries.performance.base import BaseAnalyzer
from tradejournal.libraries.performance.models import (
    BucketStat,
    DailyPnl,
    EquityCurvePoint,
    MetricsSummary,
    StreakState,
    TimeAnalysis,
    TradeRecord,
)

DEFAULT_STARTING_CAPITAL = Decimal("10000")

# (exclusive upper bound, label); None marks the open-ended last range
R_MULTIPLE_RANGES: list[tuple[Decimal | None, str]] = [
    (Decimal("-2"), "Below -2R"),
    (Decimal("-1"), "-2R to -1R"),
    (Decimal("-0.5"), "-1R to -0.5R"),
    (Decimal("0"), "-0.5R to 0R"),
    (Decimal("0.5"), "0R to 0.5R"),
    (Decimal("1"), "0.5R to 1R"),
    (Decimal("2"), "1R to 2R"),
    (Decimal("3"), "2R to 3R"),
    (None, "3R+"),
]

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def build_bucket(key: int | str, label: str, trades: Sequence[TradeRecord]) -> BucketStat:
    """
    Summarize one group of trades.

    Args:
        key: Bucket key (hour, day of week, "YYYY-MM" or setup id)
        label: Display label
        trades: Trades in the group (may be empty)

    Returns:
        BucketStat with zero-valued statistics for an empty group
    """
    total = sum((t.realized_pnl for t in trades), metrics.ZERO)
    return BucketStat(
        key=key,
        label=label,
        trade_count=len(trades),
        wins=sum(1 for t in trades if t.is_winner),
        losses=sum(1 for t in trades if t.is_loser),
        pnl=metrics.quantize(total),
        win_rate_pct=metrics.calculate_win_rate(trades),
        average_r_multiple=metrics.calculate_average_r_multiple(trades),
        expectancy=metrics.calculate_expectancy(trades),
        profit_factor=metrics.calculate_profit_factor(trades),
    )


def day_of_week(trade: TradeRecord) -> int:
    """Day of week of the entry, 0=Sunday..6=Saturday."""
    return (trade.entry_date.weekday() + 1) % 7


class MetricsAggregator(BaseAnalyzer[MetricsSummary]):
    """
    Scalar summary statistics over closed trades.

    Trades with pnl == 0 count toward total_trades but are neither wins
    nor losses.
    """

    def compute(self, trades: Sequence[TradeRecord]) -> MetricsSummary:
        trades = metrics.closed_trades(trades)
        if not trades:
            return MetricsSummary()

        best_day, worst_day = metrics.calculate_best_and_worst_day(trades)
        winning = sum(1 for t in trades if t.is_winner)
        losing = sum(1 for t in trades if t.is_loser)

        return MetricsSummary(
            total_trades=len(trades),
            winning_trades=winning,
            losing_trades=losing,
            breakeven_trades=len(trades) - winning - losing,
            win_rate_pct=metrics.calculate_win_rate(trades),
            total_pnl=metrics.calculate_total_pnl(trades),
            gross_profit=metrics.quantize(metrics.calculate_gross_profit(trades)),
            gross_loss=metrics.quantize(metrics.calculate_gross_loss(trades)),
            average_win=metrics.calculate_average_win(trades),
            average_loss=metrics.calculate_average_loss(trades),
            largest_win=metrics.calculate_largest_win(trades),
            largest_loss=metrics.calculate_largest_loss(trades),
            profit_factor=metrics.calculate_profit_factor(trades),
            expectancy=metrics.calculate_expectancy(trades),
            average_r_multiple=metrics.calculate_average_r_multiple(trades),
            average_pnl_percent=metrics.calculate_average_pnl_percent(trades),
            average_holding_minutes=metrics.calculate_average_holding_minutes(trades),
            best_day=best_day,
            worst_day=worst_day,
        )

    @property
    def display_name(self) -> str:
        return "Trade Statistics"


class EquityCurveBuilder(BaseAnalyzer[list[EquityCurvePoint]]):
    """
    Running account balance and drawdown, one point per closed trade.

    Strict left-to-right fold over trades sorted by entry date:
    balance starts at starting_capital, each trade adds its pnl, the peak
    only ever rises, and drawdown is the decline from that peak in percent.
    """

    def __init__(self, starting_capital: Decimal = DEFAULT_STARTING_CAPITAL):
        """
        Initialize equity curve builder.

        Args:
            starting_capital: Account balance before the first trade (must be positive)
        """
        capital = Decimal(starting_capital)
        if not capital.is_finite() or capital <= 0:
            raise ValueError(f"starting_capital must be positive, got {starting_capital}")
        self._starting_capital = capital

    @property
    def starting_capital(self) -> Decimal:
        return self._starting_capital

    def compute(self, trades: Sequence[TradeRecord]) -> list[EquityCurvePoint]:
        balance = self._starting_capital
        peak = self._starting_capital
        points: list[EquityCurvePoint] = []

        for index, trade in enumerate(metrics.closed_in_order(trades)):
            balance += trade.realized_pnl
            if balance > peak:
                peak = balance

            points.append(
                EquityCurvePoint(
                    date=trade.entry_date,
                    balance=metrics.quantize(balance),
                    drawdown_pct=metrics.quantize(metrics.calculate_drawdown_pct(peak, balance)),
                    cumulative_trade_count=index + 1,
                    trade_pnl=metrics.quantize(trade.realized_pnl),
                )
            )

        return points

    @property
    def display_name(self) -> str:
        return "Equity Curve"


class StreakTracker(BaseAnalyzer[StreakState]):
    """
    Current and longest win/loss streaks.

    Longest streaks come from a forward scan; a flat trade (pnl == 0)
    resets both run counters. The current streak comes from a separate
    backward scan starting at the most recent trade and stopping at the
    first sign change or flat trade.
    """

    def compute(self, trades: Sequence[TradeRecord]) -> StreakState:
        ordered = metrics.closed_in_order(trades)
        longest_win, longest_loss = self._longest_streaks(ordered)
        return StreakState(
            current_streak=self._current_streak(ordered),
            longest_win_streak=longest_win,
            longest_loss_streak=longest_loss,
        )

    @staticmethod
    def _longest_streaks(ordered: Sequence[TradeRecord]) -> tuple[int, int]:
        win_run = 0
        loss_run = 0
        longest_win = 0
        longest_loss = 0

        for trade in ordered:
            if trade.is_winner:
                win_run += 1
                loss_run = 0
                longest_win = max(longest_win, win_run)
            elif trade.is_loser:
                loss_run += 1
                win_run = 0
                longest_loss = max(longest_loss, loss_run)
            else:
                win_run = 0
                loss_run = 0

        return longest_win, longest_loss

    @staticmethod
    def _current_streak(ordered: Sequence[TradeRecord]) -> int:
        if not ordered:
            return 0

        last = ordered[-1]
        if not last.is_winner and not last.is_loser:
            return 0

        direction = 1 if last.is_winner else -1
        length = 0
        for trade in reversed(ordered):
            if (direction > 0 and trade.is_winner) or (direction < 0 and trade.is_loser):
                length += 1
            else:
                break

        return direction * length

    @property
    def display_name(self) -> str:
        return "Streaks"


class TimeBucketAnalyzer(BaseAnalyzer[TimeAnalysis]):
    """
    Breakdowns by entry hour, entry day of week and entry calendar month.

    Entry dates are used as recorded; no time-zone conversion happens here.
    Hourly (24) and daily (7) partitions are fixed-size and include empty
    buckets; monthly buckets exist only for months with trades, ascending.
    An empty trade set yields empty partitions.
    """

    def compute(self, trades: Sequence[TradeRecord]) -> TimeAnalysis:
        ordered = metrics.closed_in_order(trades)
        if not ordered:
            return TimeAnalysis()

        by_hour: dict[int, list[TradeRecord]] = defaultdict(list)
        by_day: dict[int, list[TradeRecord]] = defaultdict(list)
        by_month: dict[tuple[int, int], list[TradeRecord]] = defaultdict(list)

        for trade in ordered:
            by_hour[trade.entry_date.hour].append(trade)
            by_day[day_of_week(trade)].append(trade)
            by_month[(trade.entry_date.year, trade.entry_date.month)].append(trade)

        hourly = [build_bucket(hour, f"{hour:02d}:00", by_hour.get(hour, [])) for hour in range(24)]
        daily = [build_bucket(day, DAY_NAMES[day], by_day.get(day, [])) for day in range(7)]
        monthly = [
            build_bucket(f"{year:04d}-{month:02d}", f"{calendar.month_name[month]} {year}", by_month[(year, month)])
            for year, month in sorted(by_month)
        ]

        return TimeAnalysis(hourly=hourly, daily=daily, monthly=monthly)

    @property
    def display_name(self) -> str:
        return "Time Analysis"


class SetupAttributionAnalyzer(BaseAnalyzer[list[BucketStat]]):
    """
    Per-setup breakdown.

    Trades without a setup_id are left out entirely (there is no
    "unassigned" bucket). Output is ordered best setup first: pnl
    descending, then trade count descending, then setup id ascending.
    """

    def compute(self, trades: Sequence[TradeRecord]) -> list[BucketStat]:
        groups: dict[str, list[TradeRecord]] = defaultdict(list)
        for trade in metrics.closed_in_order(trades):
            if trade.setup_id is not None:
                groups[trade.setup_id].append(trade)

        buckets = [build_bucket(setup_id, self._label(setup_id, group), group) for setup_id, group in groups.items()]
        return sorted(buckets, key=lambda b: (-b.pnl, -b.trade_count, str(b.key)))

    @staticmethod
    def _label(setup_id: str, group: Sequence[TradeRecord]) -> str:
        for trade in group:
            if trade.setup_name is not None:
                return trade.setup_name
        return setup_id

    @property
    def display_name(self) -> str:
        return "Setup Analysis"


class DailyPnlAnalyzer(BaseAnalyzer[list[DailyPnl]]):
    """
    Realized P&L per exit day with a running total.

    Days without exits are not emitted.
    """

    def compute(self, trades: Sequence[TradeRecord]) -> list[DailyPnl]:
        return metrics.calculate_daily_pnl(metrics.closed_trades(trades))

    @property
    def display_name(self) -> str:
        return "Daily P&L"


class RMultipleDistributionAnalyzer(BaseAnalyzer[list[BucketStat]]):
    """
    Histogram of R-multiples over fixed, contiguous ranges.

    Ranges are half-open [lower, upper); the first and last are unbounded.
    Only trades with an R-multiple are counted. When at least one trade
    qualifies every range is emitted, including empty ones; otherwise the
    result is empty.
    """

    def compute(self, trades: Sequence[TradeRecord]) -> list[BucketStat]:
        sized = [t for t in metrics.closed_in_order(trades) if t.r_multiple is not None]
        if not sized:
            return []

        groups: dict[int, list[TradeRecord]] = defaultdict(list)
        for trade in sized:
            groups[self.range_index(trade.r_multiple)].append(trade)

        return [build_bucket(index, label, groups.get(index, [])) for index, (_, label) in enumerate(R_MULTIPLE_RANGES)]

    @staticmethod
    def range_index(r_multiple: Decimal) -> int:
        """Index of the range containing r_multiple."""
        for index, (upper, _) in enumerate(R_MULTIPLE_RANGES):
            if upper is not None and r_multiple < upper:
                return index
        return len(R_MULTIPLE_RANGES) - 1

    @property
    def display_name(self) -> str:
        return "R-Multiple Distribution"
