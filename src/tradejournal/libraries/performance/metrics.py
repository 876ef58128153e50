"""Performance metrics calculation functions.

Pure functions for calculating trade statistics from closed trades and
equity curves. All functions are stateless and testable.

Philosophy:
- Pure functions: same inputs always produce same outputs
- No side effects: don't modify inputs or global state
- Explicit edge cases: empty input and zero divisors resolve to documented
  constants, never NaN or Infinity
- Rounding happens once, on the value returned; sums are never rounded

Usage:
    >>> from tradejournal.libraries.performance import metrics
    >>> metrics.calculate_win_rate(trades)
    Decimal('66.67')
    >>> metrics.calculate_profit_factor(trades)
    Decimal('2.60')
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

from tradejournal.libraries.performance.models import DailyPnl, EquityCurvePoint, TradeRecord

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")

# Reported when there are winning trades but no losing trades, and used as
# the upper clamp for computed ratios.
PROFIT_FACTOR_CAP = Decimal("999.99")


def quantize(value: Decimal) -> Decimal:
    """Round to two decimal places."""
    return Decimal(value).quantize(CENT)


def safe_ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Divide, returning 0 when the denominator is 0."""
    if denominator == ZERO:
        return ZERO
    return Decimal(numerator) / Decimal(denominator)


def check_uniform_timezones(trades: Sequence[TradeRecord]) -> None:
    """
    Require entry dates to be all naive or all tz-aware.

    Raises:
        ValueError: If naive and aware entry dates are mixed
    """
    aware = {t.entry_date.tzinfo is not None for t in trades}
    if len(aware) > 1:
        raise ValueError("Trades mix naive and tz-aware entry dates; normalize the journal to one convention")


def sort_chronologically(trades: Iterable[TradeRecord]) -> list[TradeRecord]:
    """
    Return a new list sorted by entry date.

    Trade id breaks ties so identical timestamps still give a stable,
    caller-independent order.

    Raises:
        ValueError: If naive and aware entry dates are mixed
    """
    snapshot = list(trades)
    check_uniform_timezones(snapshot)
    return sorted(snapshot, key=lambda t: (t.entry_date, t.trade_id))


def closed_trades(trades: Iterable[TradeRecord]) -> list[TradeRecord]:
    """Filter out open trades."""
    return [t for t in trades if not t.is_open]


def closed_in_order(trades: Iterable[TradeRecord]) -> list[TradeRecord]:
    """Closed trades only, sorted chronologically."""
    return sort_chronologically(closed_trades(trades))


def calculate_total_pnl(trades: Sequence[TradeRecord]) -> Decimal:
    """Sum of realized P&L."""
    return quantize(sum((t.realized_pnl for t in trades), ZERO))


def calculate_gross_profit(trades: Sequence[TradeRecord]) -> Decimal:
    """Sum of P&L over winning trades (unrounded)."""
    return sum((t.realized_pnl for t in trades if t.is_winner), ZERO)


def calculate_gross_loss(trades: Sequence[TradeRecord]) -> Decimal:
    """Magnitude of summed P&L over losing trades (unrounded, positive)."""
    return abs(sum((t.realized_pnl for t in trades if t.is_loser), ZERO))


def calculate_win_rate(trades: Sequence[TradeRecord]) -> Decimal:
    """
    Calculate win rate (percentage of profitable trades).

    Breakeven trades count toward the total but not as wins.

    Args:
        trades: Sequence of closed TradeRecord objects

    Returns:
        Win rate as percentage (0-100), 0 for an empty sequence

    Example:
        >>> calculate_win_rate(trades)  # pnl = [100, -50, 30]
        Decimal('66.67')
    """
    if not trades:
        return quantize(ZERO)

    winning_trades = sum(1 for t in trades if t.is_winner)
    return quantize(Decimal(winning_trades) / Decimal(len(trades)) * HUNDRED)


def calculate_profit_factor(trades: Sequence[TradeRecord]) -> Decimal:
    """
    Calculate profit factor (gross profit / gross loss).

    Args:
        trades: Sequence of closed TradeRecord objects

    Returns:
        - 0 for an empty sequence, or when nothing was won
        - PROFIT_FACTOR_CAP when there are wins but no losses
        - the ratio otherwise, clamped to PROFIT_FACTOR_CAP

    Example:
        >>> calculate_profit_factor(trades)  # pnl = [100, -50, 30]
        Decimal('2.60')
    """
    if not trades:
        return quantize(ZERO)

    gross_profit = calculate_gross_profit(trades)
    gross_loss = calculate_gross_loss(trades)

    if gross_loss == ZERO:
        return PROFIT_FACTOR_CAP if gross_profit > ZERO else quantize(ZERO)

    return quantize(min(gross_profit / gross_loss, PROFIT_FACTOR_CAP))


def calculate_expectancy(trades: Sequence[TradeRecord]) -> Decimal:
    """
    Calculate expectancy (average P&L per closed trade).

    Args:
        trades: Sequence of closed TradeRecord objects

    Returns:
        Expected value per trade in currency units, 0 for an empty sequence
    """
    if not trades:
        return quantize(ZERO)

    total = sum((t.realized_pnl for t in trades), ZERO)
    return quantize(total / Decimal(len(trades)))


def calculate_average_win(trades: Sequence[TradeRecord]) -> Decimal:
    """Mean P&L over winning trades, 0 if none."""
    winners = [t.realized_pnl for t in trades if t.is_winner]
    if not winners:
        return quantize(ZERO)
    return quantize(sum(winners, ZERO) / Decimal(len(winners)))


def calculate_average_loss(trades: Sequence[TradeRecord]) -> Decimal:
    """Mean loss magnitude over losing trades, returned as a negative number (0 if none)."""
    losers = [abs(t.realized_pnl) for t in trades if t.is_loser]
    if not losers:
        return quantize(ZERO)
    return -quantize(sum(losers, ZERO) / Decimal(len(losers)))


def calculate_largest_win(trades: Sequence[TradeRecord]) -> Decimal:
    """Maximum P&L over all closed trades (0 if empty)."""
    return quantize(max((t.realized_pnl for t in trades), default=ZERO))


def calculate_largest_loss(trades: Sequence[TradeRecord]) -> Decimal:
    """Minimum P&L over all closed trades (0 if empty)."""
    return quantize(min((t.realized_pnl for t in trades), default=ZERO))


def calculate_average_r_multiple(trades: Sequence[TradeRecord]) -> Decimal:
    """
    Mean R-multiple over trades that have one.

    Trades without a risk amount carry no R-multiple and are skipped
    rather than counted as 0.

    Returns:
        Average R-multiple, 0 if no trade qualifies
    """
    values = [t.r_multiple for t in trades if t.r_multiple is not None]
    if not values:
        return quantize(ZERO)
    return quantize(sum(values, ZERO) / Decimal(len(values)))


def calculate_average_pnl_percent(trades: Sequence[TradeRecord]) -> Decimal:
    """Mean percent return over trades that recorded one (0 if none)."""
    values = [t.pnl_percent for t in trades if t.pnl_percent is not None]
    if not values:
        return quantize(ZERO)
    return quantize(sum(values, ZERO) / Decimal(len(values)))


def calculate_average_holding_minutes(trades: Sequence[TradeRecord]) -> Decimal | None:
    """Mean holding period in minutes, None when no trade has a known duration."""
    durations = [t.holding_minutes for t in trades if t.holding_minutes is not None]
    if not durations:
        return None
    return quantize(Decimal(sum(durations)) / Decimal(len(durations)))


def calculate_daily_pnl(trades: Sequence[TradeRecord]) -> list[DailyPnl]:
    """
    Group realized P&L by exit calendar date.

    Returns:
        One DailyPnl per day with at least one exit, ascending by date,
        with the running total through each day
    """
    totals: dict[date, Decimal] = defaultdict(lambda: ZERO)
    counts: dict[date, int] = defaultdict(int)

    for trade in trades:
        if trade.exit_date is None:
            continue
        day = trade.exit_date.date()
        totals[day] += trade.realized_pnl
        counts[day] += 1

    days: list[DailyPnl] = []
    running = ZERO
    for day in sorted(totals):
        running += totals[day]
        days.append(
            DailyPnl(day=day, pnl=quantize(totals[day]), cumulative_pnl=quantize(running), trade_count=counts[day])
        )
    return days


def calculate_best_and_worst_day(trades: Sequence[TradeRecord]) -> tuple[DailyPnl | None, DailyPnl | None]:
    """
    Find the most and least profitable exit days.

    Ties resolve to the earliest day.

    Returns:
        (best_day, worst_day), both None for an empty sequence
    """
    days = calculate_daily_pnl(trades)
    if not days:
        return None, None

    best = days[0]
    worst = days[0]
    for day in days[1:]:
        if day.pnl > best.pnl:
            best = day
        if day.pnl < worst.pnl:
            worst = day
    return best, worst


def calculate_drawdown_pct(peak: Decimal, balance: Decimal) -> Decimal:
    """
    Percentage decline of balance from peak.

    Bounded to [0, 100]; a non-positive peak gives 0.
    """
    if peak <= ZERO:
        return ZERO
    drawdown = (peak - balance) / peak * HUNDRED
    return min(max(drawdown, ZERO), HUNDRED)


def calculate_max_drawdown(equity_curve: Sequence[EquityCurvePoint]) -> Decimal:
    """
    Maximum drawdown percentage over an equity curve.

    Args:
        equity_curve: Points produced by EquityCurveBuilder

    Returns:
        Largest drawdown_pct on the curve, 0 if the curve is empty
    """
    return quantize(max((p.drawdown_pct for p in equity_curve), default=ZERO))


def calculate_total_return(initial_equity: Decimal, final_equity: Decimal) -> Decimal:
    """
    Calculate total return percentage.

    Example:
        >>> calculate_total_return(Decimal("1000"), Decimal("1080"))
        Decimal('8.00')
    """
    if initial_equity == ZERO:
        return quantize(ZERO)

    return quantize(((final_equity / initial_equity) - Decimal("1")) * HUNDRED)
