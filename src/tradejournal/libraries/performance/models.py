"""Performance analytics data models.

Pydantic models for trade facts and the statistics derived from them.
Trade records are produced by the ingestion layer; everything else is
produced by the analyzers in ``calculators.py`` and assembled by the
ReportingService.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TradeSide(str, Enum):
    """Direction of a trade."""

    LONG = "long"
    SHORT = "short"


class TradeRecord(BaseModel):
    """
    Record of a single journaled trade.

    A trade is closed once it has an exit. P&L, percent return and
    R-multiple are computed once at ingestion and are authoritative here:
    the analytics library aggregates them but never recomputes them.

    Attributes:
        trade_id: Opaque identifier
        symbol: Ticker symbol
        side: Long or short
        entry_date: Entry timestamp (already normalized to the trader's zone).
            A journal is either all naive or all tz-aware.
        exit_date: Exit timestamp, None while the trade is open
        entry_price: Entry price per unit
        exit_price: Exit price per unit, None while the trade is open
        quantity: Units traded (always positive)
        entry_fees: Fees paid on entry (default 0)
        exit_fees: Fees paid on exit (default 0)
        risk_amount: Capital the trader intended to risk (optional)
        setup_id: Strategy/setup identifier (optional)
        setup_name: Human-readable setup name (optional)
        pnl: Realized profit/loss net of fees, None while open
        pnl_percent: Realized return on capital deployed, in percent
        r_multiple: pnl / risk_amount, None when no risk amount was given
        duration_minutes: Holding period in minutes (optional)

    Example:
        >>> trade = TradeRecord(
        ...     trade_id="T001",
        ...     symbol="AAPL",
        ...     side=TradeSide.LONG,
        ...     entry_date=datetime(2024, 7, 1, 9, 30),
        ...     exit_date=datetime(2024, 7, 1, 15, 0),
        ...     entry_price=Decimal("150.00"),
        ...     exit_price=Decimal("155.00"),
        ...     quantity=Decimal("100"),
        ...     pnl=Decimal("500.00"),
        ... )
        >>> trade.is_winner
        True
    """

    model_config = ConfigDict(frozen=True)  # Immutable after ingestion

    trade_id: str
    symbol: str
    side: TradeSide
    entry_date: datetime
    exit_date: datetime | None = None
    entry_price: Decimal
    exit_price: Decimal | None = None
    quantity: Decimal
    entry_fees: Decimal = Decimal("0")
    exit_fees: Decimal = Decimal("0")
    risk_amount: Decimal | None = None
    setup_id: str | None = None
    setup_name: str | None = None

    # Derived at ingestion
    pnl: Decimal | None = None
    pnl_percent: Decimal | None = None
    r_multiple: Decimal | None = None
    duration_minutes: int | None = None

    @field_validator("side", mode="before")
    @classmethod
    def normalize_side(cls, v: Any) -> Any:
        """Accept LONG/SHORT in any case."""
        if isinstance(v, str):
            return v.lower()
        return v

    @field_validator("setup_id", "setup_name", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Treat blank setup identifiers as absent."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("entry_price", "quantity")
    @classmethod
    def validate_positive(cls, v: Decimal) -> Decimal:
        """Validate value is strictly positive."""
        if v <= 0:
            raise ValueError(f"Must be positive, got {v}")
        return v

    @field_validator("exit_price", "risk_amount")
    @classmethod
    def validate_optional_positive(cls, v: Decimal | None) -> Decimal | None:
        """Validate optional value is strictly positive when present."""
        if v is not None and v <= 0:
            raise ValueError(f"Must be positive when provided, got {v}")
        return v

    @field_validator("entry_fees", "exit_fees")
    @classmethod
    def validate_fees(cls, v: Decimal) -> Decimal:
        """Validate fees are non-negative."""
        if v < 0:
            raise ValueError(f"Fees cannot be negative, got {v}")
        return v

    @model_validator(mode="after")
    def validate_exit_consistency(self) -> "TradeRecord":
        """Exit date, exit price and pnl are present together or not at all."""
        exit_fields = (self.exit_date, self.exit_price, self.pnl)
        present = [f is not None for f in exit_fields]
        if any(present) and not all(present):
            raise ValueError(
                f"Trade {self.trade_id}: exit_date, exit_price and pnl must all be set for a closed trade "
                "and all be absent for an open trade"
            )
        if self.exit_date is not None and (self.exit_date.tzinfo is None) != (self.entry_date.tzinfo is None):
            raise ValueError(f"Trade {self.trade_id}: entry_date and exit_date must both be naive or both be aware")
        if self.exit_date is not None and self.exit_date < self.entry_date:
            raise ValueError(f"Trade {self.trade_id}: exit_date precedes entry_date")
        return self

    @property
    def is_open(self) -> bool:
        """Trade has not been exited yet."""
        return self.exit_date is None

    @property
    def realized_pnl(self) -> Decimal:
        """P&L of a closed trade (0 for an open trade)."""
        return self.pnl if self.pnl is not None else Decimal("0")

    @property
    def is_winner(self) -> bool:
        """Trade was profitable."""
        return self.realized_pnl > Decimal("0")

    @property
    def is_loser(self) -> bool:
        """Trade lost money."""
        return self.realized_pnl < Decimal("0")

    @property
    def holding_minutes(self) -> int | None:
        """Holding period in minutes, derived from the dates when not supplied."""
        if self.duration_minutes is not None:
            return self.duration_minutes
        if self.exit_date is None:
            return None
        return int((self.exit_date - self.entry_date).total_seconds() // 60)


class EquityCurvePoint(BaseModel):
    """
    Single point on the equity curve, one per closed trade.

    Used by the dashboard equity chart and the report renderer.
    """

    model_config = ConfigDict(frozen=True)

    date: datetime
    balance: Decimal
    drawdown_pct: Decimal = Field(ge=0, le=100)
    cumulative_trade_count: int
    trade_pnl: Decimal


class StreakState(BaseModel):
    """
    Win/loss streak summary.

    current_streak is signed: positive for consecutive wins, negative for
    consecutive losses, 0 when the most recent trade was flat (or no trades).
    """

    model_config = ConfigDict(frozen=True)

    current_streak: int = 0
    longest_win_streak: int = Field(default=0, ge=0)
    longest_loss_streak: int = Field(default=0, ge=0)


class BucketStat(BaseModel):
    """
    Statistics for one group of trades.

    Shared by the hourly, daily, monthly and setup breakdowns. The key is
    the hour (0-23), the day of week (0=Sunday..6=Saturday), the month
    ("YYYY-MM") or the setup identifier.
    """

    model_config = ConfigDict(frozen=True)

    key: int | str
    label: str
    trade_count: int = 0
    wins: int = 0
    losses: int = 0
    pnl: Decimal = Decimal("0")
    win_rate_pct: Decimal = Decimal("0")
    average_r_multiple: Decimal = Decimal("0")
    expectancy: Decimal = Decimal("0")
    profit_factor: Decimal = Decimal("0")


class TimeAnalysis(BaseModel):
    """Hour-of-day, day-of-week and calendar-month breakdowns."""

    model_config = ConfigDict(frozen=True)

    hourly: list[BucketStat] = Field(default_factory=list)
    daily: list[BucketStat] = Field(default_factory=list)
    monthly: list[BucketStat] = Field(default_factory=list)


class DailyPnl(BaseModel):
    """
    Realized P&L summed over one calendar day of exits.

    cumulative_pnl is the running total through this day, starting from
    the first exit day in the series.
    """

    model_config = ConfigDict(frozen=True)

    day: date
    pnl: Decimal
    cumulative_pnl: Decimal
    trade_count: int


class MetricsSummary(BaseModel):
    """
    Scalar summary statistics over closed trades.

    average_loss and largest_loss are negative (or 0) for display symmetry.
    profit_factor uses the PROFIT_FACTOR_CAP sentinel when there are wins
    but no losses.
    """

    model_config = ConfigDict(frozen=True)

    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    breakeven_trades: int = 0
    win_rate_pct: Decimal = Decimal("0")
    total_pnl: Decimal = Decimal("0")
    gross_profit: Decimal = Decimal("0")
    gross_loss: Decimal = Decimal("0")
    average_win: Decimal = Decimal("0")
    average_loss: Decimal = Decimal("0")
    largest_win: Decimal = Decimal("0")
    largest_loss: Decimal = Decimal("0")
    profit_factor: Decimal = Decimal("0")
    expectancy: Decimal = Decimal("0")
    average_r_multiple: Decimal = Decimal("0")
    average_pnl_percent: Decimal = Decimal("0")
    average_holding_minutes: Decimal | None = None
    best_day: DailyPnl | None = None
    worst_day: DailyPnl | None = None
