"""Derived trade fields, computed once at ingestion.

The analytics library treats pnl, pnl_percent, r_multiple and
duration_minutes as authoritative inputs. These helpers are what the
ingestion layer uses to produce them when a trade is recorded or closed.
"""

from datetime import datetime
from decimal import Decimal

from tradejournal.libraries.performance.models import TradeRecord, TradeSide


def calculate_pnl(
    side: TradeSide,
    entry_price: Decimal,
    exit_price: Decimal,
    quantity: Decimal,
    entry_fees: Decimal = Decimal("0"),
    exit_fees: Decimal = Decimal("0"),
) -> tuple[Decimal, Decimal]:
    """
    Calculate realized P&L and percent return.

    Fees reduce P&L on both sides. Percent return is measured against the
    capital deployed at entry (notional plus entry fees).

    Args:
        side: Long or short
        entry_price: Entry price per unit
        exit_price: Exit price per unit
        quantity: Units traded
        entry_fees: Fees paid on entry
        exit_fees: Fees paid on exit

    Returns:
        (pnl, pnl_percent)

    Example:
        >>> calculate_pnl(TradeSide.LONG, Decimal("100"), Decimal("110"), Decimal("10"))
        (Decimal('100'), Decimal('10.0'))
    """
    if side == TradeSide.LONG:
        gross = (exit_price - entry_price) * quantity
    else:
        gross = (entry_price - exit_price) * quantity

    pnl = gross - entry_fees - exit_fees
    investment = entry_price * quantity + entry_fees
    pnl_percent = pnl / investment * Decimal("100") if investment != 0 else Decimal("0")

    return pnl, pnl_percent


def calculate_r_multiple(pnl: Decimal, risk_amount: Decimal | None) -> Decimal | None:
    """
    P&L expressed as a multiple of the amount risked.

    Returns:
        pnl / risk_amount, or None when no (or a zero) risk amount was given
    """
    if risk_amount is None or risk_amount == 0:
        return None
    return pnl / risk_amount


def calculate_duration_minutes(entry_date: datetime, exit_date: datetime) -> int:
    """Whole minutes between entry and exit."""
    return int((exit_date - entry_date).total_seconds() // 60)


def build_trade_record(
    trade_id: str,
    symbol: str,
    side: TradeSide | str,
    entry_date: datetime,
    entry_price: Decimal,
    quantity: Decimal,
    exit_date: datetime | None = None,
    exit_price: Decimal | None = None,
    entry_fees: Decimal = Decimal("0"),
    exit_fees: Decimal = Decimal("0"),
    risk_amount: Decimal | None = None,
    setup_id: str | None = None,
    setup_name: str | None = None,
) -> TradeRecord:
    """
    Build a validated TradeRecord, deriving P&L fields for closed trades.

    A trade is closed when both exit_date and exit_price are given. For an
    open trade every derived field stays None.

    Raises:
        pydantic.ValidationError: If the trade facts are inconsistent
    """
    side = TradeSide(side.lower()) if isinstance(side, str) else side

    pnl: Decimal | None = None
    pnl_percent: Decimal | None = None
    r_multiple: Decimal | None = None
    duration_minutes: int | None = None

    if exit_date is not None and exit_price is not None:
        pnl, pnl_percent = calculate_pnl(
            side,
            Decimal(entry_price),
            Decimal(exit_price),
            Decimal(quantity),
            Decimal(entry_fees),
            Decimal(exit_fees),
        )
        r_multiple = calculate_r_multiple(pnl, risk_amount)
        duration_minutes = calculate_duration_minutes(entry_date, exit_date)

    return TradeRecord(
        trade_id=trade_id,
        symbol=symbol,
        side=side,
        entry_date=entry_date,
        exit_date=exit_date,
        entry_price=entry_price,
        exit_price=exit_price,
        quantity=quantity,
        entry_fees=entry_fees,
        exit_fees=exit_fees,
        risk_amount=risk_amount,
        setup_id=setup_id,
        setup_name=setup_name,
        pnl=pnl,
        pnl_percent=pnl_percent,
        r_multiple=r_multiple,
        duration_minutes=duration_minutes,
    )
