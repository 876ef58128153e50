"""Root conftest for all tests - shared trade fixtures."""

import itertools
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from tradejournal.libraries.performance.models import TradeRecord

# Monday
BASE_ENTRY = datetime(2024, 7, 1, 9, 30)


@pytest.fixture
def make_trade():
    """
    Factory for TradeRecords with a given P&L.

    Trades created without an entry_date are spaced one day apart in
    creation order, starting the day after BASE_ENTRY, so creation order
    is chronological order. Closed trades exit two hours after entry.
    """
    counter = itertools.count(1)

    def _make(
        pnl=None,
        entry_date=None,
        *,
        trade_id=None,
        setup_id=None,
        setup_name=None,
        r_multiple=None,
        risk_amount=None,
        pnl_percent=None,
        duration_minutes=None,
        is_open=False,
    ):
        n = next(counter)
        entry = entry_date or BASE_ENTRY + timedelta(days=n)
        closed = not is_open
        return TradeRecord(
            trade_id=trade_id or f"T{n:03d}",
            symbol="AAPL",
            side="long",
            entry_date=entry,
            exit_date=entry + timedelta(hours=2) if closed else None,
            entry_price=Decimal("100"),
            exit_price=Decimal("100") if closed else None,
            quantity=Decimal("10"),
            risk_amount=Decimal(str(risk_amount)) if risk_amount is not None else None,
            setup_id=setup_id,
            setup_name=setup_name,
            pnl=Decimal(str(pnl)) if closed else None,
            pnl_percent=Decimal(str(pnl_percent)) if pnl_percent is not None else None,
            r_multiple=Decimal(str(r_multiple)) if r_multiple is not None else None,
            duration_minutes=duration_minutes,
        )

    return _make


@pytest.fixture
def make_trades(make_trade):
    """Build closed trades from a list of P&L values, in chronological order."""

    def _make(pnls, **kwargs):
        return [make_trade(pnl, **kwargs) for pnl in pnls]

    return _make
