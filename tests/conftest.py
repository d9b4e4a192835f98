"""Shared fixtures for the tradebook test suite."""

from __future__ import annotations

import logging
from datetime import date, time
from decimal import Decimal

import pytest
import structlog

from tradebook.core.enums import PositionSide, Side
from tradebook.core.models import MatchedTrade, OpenPosition, RawExecution
from tradebook.storage.memory import MemoryStore


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _restore_logging():
    """Undo handlers and structlog config installed by setup_logging."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in [h for h in root.handlers if h not in handlers]:
        root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


# ---------------------------------------------------------------------------
# Executions
# ---------------------------------------------------------------------------

@pytest.fixture
def make_execution():
    """Factory for :class:`RawExecution` with AAPL defaults."""

    def _make(
        external_id: str,
        side: str,
        quantity: int,
        price: str | Decimal,
        *,
        symbol: str = "AAPL",
        commission: str | Decimal = "0",
        day: date = date(2024, 1, 2),
        clock: time | None = None,
    ) -> RawExecution:
        return RawExecution(
            symbol=symbol,
            side=Side(side),
            quantity=quantity,
            price=Decimal(str(price)),
            commission=Decimal(str(commission)),
            date=day,
            time=clock,
            external_id=external_id,
        )

    return _make


@pytest.fixture
def csv_rows():
    """Loader-style rows as they come out of a CSV file."""
    return [
        {"symbol": "aapl", "type": "BUY", "quantity": "100", "price": "10",
         "commission": "1.00", "date": "2024-01-02", "time": "09:30:00", "trade_id": "B1"},
        {"symbol": "AAPL", "type": "buy", "quantity": "50", "price": "12",
         "commission": "", "date": "2024-01-02", "time": "10:00:00", "trade_id": "B2"},
        {"symbol": "AAPL", "type": "sell", "quantity": "120", "price": "15",
         "commission": "1.20", "date": "2024-01-03", "time": "", "trade_id": "S1"},
    ]


# ---------------------------------------------------------------------------
# Matched trades
# ---------------------------------------------------------------------------

@pytest.fixture
def make_trade():
    """Factory for a long :class:`MatchedTrade` with a given net profit."""
    counter = {"n": 0}

    def _make(
        profit: str | Decimal | int,
        *,
        symbol: str = "AAPL",
        sell_date: date = date(2024, 1, 2),
        sell_time: time | None = time(10, 0),
        trade_id: str | None = None,
    ) -> MatchedTrade:
        counter["n"] += 1
        n = counter["n"]
        return MatchedTrade(
            trade_id=trade_id or f"t{n:04d}",
            symbol=symbol,
            direction=PositionSide.LONG,
            quantity=1,
            buy_date=sell_date,
            buy_time=time(9, 30),
            sell_date=sell_date,
            sell_time=sell_time,
            buy_price=Decimal("100"),
            sell_price=Decimal("100") + Decimal(str(profit)),
            profit=Decimal(str(profit)),
            buy_execution_id=f"b{n}",
            sell_execution_id=f"s{n}",
        )

    return _make


@pytest.fixture
def make_position():
    def _make(
        origin_id: str,
        side: PositionSide,
        quantity: int,
        price: str = "10",
        *,
        symbol: str = "AAPL",
        commission: str = "0",
        day: date = date(2024, 1, 2),
        clock: time | None = None,
    ) -> OpenPosition:
        return OpenPosition(
            symbol=symbol,
            side=side,
            remaining_quantity=quantity,
            price=Decimal(price),
            commission=Decimal(commission),
            date=day,
            time=clock,
            origin_id=origin_id,
        )

    return _make


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------

@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()
