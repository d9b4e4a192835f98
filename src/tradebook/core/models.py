"""Core domain records used across the trade journal.

These are the canonical "truth models" exchanged between the matcher,
the analytics builders and the storage adapters.  All of them are
immutable once built; the only mutable entity, the matcher's ``Lot``,
lives in :mod:`tradebook.matching.lots`.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from .enums import PositionSide, Side, TradeOutcome


def combine(day: dt.date, clock: dt.time | None) -> dt.datetime:
    """Join a calendar date and an optional time-of-day (midnight default)."""
    return dt.datetime.combine(day, clock or dt.time.min)


# ---------------------------------------------------------------------------
# Raw execution (one fill)
# ---------------------------------------------------------------------------

class RawExecution(BaseModel):
    """One buy or sell fill, already normalized by the upstream parser."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    side: Side
    quantity: int
    price: Decimal
    commission: Decimal = Decimal("0")
    date: dt.date
    time: dt.time | None = None
    external_id: str

    @property
    def timestamp(self) -> dt.datetime:
        return combine(self.date, self.time)

    @property
    def sort_key(self) -> tuple[dt.date, dt.time, str]:
        """Authoritative processing order; ``external_id`` breaks ties."""
        return (self.date, self.time or dt.time.min, self.external_id)


# ---------------------------------------------------------------------------
# Closed round trip
# ---------------------------------------------------------------------------

class MatchedTrade(BaseModel):
    """A BUY lot consumed against a SELL lot of the same symbol.

    ``buy_*`` fields always describe the BUY-side execution and
    ``sell_*`` fields the SELL-side one, whichever came first, so the
    sign of ``profit`` is consistent for long and short round trips.
    """

    model_config = ConfigDict(frozen=True)

    trade_id: str
    symbol: str
    direction: PositionSide
    quantity: int
    buy_date: dt.date
    buy_time: dt.time | None = None
    sell_date: dt.date
    sell_time: dt.time | None = None
    buy_price: Decimal
    sell_price: Decimal
    commission: Decimal = Decimal("0")
    profit: Decimal
    buy_execution_id: str
    sell_execution_id: str
    duration_minutes: int = 0  # sell timestamp - buy timestamp

    @property
    def buy_timestamp(self) -> dt.datetime:
        return combine(self.buy_date, self.buy_time)

    @property
    def sell_timestamp(self) -> dt.datetime:
        return combine(self.sell_date, self.sell_time)

    @property
    def realized_at(self) -> dt.datetime:
        """Timestamp used for chronological analytics (the sell side)."""
        return self.sell_timestamp

    @property
    def gross_profit(self) -> Decimal:
        """Price P&L before commission."""
        return self.quantity * (self.sell_price - self.buy_price)

    @property
    def hold_minutes(self) -> int:
        """Absolute time the position was held, in minutes."""
        return abs(self.duration_minutes)

    @property
    def outcome(self) -> TradeOutcome:
        if self.profit > 0:
            return TradeOutcome.WIN
        if self.profit < 0:
            return TradeOutcome.LOSS
        return TradeOutcome.BREAKEVEN


# ---------------------------------------------------------------------------
# Open position
# ---------------------------------------------------------------------------

class OpenPosition(BaseModel):
    """Residual quantity of a lot that found no opposing fill."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    side: PositionSide
    remaining_quantity: int
    price: Decimal
    commission: Decimal = Decimal("0")
    date: dt.date
    time: dt.time | None = None
    origin_id: str

    @property
    def execution_side(self) -> Side:
        """Side of the execution the position descends from."""
        return Side.BUY if self.side is PositionSide.LONG else Side.SELL

    @property
    def cost_basis(self) -> Decimal:
        return self.remaining_quantity * self.price
