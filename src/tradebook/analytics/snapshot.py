"""Scalar performance snapshot for one user's closed trades."""

from __future__ import annotations

from decimal import Decimal
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict

# Profit factor when there are winners but no losers.  A string sentinel
# keeps the value finite and JSON-safe all the way to storage.
PROFIT_FACTOR_INFINITE = "infinite"

ProfitFactor = Union[Literal["infinite"], Decimal]

_ZERO = Decimal("0")


class AnalyticsSnapshot(BaseModel):
    """Aggregate metrics over realized round trips.

    Money fields are :class:`~decimal.Decimal`; rates and percentages
    are floats in ``[0, 100]`` (drawdown percent may exceed 100 when the
    equity curve falls below zero).
    """

    model_config = ConfigDict(frozen=True)

    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    breakeven_trades: int = 0

    total_net_profit_loss: Decimal = _ZERO
    gross_profit: Decimal = _ZERO
    gross_loss: Decimal = _ZERO  # Absolute value, never negative

    win_rate: float = 0.0
    loss_rate: float = 0.0
    profit_factor: ProfitFactor = _ZERO

    avg_profit_per_win: Decimal = _ZERO
    avg_loss_per_loss: Decimal = _ZERO
    avg_profit_loss_per_trade: Decimal = _ZERO

    max_drawdown: Decimal = _ZERO
    max_drawdown_percent: float = 0.0
    avg_drawdown: Decimal = _ZERO

    longest_win_streak: int = 0
    longest_loss_streak: int = 0
    current_win_streak: int = 0
    current_loss_streak: int = 0

    profitable_days: int = 0
    loss_days: int = 0

    @property
    def profit_factor_unbounded(self) -> bool:
        return self.profit_factor == PROFIT_FACTOR_INFINITE

    @property
    def is_empty(self) -> bool:
        return self.total_trades == 0
