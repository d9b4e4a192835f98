"""Running-P&L primitives shared by the aggregator and the chart builder.

Everything here expects trades in realization order; use
:func:`chronological` to get there.
"""

from __future__ import annotations

import datetime as dt
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Sequence

from tradebook.core.models import MatchedTrade

_ZERO = Decimal("0")


def chronological(trades: Iterable[MatchedTrade]) -> list[MatchedTrade]:
    """Sort trades by sell timestamp; ``trade_id`` keeps ties stable."""
    return sorted(trades, key=lambda t: (t.realized_at, t.trade_id))


@dataclass(frozen=True)
class DrawdownStats:
    """Peak-to-trough statistics of cumulative realized P&L."""

    max_drawdown: Decimal
    avg_drawdown: Decimal
    max_drawdown_percent: float
    peak: Decimal
    drawdowns: tuple[Decimal, ...]


def drawdown_stats(profits: Sequence[Decimal]) -> DrawdownStats:
    """Compute drawdown over a chronological sequence of trade profits.

    The peak starts at zero rather than at the first trade's P&L, so a
    loss taken straight from a flat start counts as drawdown.
    """
    running = _ZERO
    peak = _ZERO
    max_dd = _ZERO
    drawdowns: list[Decimal] = []

    for profit in profits:
        running += profit
        peak = max(peak, running)
        dd = peak - running
        drawdowns.append(dd)
        max_dd = max(max_dd, dd)

    avg_dd = sum(drawdowns, _ZERO) / len(drawdowns) if drawdowns else _ZERO
    pct = float(max_dd / peak * 100) if peak > 0 else 0.0
    return DrawdownStats(
        max_drawdown=max_dd,
        avg_drawdown=avg_dd,
        max_drawdown_percent=pct,
        peak=peak,
        drawdowns=tuple(drawdowns),
    )


@dataclass(frozen=True)
class StreakStats:
    longest_win: int = 0
    longest_loss: int = 0
    current_win: int = 0
    current_loss: int = 0


def streak_stats(profits: Iterable[Decimal]) -> StreakStats:
    """Consecutive win/loss runs.  A break-even trade resets both."""
    longest_win = longest_loss = 0
    current_win = current_loss = 0

    for profit in profits:
        if profit > 0:
            current_win += 1
            current_loss = 0
            longest_win = max(longest_win, current_win)
        elif profit < 0:
            current_loss += 1
            current_win = 0
            longest_loss = max(longest_loss, current_loss)
        else:
            current_win = current_loss = 0

    return StreakStats(longest_win, longest_loss, current_win, current_loss)


def daily_pnl(trades: Iterable[MatchedTrade]) -> dict[dt.date, Decimal]:
    """Sum profit per sell date, returned in ascending date order."""
    buckets: dict[dt.date, Decimal] = defaultdict(lambda: _ZERO)
    for trade in trades:
        buckets[trade.sell_date] += trade.profit
    return dict(sorted(buckets.items()))
