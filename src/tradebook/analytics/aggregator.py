"""Performance aggregation over closed round trips.

Turns a list of matched trades into an :class:`AnalyticsSnapshot`:
win/loss counts and rates, gross profit and loss, profit factor,
per-trade averages, drawdown, streaks and profitable/losing days.

An empty list yields the all-zero snapshot; callers can render
"no data yet" without catching anything.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable

from tradebook.core.models import MatchedTrade

from .series import chronological, daily_pnl, drawdown_stats, streak_stats
from .snapshot import PROFIT_FACTOR_INFINITE, AnalyticsSnapshot, ProfitFactor

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")


def _ratio(numerator: Decimal, denominator: int) -> Decimal:
    return numerator / denominator if denominator else _ZERO


def _profit_factor(gross_profit: Decimal, gross_loss: Decimal) -> ProfitFactor:
    if gross_loss > 0:
        return gross_profit / gross_loss
    if gross_profit > 0:
        return PROFIT_FACTOR_INFINITE
    return _ZERO


def aggregate(trades: Iterable[MatchedTrade]) -> AnalyticsSnapshot:
    """Compute the performance snapshot for *trades* (any order)."""
    ordered = chronological(trades)
    if not ordered:
        return AnalyticsSnapshot()

    profits = [t.profit for t in ordered]
    wins = [p for p in profits if p > 0]
    losses = [p for p in profits if p < 0]

    total = len(profits)
    net = sum(profits, _ZERO)
    gross_profit = sum(wins, _ZERO)
    gross_loss = abs(sum(losses, _ZERO))

    drawdown = drawdown_stats(profits)
    streaks = streak_stats(profits)
    days = daily_pnl(ordered)

    snapshot = AnalyticsSnapshot(
        total_trades=total,
        winning_trades=len(wins),
        losing_trades=len(losses),
        breakeven_trades=total - len(wins) - len(losses),
        total_net_profit_loss=net,
        gross_profit=gross_profit,
        gross_loss=gross_loss,
        win_rate=len(wins) / total * 100,
        loss_rate=len(losses) / total * 100,
        profit_factor=_profit_factor(gross_profit, gross_loss),
        avg_profit_per_win=_ratio(gross_profit, len(wins)),
        avg_loss_per_loss=_ratio(gross_loss, len(losses)),
        avg_profit_loss_per_trade=_ratio(net, total),
        max_drawdown=drawdown.max_drawdown,
        max_drawdown_percent=drawdown.max_drawdown_percent,
        avg_drawdown=drawdown.avg_drawdown,
        longest_win_streak=streaks.longest_win,
        longest_loss_streak=streaks.longest_loss,
        current_win_streak=streaks.current_win,
        current_loss_streak=streaks.current_loss,
        profitable_days=sum(1 for pnl in days.values() if pnl > 0),
        loss_days=sum(1 for pnl in days.values() if pnl < 0),
    )
    logger.debug(
        "Aggregated %d trades: net=%s win_rate=%.2f max_dd=%s",
        total, net, snapshot.win_rate, snapshot.max_drawdown,
    )
    return snapshot
