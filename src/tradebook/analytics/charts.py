"""Chart-ready series built from closed round trips.

Produces the equity curve, daily P&L bars, win/loss split, profit
histogram, hour-of-day and day-of-week seasonality and the per-symbol
ranking.  Like the aggregator, this is a pure function of the trade
list and returns empty series (never raises) when there are no trades.

Usage::

    bundle = build_charts(trades, bin_count=20, top_symbols=5)
    for point in bundle.equity_curve:
        print(point.date, point.cumulative_profit)
"""

from __future__ import annotations

import datetime as dt
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Iterable, Sequence

from tradebook.core.enums import PnLSign
from tradebook.core.models import MatchedTrade

from .series import chronological, daily_pnl

_ZERO = Decimal("0")

# 0=Sunday .. 6=Saturday
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

DEFAULT_BIN_COUNT = 10
DEFAULT_TOP_SYMBOLS = 10


# ---------------------------------------------------------------------------
# Series points
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EquityPoint:
    date: dt.date
    cumulative_profit: Decimal
    trade_profit: Decimal


@dataclass(frozen=True)
class DailyPnL:
    date: dt.date
    pnl: Decimal
    sign: PnLSign


@dataclass(frozen=True)
class WinLossDistribution:
    winners: int = 0
    losers: int = 0

    @property
    def total(self) -> int:
        return self.winners + self.losers


@dataclass(frozen=True)
class HistogramBin:
    index: int
    lower: Decimal
    upper: Decimal
    count: int

    @property
    def label(self) -> str:
        return f"{self.lower:.2f} to {self.upper:.2f}"


@dataclass(frozen=True)
class BucketPerformance:
    """P&L of the trades realized in one hour or weekday bucket."""

    bucket: int
    label: str
    total_pnl: Decimal
    avg_pnl: Decimal
    trade_count: int


@dataclass(frozen=True)
class SymbolPerformance:
    symbol: str
    total_pnl: Decimal
    avg_pnl: Decimal
    trade_count: int


@dataclass
class ChartBundle:
    equity_curve: list[EquityPoint] = field(default_factory=list)
    daily_pnl: list[DailyPnL] = field(default_factory=list)
    win_loss: WinLossDistribution = field(default_factory=WinLossDistribution)
    histogram: list[HistogramBin] = field(default_factory=list)
    hourly: list[BucketPerformance] = field(default_factory=list)
    weekly: list[BucketPerformance] = field(default_factory=list)
    symbols: list[SymbolPerformance] = field(default_factory=list)      # Top N
    all_symbols: list[SymbolPerformance] = field(default_factory=list)  # Uncapped


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def equity_curve(trades: Sequence[MatchedTrade]) -> list[EquityPoint]:
    """One point per trade; the same date may repeat."""
    points: list[EquityPoint] = []
    running = _ZERO
    for trade in trades:
        running += trade.profit
        points.append(EquityPoint(trade.sell_date, running, trade.profit))
    return points


def _sign(pnl: Decimal) -> PnLSign:
    if pnl > 0:
        return PnLSign.POSITIVE
    if pnl < 0:
        return PnLSign.NEGATIVE
    return PnLSign.FLAT


def daily_series(trades: Sequence[MatchedTrade]) -> list[DailyPnL]:
    return [DailyPnL(day, pnl, _sign(pnl)) for day, pnl in daily_pnl(trades).items()]


def win_loss(trades: Sequence[MatchedTrade]) -> WinLossDistribution:
    return WinLossDistribution(
        winners=sum(1 for t in trades if t.profit > 0),
        losers=sum(1 for t in trades if t.profit < 0),
    )


def histogram(values: Sequence[Decimal], bin_count: int = DEFAULT_BIN_COUNT) -> list[HistogramBin]:
    """Fixed-count histogram over ``[min(values), max(values)]``.

    A value sitting exactly on the top edge belongs to the last bin.
    When every value is equal the width is zero and all of them land in
    the first bin.
    """
    if bin_count < 1:
        raise ValueError(f"bin_count must be >= 1, got {bin_count}")
    if not values:
        return []

    low, high = min(values), max(values)
    width = (high - low) / bin_count
    counts = [0] * bin_count
    for value in values:
        idx = 0 if width == 0 else min(int((value - low) / width), bin_count - 1)
        counts[idx] += 1

    return [
        HistogramBin(
            index=i,
            lower=low + i * width,
            upper=low + (i + 1) * width,
            count=counts[i],
        )
        for i in range(bin_count)
    ]


def _bucketed(
    trades: Iterable[MatchedTrade],
    key: Callable[[MatchedTrade], int],
    label: Callable[[int], str],
) -> list[BucketPerformance]:
    totals: dict[int, Decimal] = defaultdict(lambda: _ZERO)
    counts: dict[int, int] = defaultdict(int)
    for trade in trades:
        bucket = key(trade)
        totals[bucket] += trade.profit
        counts[bucket] += 1

    # Empty buckets are omitted: the average of nothing is undefined
    return [
        BucketPerformance(
            bucket=b,
            label=label(b),
            total_pnl=totals[b],
            avg_pnl=totals[b] / counts[b],
            trade_count=counts[b],
        )
        for b in sorted(totals)
    ]


def hourly_performance(trades: Iterable[MatchedTrade]) -> list[BucketPerformance]:
    return _bucketed(trades, lambda t: t.realized_at.hour, lambda h: f"{h}:00")


def weekly_performance(trades: Iterable[MatchedTrade]) -> list[BucketPerformance]:
    # datetime.weekday() is Monday=0; shift to Sunday=0
    return _bucketed(
        trades,
        lambda t: (t.realized_at.weekday() + 1) % 7,
        lambda d: DAY_NAMES[d],
    )


def symbol_performance(trades: Iterable[MatchedTrade]) -> list[SymbolPerformance]:
    """Every symbol, best total P&L first."""
    totals: dict[str, Decimal] = defaultdict(lambda: _ZERO)
    counts: dict[str, int] = defaultdict(int)
    for trade in trades:
        totals[trade.symbol] += trade.profit
        counts[trade.symbol] += 1

    ranked = sorted(totals, key=lambda s: (-totals[s], s))
    return [
        SymbolPerformance(
            symbol=s,
            total_pnl=totals[s],
            avg_pnl=totals[s] / counts[s],
            trade_count=counts[s],
        )
        for s in ranked
    ]


def build_charts(
    trades: Iterable[MatchedTrade],
    *,
    bin_count: int = DEFAULT_BIN_COUNT,
    top_symbols: int = DEFAULT_TOP_SYMBOLS,
) -> ChartBundle:
    """Build every chart series for *trades* (any order)."""
    ordered = chronological(trades)
    if not ordered:
        return ChartBundle()

    ranking = symbol_performance(ordered)
    return ChartBundle(
        equity_curve=equity_curve(ordered),
        daily_pnl=daily_series(ordered),
        win_loss=win_loss(ordered),
        histogram=histogram([t.profit for t in ordered], bin_count),
        hourly=hourly_performance(ordered),
        weekly=weekly_performance(ordered),
        symbols=ranking[:top_symbols],
        all_symbols=ranking,
    )
