"""Date-range and look-back filtering of closed trades."""

from __future__ import annotations

import calendar
import datetime as dt
from dataclasses import dataclass
from typing import Iterable

from tradebook.core.enums import Period
from tradebook.core.models import MatchedTrade

from .series import chronological


def months_before(day: dt.date, months: int) -> dt.date:
    """Same calendar day *months* earlier, clamped to the month's length."""
    total = day.year * 12 + (day.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    last = calendar.monthrange(year, month)[1]
    return dt.date(year, month, min(day.day, last))


def filter_trades(
    trades: Iterable[MatchedTrade],
    *,
    period: Period | None = None,
    start: dt.date | None = None,
    end: dt.date | None = None,
    today: dt.date | None = None,
) -> list[MatchedTrade]:
    """Keep the trades realized inside the requested window.

    An explicit ``start``/``end`` pair wins over ``period``; both bounds
    are inclusive.  A period keeps trades sold on or after the same day
    N months before *today*.
    """
    if start is not None and end is not None:
        return [t for t in trades if start <= t.sell_date <= end]

    if period is not None and period.months is not None:
        cutoff = months_before(today or dt.date.today(), period.months)
        return [t for t in trades if t.sell_date >= cutoff]

    return list(trades)


@dataclass(frozen=True)
class AnalyticsSummary:
    total_trades: int = 0
    start: dt.date | None = None  # First sell date
    end: dt.date | None = None    # Last sell date


def summarize(trades: Iterable[MatchedTrade]) -> AnalyticsSummary:
    ordered = chronological(trades)
    if not ordered:
        return AnalyticsSummary()
    return AnalyticsSummary(
        total_trades=len(ordered),
        start=ordered[0].sell_date,
        end=ordered[-1].sell_date,
    )
