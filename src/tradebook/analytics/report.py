"""Snapshot + charts + summary for one trade list.

The aggregator and the chart builder only read the trade tuple, so they
run side by side in worker threads.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Iterable

from tradebook.core.models import MatchedTrade

from .aggregator import aggregate
from .charts import DEFAULT_BIN_COUNT, DEFAULT_TOP_SYMBOLS, ChartBundle, build_charts
from .filters import AnalyticsSummary, summarize
from .snapshot import AnalyticsSnapshot


@dataclass
class AnalyticsReport:
    snapshot: AnalyticsSnapshot = field(default_factory=AnalyticsSnapshot)
    charts: ChartBundle = field(default_factory=ChartBundle)
    summary: AnalyticsSummary = field(default_factory=AnalyticsSummary)


async def build_report(
    trades: Iterable[MatchedTrade],
    *,
    bin_count: int = DEFAULT_BIN_COUNT,
    top_symbols: int = DEFAULT_TOP_SYMBOLS,
) -> AnalyticsReport:
    frozen = tuple(trades)
    snapshot, charts = await asyncio.gather(
        asyncio.to_thread(aggregate, frozen),
        asyncio.to_thread(
            build_charts, frozen, bin_count=bin_count, top_symbols=top_symbols,
        ),
    )
    return AnalyticsReport(snapshot=snapshot, charts=charts, summary=summarize(frozen))
