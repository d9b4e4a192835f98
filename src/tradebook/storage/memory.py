"""In-process journal store.

Implements the same loader and sink boundaries as
:class:`~tradebook.storage.repos.TradebookRepo` with plain dicts.  Used
by the CLI for one-off files and by the tests.  Writes build the new
state first and swap it in last, so a failed run leaves nothing
half-written.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Sequence

from tradebook.analytics.snapshot import AnalyticsSnapshot
from tradebook.core.enums import ImportMode
from tradebook.core.models import MatchedTrade, OpenPosition, RawExecution
from tradebook.matching.matcher import MatchResult

logger = logging.getLogger(__name__)


class MemoryStore:
    """Per-user journal state held in memory."""

    def __init__(self) -> None:
        self._executions: dict[str, dict[str, RawExecution]] = defaultdict(dict)
        self._trades: dict[str, dict[str, MatchedTrade]] = defaultdict(dict)
        self._positions: dict[str, list[OpenPosition]] = defaultdict(list)
        self._snapshots: dict[str, AnalyticsSnapshot] = {}

    # -- Loader ---------------------------------------------------------------

    async def load_executions(self, user_id: str) -> list[RawExecution]:
        return sorted(self._executions[user_id].values(), key=lambda e: e.sort_key)

    async def load_open_positions(self, user_id: str) -> list[OpenPosition]:
        return list(self._positions[user_id])

    async def load_matched_trades(self, user_id: str) -> list[MatchedTrade]:
        return sorted(
            self._trades[user_id].values(),
            key=lambda t: (t.realized_at, t.trade_id),
        )

    async def load_processed_execution_ids(self, user_id: str) -> set[str]:
        ids = set(self._executions[user_id])
        ids.update(p.origin_id for p in self._positions[user_id])
        return ids

    async def load_snapshot(self, user_id: str) -> AnalyticsSnapshot | None:
        return self._snapshots.get(user_id)

    # -- Sink -----------------------------------------------------------------

    async def store_executions(
        self, user_id: str, executions: Sequence[RawExecution],
    ) -> int:
        stored = self._executions[user_id]
        fresh = [e for e in executions if e.external_id not in stored]
        for execution in fresh:
            stored[execution.external_id] = execution
        return len(fresh)

    async def replace_results(
        self, user_id: str, result: MatchResult, *, mode: ImportMode,
    ) -> None:
        if mode is ImportMode.FULL:
            trades: dict[str, MatchedTrade] = {}
            positions: list[OpenPosition] = []
        else:
            touched = set(result.symbols)
            trades = dict(self._trades[user_id])
            positions = [p for p in self._positions[user_id] if p.symbol not in touched]

        trades.update((t.trade_id, t) for t in result.matched)
        positions.extend(result.open_positions)

        self._trades[user_id] = trades
        self._positions[user_id] = positions
        logger.debug(
            "Replaced results for %s (%s): %d trades, %d open positions",
            user_id, mode.value, len(trades), len(positions),
        )

    async def save_snapshot(self, user_id: str, snapshot: AnalyticsSnapshot) -> None:
        self._snapshots[user_id] = snapshot
