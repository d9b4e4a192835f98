"""Protocol interfaces for the trade journal.

The matcher and analytics builders are pure functions; everything that
touches storage goes through these two boundaries so the in-memory and
SQL implementations can be swapped without changing callers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Sequence, runtime_checkable

from .enums import ImportMode
from .models import MatchedTrade, OpenPosition, RawExecution

if TYPE_CHECKING:
    from tradebook.analytics.snapshot import AnalyticsSnapshot
    from tradebook.matching.matcher import MatchResult


@runtime_checkable
class IExecutionLoader(Protocol):
    """Reads a user's persisted journal state."""

    async def load_executions(self, user_id: str) -> list[RawExecution]: ...

    async def load_open_positions(self, user_id: str) -> list[OpenPosition]: ...

    async def load_matched_trades(self, user_id: str) -> list[MatchedTrade]: ...

    async def load_processed_execution_ids(self, user_id: str) -> set[str]: ...


@runtime_checkable
class IResultSink(Protocol):
    """Writes a run's output.

    ``replace_results`` must be all-or-nothing: readers never observe a
    half-written batch of matched trades and open positions.
    """

    async def store_executions(
        self, user_id: str, executions: Sequence[RawExecution],
    ) -> int: ...

    async def replace_results(
        self, user_id: str, result: MatchResult, *, mode: ImportMode,
    ) -> None: ...

    async def save_snapshot(
        self, user_id: str, snapshot: AnalyticsSnapshot,
    ) -> None: ...
