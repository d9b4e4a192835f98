"""Import orchestration and application bootstrap.

:class:`TradebookService` wires parsing, validation, matching,
persistence and analytics for one user's upload:

    rows -> parse -> validate -> match -> store executions
         -> replace results -> re-aggregate -> save snapshot

Matching runs before anything is written, so a run that trips a
consistency check leaves the store untouched.  With the SQL store all
writes of one run share a session and commit together.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Mapping

from .analytics.aggregator import aggregate
from .analytics.filters import filter_trades
from .analytics.report import AnalyticsReport, build_report
from .core.config import Settings, load_settings
from .core.enums import ImportMode, Period
from .core.errors import ConsistencyError
from .core.ids import new_id
from .core.interfaces import IExecutionLoader, IResultSink
from .core.models import RawExecution
from .matching.matcher import ExecutionMatcher, MatchResult
from .matching.validation import Rejection, parse_rows, validate_executions
from .observability.logger import bind_run_context, clear_run_context, setup_logging
from .observability.metrics import RUN_DURATION, record_failure, record_run, start_metrics_server

logger = logging.getLogger(__name__)


@dataclass
class ImportSummary:
    """What one import run did."""

    run_id: str
    total_rows: int = 0
    accepted: int = 0
    rejected: list[Rejection] = field(default_factory=list)
    total_matched: int = 0
    total_unmatched: int = 0
    net_profit: Decimal = Decimal("0")
    symbols: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "total_rows": self.total_rows,
            "accepted": self.accepted,
            "rejected": [r.to_dict() for r in self.rejected],
            "total_matched": self.total_matched,
            "total_unmatched": self.total_unmatched,
            "net_profit": str(self.net_profit),
            "symbols": list(self.symbols),
        }


class TradebookService:
    """Runs imports and reports against a loader/sink pair.

    Parameters
    ----------
    loader : IExecutionLoader
        Source of the user's persisted executions, trades and positions.
    sink : IResultSink
        Destination for the run's output.  Usually the same object.
    settings : Settings | None
        Matching and analytics configuration.  Defaults apply when omitted.
    """

    def __init__(
        self,
        loader: IExecutionLoader,
        sink: IResultSink,
        settings: Settings | None = None,
    ) -> None:
        self._loader = loader
        self._sink = sink
        self._settings = settings or Settings()
        self._matcher = ExecutionMatcher(
            commission_quantum=self._settings.matching.commission_quantum,
        )

    async def import_executions(
        self,
        user_id: str,
        rows: Iterable[Mapping[str, Any]],
        *,
        mode: ImportMode = ImportMode.INCREMENTAL,
    ) -> ImportSummary:
        """Ingest one batch of execution rows for *user_id*.

        ``FULL`` re-matches every stored execution plus the batch from a
        flat start.  ``INCREMENTAL`` matches only the batch, seeded with
        the open positions left by earlier runs; rows whose IDs an
        earlier run already consumed are rejected.

        Raises:
            ConsistencyError: A matching invariant broke.  Nothing from
                the run is written.
        """
        run_id = new_id()
        bind_run_context(user_id=user_id, run_id=run_id, mode=mode.value)
        try:
            with RUN_DURATION.labels(mode=mode.value).time():
                return await self._run_import(run_id, user_id, list(rows), mode)
        except ConsistencyError as exc:
            logger.error("Import aborted: %s", exc)
            record_failure(exc)
            raise
        finally:
            clear_run_context()

    async def _run_import(
        self,
        run_id: str,
        user_id: str,
        rows: list[Mapping[str, Any]],
        mode: ImportMode,
    ) -> ImportSummary:
        parsed, rejections = parse_rows(rows)

        if mode is ImportMode.FULL:
            valid, invalid = validate_executions(parsed)
            stored = await self._loader.load_executions(user_id)
            result = self._matcher.match(_merge(stored, valid))
        else:
            known = await self._loader.load_processed_execution_ids(user_id)
            valid, invalid = validate_executions(parsed, known_ids=known)
            seeds = await self._loader.load_open_positions(user_id)
            result = self._matcher.match(valid, open_positions=seeds)
        rejections.extend(invalid)

        await self._sink.store_executions(user_id, valid)
        await self._sink.replace_results(user_id, result, mode=mode)
        await self._refresh_snapshot(user_id)

        record_run(
            accepted=len(valid),
            rejected_reasons=[r.reason.value for r in rejections],
            matched=result.total_matched,
        )
        summary = _summarize(run_id, len(rows), valid, rejections, result)
        logger.info(
            "Import complete: %d rows, %d accepted, %d rejected, %d matched, "
            "%d open, net profit %s",
            summary.total_rows, summary.accepted, len(summary.rejected),
            summary.total_matched, summary.total_unmatched, summary.net_profit,
        )
        return summary

    async def _refresh_snapshot(self, user_id: str) -> None:
        trades = await self._loader.load_matched_trades(user_id)
        await self._sink.save_snapshot(user_id, aggregate(trades))

    async def report(
        self,
        user_id: str,
        *,
        period: Period | None = None,
        start: dt.date | None = None,
        end: dt.date | None = None,
        today: dt.date | None = None,
    ) -> AnalyticsReport:
        """Snapshot, charts and date-range summary over the user's trades."""
        analytics = self._settings.analytics
        trades = await self._loader.load_matched_trades(user_id)
        selected = filter_trades(
            trades,
            period=period or analytics.default_period,
            start=start,
            end=end,
            today=today,
        )
        return await build_report(
            selected,
            bin_count=analytics.histogram_bins,
            top_symbols=analytics.top_symbols,
        )


def _merge(
    stored: list[RawExecution], batch: list[RawExecution],
) -> list[RawExecution]:
    """Stored executions plus the batch rows not stored yet."""
    merged = {e.external_id: e for e in stored}
    for execution in batch:
        merged.setdefault(execution.external_id, execution)
    return list(merged.values())


def _summarize(
    run_id: str,
    total_rows: int,
    valid: list[RawExecution],
    rejections: list[Rejection],
    result: MatchResult,
) -> ImportSummary:
    return ImportSummary(
        run_id=run_id,
        total_rows=total_rows,
        accepted=len(valid),
        rejected=rejections,
        total_matched=result.total_matched,
        total_unmatched=result.total_unmatched,
        net_profit=result.net_profit,
        symbols=result.symbols,
    )


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------

def _setup_observability(settings: Settings) -> None:
    obs = settings.observability
    setup_logging(obs.log_level, obs.log_format)
    if obs.metrics_enabled:
        start_metrics_server(obs.metrics_port)


async def run_import(
    user_id: str,
    rows: Iterable[Mapping[str, Any]],
    *,
    mode: ImportMode = ImportMode.INCREMENTAL,
    config_path: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> ImportSummary:
    """Load config, open the database and import one batch atomically."""
    from .storage.connection import dispose, get_session, init_engine
    from .storage.repos import TradebookRepo

    settings = load_settings(config_path=config_path, overrides=overrides)
    _setup_observability(settings)

    await init_engine(settings.database_url, create_tables=settings.create_tables)
    try:
        async with get_session() as session:
            repo = TradebookRepo(session)
            service = TradebookService(repo, repo, settings)
            return await service.import_executions(user_id, rows, mode=mode)
    finally:
        await dispose()
