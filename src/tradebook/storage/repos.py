"""Repository for async journal persistence.

:class:`TradebookRepo` implements both storage boundaries
(:class:`~tradebook.core.interfaces.IExecutionLoader` and
:class:`~tradebook.core.interfaces.IResultSink`) on top of one
:class:`AsyncSession` obtained from
:func:`tradebook.storage.connection.get_session`.  Everything written
through one session commits or rolls back together.

Conversion helpers translate between core domain models
(:mod:`tradebook.core.models`) and ORM records.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from decimal import Decimal
from typing import Iterator, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tradebook.analytics.snapshot import AnalyticsSnapshot
from tradebook.core.enums import ImportMode, PositionSide, Side
from tradebook.core.errors import PersistenceError
from tradebook.core.models import MatchedTrade, OpenPosition, RawExecution
from tradebook.matching.matcher import MatchResult

from .models import (
    AnalyticsSnapshotRecord,
    ExecutionRecord,
    MatchedTradeRecord,
    OpenPositionRecord,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Conversion helpers
# ---------------------------------------------------------------------------

def _execution_to_record(user_id: str, execution: RawExecution) -> ExecutionRecord:
    return ExecutionRecord(
        user_id=user_id,
        external_id=execution.external_id,
        symbol=execution.symbol,
        side=execution.side.value,
        quantity=execution.quantity,
        price=execution.price,
        commission=execution.commission,
        trade_date=execution.date,
        trade_time=execution.time,
    )


def _record_to_execution(record: ExecutionRecord) -> RawExecution:
    return RawExecution(
        symbol=record.symbol,
        side=Side(record.side),
        quantity=record.quantity,
        price=record.price,
        commission=record.commission,
        date=record.trade_date,
        time=record.trade_time,
        external_id=record.external_id,
    )


def _trade_to_record(user_id: str, trade: MatchedTrade) -> MatchedTradeRecord:
    return MatchedTradeRecord(
        user_id=user_id,
        trade_id=trade.trade_id,
        symbol=trade.symbol,
        direction=trade.direction.value,
        quantity=trade.quantity,
        buy_date=trade.buy_date,
        buy_time=trade.buy_time,
        sell_date=trade.sell_date,
        sell_time=trade.sell_time,
        buy_price=trade.buy_price,
        sell_price=trade.sell_price,
        commission=trade.commission,
        profit=trade.profit,
        buy_execution_id=trade.buy_execution_id,
        sell_execution_id=trade.sell_execution_id,
        duration_minutes=trade.duration_minutes,
    )


def _record_to_trade(record: MatchedTradeRecord) -> MatchedTrade:
    return MatchedTrade(
        trade_id=record.trade_id,
        symbol=record.symbol,
        direction=PositionSide(record.direction),
        quantity=record.quantity,
        buy_date=record.buy_date,
        buy_time=record.buy_time,
        sell_date=record.sell_date,
        sell_time=record.sell_time,
        buy_price=record.buy_price,
        sell_price=record.sell_price,
        commission=record.commission,
        profit=record.profit,
        buy_execution_id=record.buy_execution_id,
        sell_execution_id=record.sell_execution_id,
        duration_minutes=record.duration_minutes,
    )


def _position_to_record(user_id: str, position: OpenPosition) -> OpenPositionRecord:
    return OpenPositionRecord(
        user_id=user_id,
        symbol=position.symbol,
        side=position.side.value,
        remaining_quantity=position.remaining_quantity,
        price=position.price,
        commission=position.commission,
        position_date=position.date,
        position_time=position.time,
        origin_id=position.origin_id,
    )


def _record_to_position(record: OpenPositionRecord) -> OpenPosition:
    return OpenPosition(
        symbol=record.symbol,
        side=PositionSide(record.side),
        remaining_quantity=record.remaining_quantity,
        price=record.price,
        commission=record.commission,
        date=record.position_date,
        time=record.position_time,
        origin_id=record.origin_id,
    )


def _rate(value: float) -> Decimal:
    return Decimal(str(round(value, 4)))


@contextmanager
def _db_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Database error during %s: %s", operation, exc)
        raise PersistenceError(f"{operation} failed: {exc}") from exc


# ---------------------------------------------------------------------------
# TradebookRepo
# ---------------------------------------------------------------------------

class TradebookRepo:
    """SQL-backed execution loader and result sink for one session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # -- Loader ---------------------------------------------------------------

    async def load_executions(self, user_id: str) -> list[RawExecution]:
        """All stored executions for *user_id* in processing order."""
        stmt = (
            select(ExecutionRecord)
            .where(ExecutionRecord.user_id == user_id)
            .order_by(
                ExecutionRecord.trade_date,
                ExecutionRecord.trade_time,
                ExecutionRecord.external_id,
            )
        )
        with _db_errors("load_executions"):
            result = await self._session.execute(stmt)
            records = result.scalars().all()
        return sorted((_record_to_execution(r) for r in records), key=lambda e: e.sort_key)

    async def load_open_positions(self, user_id: str) -> list[OpenPosition]:
        stmt = (
            select(OpenPositionRecord)
            .where(OpenPositionRecord.user_id == user_id)
            .order_by(
                OpenPositionRecord.symbol,
                OpenPositionRecord.position_date,
                OpenPositionRecord.position_time,
                OpenPositionRecord.origin_id,
            )
        )
        with _db_errors("load_open_positions"):
            result = await self._session.execute(stmt)
            return [_record_to_position(r) for r in result.scalars().all()]

    async def load_matched_trades(self, user_id: str) -> list[MatchedTrade]:
        stmt = (
            select(MatchedTradeRecord)
            .where(MatchedTradeRecord.user_id == user_id)
            .order_by(
                MatchedTradeRecord.sell_date,
                MatchedTradeRecord.sell_time,
                MatchedTradeRecord.trade_id,
            )
        )
        with _db_errors("load_matched_trades"):
            result = await self._session.execute(stmt)
            return [_record_to_trade(r) for r in result.scalars().all()]

    async def load_processed_execution_ids(self, user_id: str) -> set[str]:
        """External IDs of every execution a previous run consumed."""
        with _db_errors("load_processed_execution_ids"):
            stored = await self._session.execute(
                select(ExecutionRecord.external_id).where(ExecutionRecord.user_id == user_id)
            )
            carried = await self._session.execute(
                select(OpenPositionRecord.origin_id).where(OpenPositionRecord.user_id == user_id)
            )
        return set(stored.scalars().all()) | set(carried.scalars().all())

    async def load_snapshot(self, user_id: str) -> AnalyticsSnapshot | None:
        stmt = select(AnalyticsSnapshotRecord).where(AnalyticsSnapshotRecord.user_id == user_id)
        with _db_errors("load_snapshot"):
            result = await self._session.execute(stmt)
            record = result.scalar_one_or_none()
        if record is None:
            return None
        return AnalyticsSnapshot.model_validate(record.payload)

    # -- Sink -----------------------------------------------------------------

    async def store_executions(
        self, user_id: str, executions: Sequence[RawExecution],
    ) -> int:
        """Insert executions not stored yet.  Returns the number inserted."""
        existing = await self.load_processed_execution_ids(user_id)
        fresh = [e for e in executions if e.external_id not in existing]
        with _db_errors("store_executions"):
            self._session.add_all(_execution_to_record(user_id, e) for e in fresh)
            await self._session.flush()
        logger.debug("Stored %d of %d executions for %s", len(fresh), len(executions), user_id)
        return len(fresh)

    async def replace_results(
        self, user_id: str, result: MatchResult, *, mode: ImportMode,
    ) -> None:
        """Write a run's matched trades and open positions.

        ``FULL`` drops every previous trade and position of the user.
        ``INCREMENTAL`` drops the open positions of the symbols the run
        touched and overwrites trades that share a ``trade_id``.
        """
        trade_ids = [t.trade_id for t in result.matched]

        with _db_errors("replace_results"):
            if mode is ImportMode.FULL:
                await self._session.execute(
                    delete(MatchedTradeRecord).where(MatchedTradeRecord.user_id == user_id)
                )
                await self._session.execute(
                    delete(OpenPositionRecord).where(OpenPositionRecord.user_id == user_id)
                )
            else:
                if trade_ids:
                    await self._session.execute(
                        delete(MatchedTradeRecord).where(
                            MatchedTradeRecord.user_id == user_id,
                            MatchedTradeRecord.trade_id.in_(trade_ids),
                        )
                    )
                if result.symbols:
                    await self._session.execute(
                        delete(OpenPositionRecord).where(
                            OpenPositionRecord.user_id == user_id,
                            OpenPositionRecord.symbol.in_(result.symbols),
                        )
                    )

            self._session.add_all(_trade_to_record(user_id, t) for t in result.matched)
            self._session.add_all(
                _position_to_record(user_id, p) for p in result.open_positions
            )
            await self._session.flush()

        logger.info(
            "Replaced results for %s (%s): %d trades, %d open positions",
            user_id, mode.value, len(result.matched), len(result.open_positions),
        )

    async def save_snapshot(self, user_id: str, snapshot: AnalyticsSnapshot) -> None:
        """Insert or overwrite the user's snapshot row."""
        payload = snapshot.model_dump(mode="json")
        stmt = select(AnalyticsSnapshotRecord).where(AnalyticsSnapshotRecord.user_id == user_id)

        with _db_errors("save_snapshot"):
            result = await self._session.execute(stmt)
            existing = result.scalar_one_or_none()
            if existing is not None:
                existing.total_trades = snapshot.total_trades
                existing.total_net_profit_loss = snapshot.total_net_profit_loss
                existing.win_rate = _rate(snapshot.win_rate)
                existing.payload = payload
            else:
                self._session.add(
                    AnalyticsSnapshotRecord(
                        user_id=user_id,
                        total_trades=snapshot.total_trades,
                        total_net_profit_loss=snapshot.total_net_profit_loss,
                        win_rate=_rate(snapshot.win_rate),
                        payload=payload,
                    )
                )
            await self._session.flush()
