"""SQLAlchemy ORM models for the trade journal database.

All tables use UUID primary keys, UTC creation timestamps and indexes
for the common query patterns (by user, by symbol, by sell date).
Column types are portable so the same models run on PostgreSQL in
production and SQLite in tests.

Tables:
    executions            Raw fills, unique per (user_id, external_id)
    matched_trades        Closed round trips, unique per (user_id, trade_id)
    open_positions        Residual lots carried to the next run
    analytics_snapshots   One row per user, overwritten on every run
"""

from __future__ import annotations

import datetime as dt
import uuid
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Time,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _new_uuid() -> uuid.UUID:
    return uuid.uuid4()


# ---------------------------------------------------------------------------
# Declarative base
# ---------------------------------------------------------------------------

class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""

    pass


# ---------------------------------------------------------------------------
# ExecutionRecord
# ---------------------------------------------------------------------------

class ExecutionRecord(Base):
    """Persisted raw execution.  Maps :class:`tradebook.core.models.RawExecution`."""

    __tablename__ = "executions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_new_uuid)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    external_id: Mapped[str] = mapped_column(String(128), nullable=False)
    symbol: Mapped[str] = mapped_column(String(32), nullable=False)
    side: Mapped[str] = mapped_column(String(8), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(24, 8), nullable=False)
    commission: Mapped[Decimal] = mapped_column(Numeric(24, 8), default=Decimal("0"))
    trade_date: Mapped[dt.date] = mapped_column("date", Date, nullable=False)
    trade_time: Mapped[dt.time | None] = mapped_column("time", Time, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "external_id", name="uq_executions_user_external"),
        Index("ix_executions_user_symbol", "user_id", "symbol"),
    )


# ---------------------------------------------------------------------------
# MatchedTradeRecord
# ---------------------------------------------------------------------------

class MatchedTradeRecord(Base):
    """Persisted closed round trip.  Maps :class:`~tradebook.core.models.MatchedTrade`."""

    __tablename__ = "matched_trades"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_new_uuid)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    trade_id: Mapped[str] = mapped_column(String(64), nullable=False)
    symbol: Mapped[str] = mapped_column(String(32), nullable=False)
    direction: Mapped[str] = mapped_column(String(8), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    buy_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    buy_time: Mapped[dt.time | None] = mapped_column(Time, nullable=True)
    sell_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    sell_time: Mapped[dt.time | None] = mapped_column(Time, nullable=True)
    buy_price: Mapped[Decimal] = mapped_column(Numeric(24, 8), nullable=False)
    sell_price: Mapped[Decimal] = mapped_column(Numeric(24, 8), nullable=False)
    commission: Mapped[Decimal] = mapped_column(Numeric(24, 8), default=Decimal("0"))
    profit: Mapped[Decimal] = mapped_column(Numeric(24, 8), nullable=False)
    buy_execution_id: Mapped[str] = mapped_column(String(128), nullable=False)
    sell_execution_id: Mapped[str] = mapped_column(String(128), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "trade_id", name="uq_matched_trades_user_trade"),
        Index("ix_matched_trades_user_symbol", "user_id", "symbol"),
        Index("ix_matched_trades_user_sell_date", "user_id", "sell_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<MatchedTradeRecord(trade_id={self.trade_id!r}, "
            f"symbol={self.symbol!r}, profit={self.profit!r})>"
        )


# ---------------------------------------------------------------------------
# OpenPositionRecord
# ---------------------------------------------------------------------------

class OpenPositionRecord(Base):
    """Persisted residual lot.  Maps :class:`~tradebook.core.models.OpenPosition`."""

    __tablename__ = "open_positions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_new_uuid)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    symbol: Mapped[str] = mapped_column(String(32), nullable=False)
    side: Mapped[str] = mapped_column(String(8), nullable=False)
    remaining_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(24, 8), nullable=False)
    commission: Mapped[Decimal] = mapped_column(Numeric(24, 8), default=Decimal("0"))
    position_date: Mapped[dt.date] = mapped_column("date", Date, nullable=False)
    position_time: Mapped[dt.time | None] = mapped_column("time", Time, nullable=True)
    origin_id: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_open_positions_user_symbol", "user_id", "symbol"),
    )


# ---------------------------------------------------------------------------
# AnalyticsSnapshotRecord
# ---------------------------------------------------------------------------

class AnalyticsSnapshotRecord(Base):
    """Latest performance snapshot per user.

    The full snapshot lives in ``payload``; headline numbers are
    duplicated into columns for cheap dashboard queries.
    """

    __tablename__ = "analytics_snapshots"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_new_uuid)
    user_id: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    total_trades: Mapped[int] = mapped_column(Integer, default=0)
    total_net_profit_loss: Mapped[Decimal] = mapped_column(Numeric(24, 8), default=Decimal("0"))
    win_rate: Mapped[Decimal] = mapped_column(Numeric(10, 4), default=Decimal("0"))
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow,
    )
