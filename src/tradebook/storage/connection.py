"""Journal database lifecycle.

One engine per process, opened by :func:`init_engine` and closed by
:func:`dispose`.  Each import run or report works inside a single
:func:`get_session` block, so a user's executions, matched trades,
open positions and snapshot are written together or not at all.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from tradebook.core.errors import PersistenceError

from .models import Base

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


async def init_engine(
    url: str,
    *,
    create_tables: bool = False,
    echo: bool = False,
) -> AsyncEngine:
    """Open the journal database at *url*.

    SQLite files (``sqlite+aiosqlite:///journal.db``) get no connection
    pool; Postgres (``postgresql+asyncpg://...``) uses SQLAlchemy's
    default pool.  With *create_tables* the journal tables are created
    if missing.
    """
    global _engine, _session_factory  # noqa: PLW0603

    kwargs = {"poolclass": NullPool} if url.startswith("sqlite") else {}
    _engine = create_async_engine(url, echo=echo, **kwargs)
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)

    if create_tables:
        try:
            async with _engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Cannot create journal tables: {exc}") from exc

    logger.info("Journal database ready at %s", url.split("@")[-1])
    return _engine


async def dispose() -> None:
    global _engine, _session_factory  # noqa: PLW0603

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield a session whose writes commit together on exit.

    Usage::

        async with get_session() as session:
            repo = TradebookRepo(session)
            await repo.replace_results(user_id, result, mode=ImportMode.FULL)

    Any exception inside the block rolls the whole block back.

    Raises:
        PersistenceError: :func:`init_engine` was not called, or the
            commit failed.
    """
    if _session_factory is None:
        raise PersistenceError("Journal database not initialised; call init_engine() first")

    session = _session_factory()
    try:
        yield session
        try:
            await session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Commit failed: {exc}") from exc
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()
