"""
Process-wide database pool with explicit init / teardown.

The engine is created once per process (API worker or Lambda container) and
sessions are acquired per operation:

  get_db()          FastAPI dependency — one transaction per request
  session_scope()   async context manager — one transaction per unit of work
                    (used by the expiry sweep, one scope per driver / document)

Both commit on success and roll back on any exception, so a review and the
aggregate recomputation it triggers are either both visible or neither is.
"""
from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from shared.database import (
    AsyncSessionFactory,
    build_timeout_connect_args,
    get_async_session_factory,
)

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Any]

_session_factory: AsyncSessionFactory | None = None


def init_db(settings: Settings) -> AsyncSessionFactory:
    global _session_factory
    if _session_factory is None:
        _session_factory = get_async_session_factory(
            settings.compliance_database_url,
            expire_on_commit=False,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout_seconds,
            connect_args=build_timeout_connect_args(
                settings.db_connect_timeout_seconds,
                settings.db_statement_timeout_seconds,
            ),
        )
        logger.info("Database pool initialized")
    return _session_factory


def get_session_factory() -> AsyncSessionFactory:
    if _session_factory is None:
        raise RuntimeError("Database not initialized")
    return _session_factory


async def close_db() -> None:
    """Dispose the pool; safe to call when it was never initialized."""
    global _session_factory
    if _session_factory is None:
        return
    engine = _session_factory.kw.get("bind")
    _session_factory = None
    if engine is not None:
        await engine.dispose()
    logger.info("Database pool disposed")


@asynccontextmanager
async def session_scope(
    factory: SessionFactory | None = None,
) -> AsyncIterator[AsyncSession]:
    session_factory = factory or get_session_factory()
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with session_scope() as session:
        yield session
