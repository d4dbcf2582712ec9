import os
import ssl
from pathlib import Path
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _build_ssl_connect_args() -> dict[str, Any]:
    """Return asyncpg connect args for SSL when DATABASE_SSL is set."""
    mode = os.environ.get("DATABASE_SSL", "").lower()
    if not mode or mode == "disable":
        return {}

    cert_path = os.environ.get("RDS_SSL_CERT", "")
    if cert_path and Path(cert_path).exists():
        ctx = ssl.create_default_context(cafile=cert_path)
        return {"ssl": ctx}

    # Fall back to simple 'require' (encrypted, no cert verification)
    return {"ssl": "require"}


def build_timeout_connect_args(
    connect_timeout: float,
    statement_timeout: float,
) -> dict[str, Any]:
    """asyncpg connect args bounding connection setup and every query.

    ``timeout`` caps the TCP/auth handshake, ``command_timeout`` caps each
    statement so a stalled RDS proxy fails the operation instead of hanging.
    """
    return {"timeout": connect_timeout, "command_timeout": statement_timeout}


def get_async_engine(database_url: str, **kwargs: Any) -> AsyncEngine:
    connect_args = {**_build_ssl_connect_args(), **kwargs.pop("connect_args", {})}
    options: dict[str, Any] = {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 3600,
        **kwargs,
    }
    if connect_args:
        options["connect_args"] = connect_args
    return create_async_engine(database_url, **options)


def get_async_session_factory(
    database_url: str,
    *,
    expire_on_commit: bool = False,
    **engine_kwargs: Any,
) -> async_sessionmaker[AsyncSession]:
    engine = get_async_engine(database_url, **engine_kwargs)
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=expire_on_commit,
        autoflush=False,
        autocommit=False,
    )


AsyncSessionFactory = async_sessionmaker[AsyncSession]

