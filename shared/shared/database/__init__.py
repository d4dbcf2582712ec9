from shared.database.postgres import (
    AsyncSessionFactory,
    Base,
    build_timeout_connect_args,
    get_async_session_factory,
)

__all__ = [
    "AsyncSessionFactory",
    "Base",
    "build_timeout_connect_args",
    "get_async_session_factory",
]
