"""Centralized database engine management.

One engine per warm Lambda container, reused across invocations. Each
request opens a ``Session`` on it and returns the connection to the pool
when the ``with`` block exits.
"""

from __future__ import annotations

import os
from typing import Any
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from cachao.db.connection import get_database_url
from cachao.db.connection import use_iam_auth_enabled

_ENGINE_CACHE: dict[str, Engine] = {}


def get_engine(
    use_cache: bool = True,
    pool_class: Optional[type] = None,
) -> Engine:
    """Get or create the SQLAlchemy engine.

    IAM auth tokens expire, so with IAM auth a fresh engine without
    pooling is built on every call.

    Args:
        use_cache: Whether to use the engine cache (ignored for IAM auth).
        pool_class: Override the connection pool class.
    """
    use_iam_auth = use_iam_auth_enabled()
    if use_iam_auth:
        use_cache = False
        pool_class = NullPool

    cache_key = "default"
    if use_cache and cache_key in _ENGINE_CACHE:
        return _ENGINE_CACHE[cache_key]

    database_url = get_database_url()
    engine = create_engine(
        database_url,
        pool_pre_ping=True,
        connect_args=_get_connect_args(database_url),
        **_get_pool_settings(pool_class),
    )

    if use_cache:
        _ENGINE_CACHE[cache_key] = engine

    return engine


def set_engine(engine: Engine) -> None:
    """Install a prebuilt engine as the cached default."""
    _ENGINE_CACHE["default"] = engine


def clear_engine_cache() -> None:
    """Dispose and forget cached engines."""
    for engine in _ENGINE_CACHE.values():
        engine.dispose()
    _ENGINE_CACHE.clear()


def _get_connect_args(database_url: str) -> dict[str, Any]:
    """Driver connection arguments; only PostgreSQL takes sslmode/timeout."""
    if not database_url.startswith("postgresql"):
        return {}
    return {
        "sslmode": os.getenv("DATABASE_SSLMODE", "require"),
        "connect_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "10")),
    }


def _get_pool_settings(pool_class: Optional[type]) -> dict[str, Any]:
    """Bounded pool: DB_POOL_SIZE + DB_MAX_OVERFLOW connections at most."""
    if pool_class == NullPool:
        return {"poolclass": NullPool}

    return {
        "pool_size": int(os.getenv("DB_POOL_SIZE", "10")),
        "max_overflow": int(os.getenv("DB_MAX_OVERFLOW", "10")),
        "pool_recycle": int(os.getenv("DB_POOL_RECYCLE", "300")),
        "pool_timeout": int(os.getenv("DB_POOL_TIMEOUT", "15")),
    }
