"""
Database engine and session factory.

The application engine is created once per process. Services receive an
``AsyncSession`` and own one unit of work per public call.
"""

from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from referral_ledger.config.settings import settings


def engine_options(database_url: str, echo: bool = False) -> dict[str, Any]:
    """
    Build engine keyword arguments for a database URL.

    SQLite gets one connection per checkout (NullPool) and a busy timeout,
    so concurrent sessions wait for the write lock instead of failing.

    Args:
        database_url: SQLAlchemy async URL
        echo: Log SQL statements

    Returns:
        Keyword arguments for ``create_async_engine``
    """
    options: dict[str, Any] = {"echo": echo}
    if database_url.startswith("sqlite"):
        options["poolclass"] = NullPool
        options["connect_args"] = {"timeout": settings.database_busy_timeout}
    else:
        options["pool_pre_ping"] = True
    return options


def create_engine(database_url: str | None = None) -> AsyncEngine:
    """Create an async engine for the given (or configured) URL."""
    url = database_url or settings.database_url
    return create_async_engine(url, **engine_options(url, settings.database_echo))


def create_session_maker(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to ``engine``."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async_engine = create_engine()
async_session_maker = create_session_maker(async_engine)
