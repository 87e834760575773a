"""Database engine and session maker for worker processes."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from referral_ledger.config.database import create_session_maker, engine_options
from referral_ledger.config.settings import settings


def create_task_engine(database_url: str | None = None) -> AsyncEngine:
    """Create engine for tasks (NullPool on every backend)."""
    url = database_url or settings.database_url
    options = engine_options(url)
    options.pop("pool_pre_ping", None)
    options["poolclass"] = NullPool
    return create_async_engine(url, **options)


def create_task_session_maker(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create session maker for tasks."""
    if engine is None:
        engine = create_task_engine()
    return create_session_maker(engine)


# Ready-to-use instances
task_engine = create_task_engine()
task_session_maker = create_task_session_maker(task_engine)
