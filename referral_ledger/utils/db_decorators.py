"""
Commit-or-rollback decorator for service methods.

Wraps an async function or service method so its session is committed
on success and rolled back when it raises.
"""

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession


T = TypeVar("T")


def _find_session(args: tuple[Any, ...], kwargs: dict[str, Any]) -> AsyncSession | None:
    """
    Locate the session of a decorated call.

    Looks at the ``session`` keyword, a leading ``AsyncSession`` argument,
    and finally the ``session`` attribute of a bound service instance.
    """
    session = kwargs.get("session")
    if session is None and args:
        if isinstance(args[0], AsyncSession):
            session = args[0]
        else:
            session = getattr(args[0], "session", None)
    return session


async def _rollback(session: AsyncSession, func_name: str, error: Exception) -> None:
    try:
        await session.rollback()
        logger.info(
            f"Rollback performed in {func_name} due to error: {type(error).__name__}"
        )
    except Exception as rollback_error:
        logger.error(
            f"Failed to rollback in {func_name}: {rollback_error}",
            exc_info=True,
        )


def with_auto_commit(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator that commits on success and rolls back on error.

    Example:
        @with_auto_commit
        async def create_referral(self, referrer_account_id, channel):
            ...  # no explicit commit needed
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        session = _find_session(args, kwargs)
        if session is None:
            logger.warning(
                f"Function {func.__name__} decorated with @with_auto_commit "
                f"but no session found. Commit/rollback will not be performed."
            )
            return await func(*args, **kwargs)

        try:
            result = await func(*args, **kwargs)
            await session.commit()
            logger.debug(f"Auto-commit performed in {func.__name__}")
            return result
        except Exception as e:
            await _rollback(session, func.__name__, e)
            raise

    return wrapper
