"""
Referral analytics task.

Recomputes the analytics snapshot of a period. Runs daily via the
scheduler and may be triggered manually for any past period.
"""

from datetime import date
from typing import Any

import dramatiq
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from jobs.async_runner import run_async
from jobs.broker import broker  # noqa: F401
from referral_ledger.config.settings import settings
from referral_ledger.services.analytics_service import ReferralAnalyticsService


@dramatiq.actor(max_retries=0, time_limit=600_000)  # 10 min timeout
def recompute_referral_analytics(
    period_date: str | None = None, period_type: str | None = None
) -> dict[str, Any]:
    """
    Recompute referral analytics for a period.

    Args:
        period_date: ISO date inside the period (default: today, UTC)
        period_type: daily / weekly / monthly
            (default: settings.analytics_period_type)

    Returns:
        Snapshot dict, or ``{"success": False, "error": ...}``; a failed
        run leaves the previous snapshot in place
    """
    logger.info("Starting referral analytics recompute...")

    try:
        result = run_async(_recompute_referral_analytics_async(period_date, period_type))
        logger.info(f"Referral analytics complete: {result}")
        return result
    except Exception as e:
        logger.exception(f"Referral analytics failed: {e}")
        return {"success": False, "error": str(e)}


async def _recompute_referral_analytics_async(
    period_date: str | date | None = None,
    period_type: str | None = None,
    session_maker: async_sessionmaker[AsyncSession] | None = None,
) -> dict[str, Any]:
    """Async implementation of analytics recompute."""
    if session_maker is None:
        from jobs.utils.database import task_session_maker

        session_maker = task_session_maker

    if isinstance(period_date, str):
        period_date = date.fromisoformat(period_date)

    async with session_maker() as session:
        snapshot = await ReferralAnalyticsService(session).recompute(
            period_date, period_type or settings.analytics_period_type
        )
        return snapshot.to_dict()
