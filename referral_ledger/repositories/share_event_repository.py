"""
Share event repository.

Data access layer for ShareEvent model.
"""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.share_event import ShareEvent
from referral_ledger.repositories.base import BaseRepository


class ShareEventRepository(BaseRepository[ShareEvent]):
    """Share event repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize share event repository."""
        super().__init__(ShareEvent, session)

    async def count_by_type_before(self, end: datetime) -> dict[str, int]:
        """
        Count events per event type created before ``end``.

        Args:
            end: Upper bound (exclusive)

        Returns:
            Dict mapping event type to count
        """
        stmt = (
            select(ShareEvent.event_type, func.count(ShareEvent.id).label("count"))
            .where(ShareEvent.created_at < end)
            .group_by(ShareEvent.event_type)
        )
        result = await self.session.execute(stmt)
        return {row.event_type: row.count for row in result.all()}
