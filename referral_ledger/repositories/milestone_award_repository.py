"""
Milestone award repository.

Data access layer for MilestoneAward model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.milestone_award import MilestoneAward
from referral_ledger.repositories.base import BaseRepository


class MilestoneAwardRepository(BaseRepository[MilestoneAward]):
    """Milestone award repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize milestone award repository."""
        super().__init__(MilestoneAward, session)

    async def is_awarded(self, account_id: int, threshold: int) -> bool:
        """Whether ``threshold`` has already been awarded to the account."""
        return await self.exists(account_id=account_id, threshold=threshold)

    async def get_for_account(self, account_id: int) -> list[MilestoneAward]:
        """Awards of an account, lowest threshold first."""
        stmt = (
            select(MilestoneAward)
            .where(MilestoneAward.account_id == account_id)
            .order_by(MilestoneAward.threshold)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
