"""
Reward settings repository.

Data access layer for RewardRateSettings model.
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.reward_rate_settings import RewardRateSettings
from referral_ledger.repositories.base import BaseRepository


class RewardSettingsRepository(BaseRepository[RewardRateSettings]):
    """Reward settings repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize reward settings repository."""
        super().__init__(RewardRateSettings, session)

    async def get_active_rows(self) -> list[RewardRateSettings]:
        """All rows flagged active. More than one is a configuration error."""
        stmt = (
            select(RewardRateSettings)
            .where(RewardRateSettings.is_active == True)  # noqa: E712
            .order_by(RewardRateSettings.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def set_only_active(self, settings_id: int) -> None:
        """
        Make ``settings_id`` the single active row.

        Both statements run in the caller's transaction, so readers never
        observe zero or two active rows after commit.
        """
        await self.session.execute(
            update(RewardRateSettings)
            .where(RewardRateSettings.id != settings_id)
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(
            update(RewardRateSettings)
            .where(RewardRateSettings.id == settings_id)
            .values(is_active=True)
            .execution_options(synchronize_session=False)
        )
