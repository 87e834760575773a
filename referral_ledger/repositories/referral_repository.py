"""
Referral repository.

Data access layer for Referral model, including the conditional
status transitions that make reward crediting idempotent.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.enums import ReferralStatus, RewardStatus
from referral_ledger.models.referral import Referral
from referral_ledger.repositories.base import BaseRepository


class ReferralRepository(BaseRepository[Referral]):
    """Referral repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral repository."""
        super().__init__(Referral, session)

    async def get_by_code(self, referral_code: str) -> Referral | None:
        """Get referral by its public code."""
        return await self.get_by(referral_code=referral_code)

    async def claim_for_credit(self, referral_id: int, now: datetime) -> bool:
        """
        Claim a referral's reward (compare-and-set).

        A single ``UPDATE ... WHERE reward_status = 'UNCREDITED'`` moves the
        referral to CREDITED/PAID. Exactly one concurrent caller observes
        success; the row stays locked by that caller's transaction until it
        commits or rolls back.

        Args:
            referral_id: Referral ID
            now: Claim timestamp (paid_at / credited_at)

        Returns:
            True if this call won the claim, False if already credited
            or the referral does not exist
        """
        stmt = (
            update(Referral)
            .where(
                and_(
                    Referral.id == referral_id,
                    Referral.reward_status == RewardStatus.UNCREDITED.value,
                )
            )
            .values(
                reward_status=RewardStatus.CREDITED.value,
                status=ReferralStatus.PAID.value,
                paid_at=now,
                credited_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def record_reward_values(
        self,
        referral_id: int,
        reward_value: Decimal,
        referred_reward_value: Decimal,
    ) -> None:
        """Store the amounts credited for a claimed referral."""
        stmt = (
            update(Referral)
            .where(Referral.id == referral_id)
            .values(
                reward_value=reward_value,
                referred_reward_value=referred_reward_value,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def mark_signed_up(
        self, referral_id: int, referred_account_id: int, now: datetime
    ) -> bool:
        """
        Move a PENDING referral to SIGNED_UP (compare-and-set).

        Args:
            referral_id: Referral ID
            referred_account_id: Account that signed up
            now: Sign-up timestamp

        Returns:
            True if the referral was PENDING, was not bound to another
            account, and has been advanced
        """
        stmt = (
            update(Referral)
            .where(
                and_(
                    Referral.id == referral_id,
                    Referral.status == ReferralStatus.PENDING.value,
                    or_(
                        Referral.referred_account_id.is_(None),
                        Referral.referred_account_id == referred_account_id,
                    ),
                )
            )
            .values(
                status=ReferralStatus.SIGNED_UP.value,
                referred_account_id=referred_account_id,
                signed_up_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def count_credited_for_referrer(self, referrer_account_id: int) -> int:
        """
        Count credited referrals of a referrer.

        Args:
            referrer_account_id: Referrer account ID

        Returns:
            Number of referrals with reward_status CREDITED
        """
        stmt = select(func.count(Referral.id)).where(
            and_(
                Referral.referrer_account_id == referrer_account_id,
                Referral.reward_status == RewardStatus.CREDITED.value,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def find_created_before(self, end: datetime) -> list[Referral]:
        """All referrals created before ``end``, ordered by ID."""
        stmt = (
            select(Referral)
            .where(Referral.created_at < end)
            .order_by(Referral.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
