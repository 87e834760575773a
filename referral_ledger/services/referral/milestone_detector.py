"""
Milestone detector.

Awards one-time bonuses when a referrer's credited referral count reaches
a configured threshold. Runs inside the reward issuer's unit of work.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.enums import LedgerSourceType
from referral_ledger.repositories.milestone_award_repository import (
    MilestoneAwardRepository,
)
from referral_ledger.repositories.referral_repository import ReferralRepository
from referral_ledger.services.base_service import BaseService
from referral_ledger.services.ledger_service import LedgerService
from referral_ledger.services.reward_settings_service import MilestoneRule
from referral_ledger.utils.exceptions import PersistenceFailureError


@dataclass(frozen=True)
class MilestoneBonus:
    """A bonus awarded during one check."""

    threshold: int
    amount: Decimal
    ledger_entry_id: int


class MilestoneDetector(BaseService):
    """Detects and awards referral-count milestones."""

    def __init__(
        self, session: AsyncSession, ledger: LedgerService | None = None
    ) -> None:
        """Initialize milestone detector."""
        super().__init__(session)
        self.ledger = ledger or LedgerService(session)
        self.referral_repo = ReferralRepository(session)
        self.award_repo = MilestoneAwardRepository(session)

    async def check_and_award(
        self,
        referrer_account_id: int,
        milestones: tuple[MilestoneRule, ...],
        referral_id: int | None = None,
    ) -> list[MilestoneBonus]:
        """
        Award every milestone whose threshold equals the credited count.

        Must be called after the triggering referral has been claimed in
        the same transaction, so the count includes it. The caller must
        already hold the referrer's account row lock, which keeps
        concurrent issuances for one referrer from counting the same state.

        Args:
            referrer_account_id: Referrer account ID
            milestones: Normalized rules (distinct counts, ascending)
            referral_id: Referral whose credit triggered the check

        Returns:
            Bonuses awarded by this call
        """
        if not milestones:
            return []

        try:
            count = await self.referral_repo.count_credited_for_referrer(
                referrer_account_id
            )
        except SQLAlchemyError as e:
            raise PersistenceFailureError(
                f"Failed to count referrals for account {referrer_account_id}: {e}"
            ) from e

        awarded: list[MilestoneBonus] = []
        for rule in milestones:
            if count != rule.count:
                continue
            if await self.award_repo.is_awarded(referrer_account_id, rule.count):
                self.logger.debug(
                    "Milestone already awarded",
                    extra={
                        "account_id": referrer_account_id,
                        "threshold": rule.count,
                    },
                )
                continue

            entry = await self.ledger.append(
                account_id=referrer_account_id,
                amount=rule.bonus,
                source_type=LedgerSourceType.MILESTONE_BONUS,
                reference_id=rule.count,
                description=f"Milestone bonus for {rule.count} referrals",
            )

            try:
                await self.award_repo.create(
                    account_id=referrer_account_id,
                    threshold=rule.count,
                    bonus_amount=rule.bonus,
                    ledger_entry_id=entry.id,
                    referral_id=referral_id,
                )
            except SQLAlchemyError as e:
                raise PersistenceFailureError(
                    f"Failed to record milestone {rule.count} for account "
                    f"{referrer_account_id}: {e}"
                ) from e

            self.logger.info(
                "Milestone bonus awarded",
                extra={
                    "account_id": referrer_account_id,
                    "threshold": rule.count,
                    "bonus": str(rule.bonus),
                    "referral_id": referral_id,
                },
            )
            awarded.append(
                MilestoneBonus(
                    threshold=rule.count, amount=rule.bonus, ledger_entry_id=entry.id
                )
            )

        return awarded
