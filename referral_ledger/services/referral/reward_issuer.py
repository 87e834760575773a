"""
Reward issuer.

Credits the referrer and the referred account exactly once per referral.
The claim, the ledger entries and the milestone check commit together in
one transaction or not at all.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.enums import LedgerSourceType
from referral_ledger.models.referral import Referral
from referral_ledger.repositories.account_repository import AccountRepository
from referral_ledger.repositories.ledger_entry_repository import (
    LedgerEntryRepository,
)
from referral_ledger.repositories.referral_repository import ReferralRepository
from referral_ledger.services.base_service import BaseService
from referral_ledger.services.ledger_service import LedgerService
from referral_ledger.services.referral.milestone_detector import (
    MilestoneBonus,
    MilestoneDetector,
)
from referral_ledger.services.reward_settings_service import (
    RewardRates,
    RewardSettingsService,
)
from referral_ledger.utils.datetime_utils import month_start, utc_now
from referral_ledger.utils.exceptions import (
    AccountNotFoundError,
    InvalidPaymentAmountError,
    PersistenceFailureError,
    ReferralLedgerError,
    ReferralNotFoundError,
)


ZERO = Decimal("0")


def check_payment_amount(payment_amount: Decimal | None) -> None:
    """
    Reject payment amounts that cannot produce a reward.

    Raises:
        InvalidPaymentAmountError: Amount is NaN, infinite or negative
    """
    if payment_amount is None:
        return
    if not payment_amount.is_finite() or payment_amount < 0:
        raise InvalidPaymentAmountError(
            f"Invalid payment amount: {payment_amount}"
        )


@dataclass
class RewardNotification:
    """Data for informing the parties of a reward."""

    referral_id: int
    referrer_account_id: int
    referred_account_id: int | None
    referrer_reward: Decimal
    referred_reward: Decimal
    milestone_bonuses: list[int] = field(default_factory=list)

    def to_message(self) -> dict[str, Any]:
        """JSON-safe message body."""
        return {
            "referral_id": self.referral_id,
            "referrer_account_id": self.referrer_account_id,
            "referred_account_id": self.referred_account_id,
            "referrer_reward": str(self.referrer_reward),
            "referred_reward": str(self.referred_reward),
            "milestone_bonuses": list(self.milestone_bonuses),
        }


@dataclass
class IssueResult:
    """Outcome of one issuance attempt."""

    already_credited: bool
    referrer_reward: Decimal = ZERO
    referred_reward: Decimal = ZERO
    milestones: list[MilestoneBonus] = field(default_factory=list)
    notification: RewardNotification | None = None

    def to_payload(self) -> dict[str, Any]:
        """Response object returned to the trigger."""
        return {
            "already_credited": self.already_credited,
            "referrer_reward": float(self.referrer_reward),
            "referred_reward": float(self.referred_reward),
        }


class RewardIssuer(BaseService):
    """
    Issues referral rewards.

    The compare-and-set claim on the referral row is the sole idempotency
    gate: retried or concurrent calls for one referral produce exactly one
    set of ledger entries. The issuer holds no state of its own.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize reward issuer.

        Args:
            session: Async database session owned by this unit of work
        """
        super().__init__(session)
        self.referral_repo = ReferralRepository(session)
        self.account_repo = AccountRepository(session)
        self.entry_repo = LedgerEntryRepository(session)
        self.ledger = LedgerService(session)
        self.settings_service = RewardSettingsService(session)
        self.milestones = MilestoneDetector(session, ledger=self.ledger)

    async def issue(
        self, referral_id: int, payment_amount: Decimal | None = None
    ) -> IssueResult:
        """
        Credit the rewards of a referral that reached its qualifying event.

        Args:
            referral_id: Referral ID
            payment_amount: Qualifying payment, used by percent rewards

        Returns:
            IssueResult; ``already_credited`` is True when a previous or
            concurrent call already claimed the referral

        Raises:
            ReferralNotFoundError: Unknown referral
            AccountNotFoundError: Referral points at a missing account
            ConfigMissingError: No active reward settings
            ConfigConflictError: More than one active reward settings row
            InvalidPaymentAmountError: Payment amount is NaN, infinite or
                negative
            PersistenceFailureError: The unit of work could not be committed
        """
        check_payment_amount(payment_amount)

        try:
            claimed = await self.referral_repo.claim_for_credit(
                referral_id, utc_now()
            )

            if not claimed:
                return await self._already_credited(referral_id)

            result = await self._credit(referral_id, payment_amount)
            await self.session.commit()

        except ReferralLedgerError:
            await self.rollback()
            raise
        except SQLAlchemyError as e:
            await self.rollback()
            self.logger.error(
                "Reward issuance failed to commit",
                extra={"referral_id": referral_id, "error": str(e)},
            )
            raise PersistenceFailureError(
                f"Failed to issue rewards for referral {referral_id}: {e}"
            ) from e
        except Exception:
            await self.rollback()
            raise

        self.logger.info(
            "Referral rewards issued",
            extra={
                "referral_id": referral_id,
                "referrer_reward": str(result.referrer_reward),
                "referred_reward": str(result.referred_reward),
                "milestones": [bonus.threshold for bonus in result.milestones],
            },
        )
        return result

    async def _already_credited(self, referral_id: int) -> IssueResult:
        """Report a lost claim without side effects."""
        referral = await self.referral_repo.get_fresh(referral_id)
        if referral is None:
            await self.rollback()
            raise ReferralNotFoundError(f"Referral {referral_id} not found")

        # Rollback expires loaded instances
        result = IssueResult(
            already_credited=True,
            referrer_reward=referral.reward_value,
            referred_reward=referral.referred_reward_value,
        )
        await self.rollback()

        self.logger.info(
            "Referral already credited",
            extra={"referral_id": referral_id},
        )
        return result

    async def _credit(
        self, referral_id: int, payment_amount: Decimal | None
    ) -> IssueResult:
        """Write ledger entries and milestones for a claimed referral."""
        referral = await self.referral_repo.get_fresh(referral_id)
        await self._lock_parties(referral)

        rates = await self.settings_service.load_active()
        if rates.needs_payment_amount and payment_amount is None:
            self.logger.warning(
                "Percent reward configured but no payment amount given",
                extra={"referral_id": referral_id, "settings_id": rates.settings_id},
            )

        amounts = rates.compute_rewards(payment_amount)
        referrer_reward = await self._capped_referrer_reward(
            referral, rates, amounts.referrer_reward
        )
        referred_reward = (
            amounts.referred_reward if referral.referred_account_id else ZERO
        )

        if referrer_reward > 0:
            await self.ledger.append(
                account_id=referral.referrer_account_id,
                amount=referrer_reward,
                source_type=LedgerSourceType.REFERRAL_REWARD,
                reference_id=referral.id,
                description=f"Referral reward for referral {referral.id}",
            )

        if referred_reward > 0:
            await self.ledger.append(
                account_id=referral.referred_account_id,
                amount=referred_reward,
                source_type=LedgerSourceType.REFERRAL_WELCOME,
                reference_id=referral.id,
                description=f"Welcome credit for referral {referral.id}",
            )

        await self.referral_repo.record_reward_values(
            referral.id, referrer_reward, referred_reward
        )

        bonuses = await self.milestones.check_and_award(
            referral.referrer_account_id,
            rates.milestones,
            referral_id=referral.id,
        )

        notification = RewardNotification(
            referral_id=referral.id,
            referrer_account_id=referral.referrer_account_id,
            referred_account_id=referral.referred_account_id,
            referrer_reward=referrer_reward,
            referred_reward=referred_reward,
            milestone_bonuses=[bonus.threshold for bonus in bonuses],
        )
        return IssueResult(
            already_credited=False,
            referrer_reward=referrer_reward,
            referred_reward=referred_reward,
            milestones=bonuses,
            notification=notification,
        )

    async def _lock_parties(self, referral: Referral) -> None:
        """
        Lock the referrer and referred accounts in ascending ID order.

        A fixed lock order keeps two issuances with swapped parties from
        deadlocking.
        """
        account_ids = {referral.referrer_account_id}
        if referral.referred_account_id is not None:
            account_ids.add(referral.referred_account_id)

        for account_id in sorted(account_ids):
            if await self.account_repo.lock(account_id) is None:
                raise AccountNotFoundError(
                    f"Account {account_id} of referral {referral.id} not found"
                )

    async def _capped_referrer_reward(
        self, referral: Referral, rates: RewardRates, reward: Decimal
    ) -> Decimal:
        """Apply the monthly referral reward cap, if configured."""
        if rates.reward_cap is None:
            return reward

        credited = await self.entry_repo.sum_since(
            referral.referrer_account_id,
            LedgerSourceType.REFERRAL_REWARD.value,
            month_start(utc_now()),
        )
        capped = rates.apply_cap(reward, credited)
        if capped < reward:
            self.logger.info(
                "Referral reward clipped by monthly cap",
                extra={
                    "referral_id": referral.id,
                    "account_id": referral.referrer_account_id,
                    "requested": str(reward),
                    "credited": str(capped),
                    "cap": str(rates.reward_cap),
                },
            )
        return capped
