"""
Referral tracking service.

Records accounts, referral link uses, sign-ups and share/click events.
These are the inputs the reward issuer and analytics read.
"""

import secrets

from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.account import Account
from referral_ledger.models.enums import ReferralStatus, ShareEventType
from referral_ledger.models.referral import Referral
from referral_ledger.models.share_event import ShareEvent
from referral_ledger.repositories.account_repository import AccountRepository
from referral_ledger.repositories.referral_repository import ReferralRepository
from referral_ledger.repositories.share_event_repository import (
    ShareEventRepository,
)
from referral_ledger.services.base_service import BaseService
from referral_ledger.utils.datetime_utils import utc_now
from referral_ledger.utils.db_decorators import with_auto_commit
from referral_ledger.utils.exceptions import (
    AccountNotFoundError,
    InvalidTransitionError,
    ReferralNotFoundError,
)


REFERRAL_CODE_BYTES = 8
DEFAULT_CHANNEL = "direct"


class ReferralTrackingService(BaseService):
    """Service for the referral inputs of the ledger."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral tracking service."""
        super().__init__(session)
        self.account_repo = AccountRepository(session)
        self.referral_repo = ReferralRepository(session)
        self.share_repo = ShareEventRepository(session)

    @with_auto_commit
    async def register_account(
        self, external_ref: str, display_name: str | None = None
    ) -> Account:
        """
        Register a party, or return it if already registered.

        Args:
            external_ref: Caller's identifier of the party
            display_name: Optional name

        Returns:
            Account
        """
        account = await self.account_repo.get_by_external_ref(external_ref)
        if account is not None:
            return account

        account = await self.account_repo.create(
            external_ref=external_ref, display_name=display_name
        )
        self.logger.info(
            "Account registered",
            extra={"account_id": account.id, "external_ref": external_ref},
        )
        return account

    @with_auto_commit
    async def create_referral(
        self,
        referrer_account_id: int,
        channel: str | None = None,
        referred_account_id: int | None = None,
    ) -> Referral:
        """
        Record the use of a referral link.

        Args:
            referrer_account_id: Account that shared the link
            channel: Share channel
            referred_account_id: Referred account, if already known

        Returns:
            New PENDING, UNCREDITED referral
        """
        await self._require_account(referrer_account_id)
        if referred_account_id is not None:
            await self._require_account(referred_account_id)

        referral = await self.referral_repo.create(
            referral_code=secrets.token_urlsafe(REFERRAL_CODE_BYTES),
            referrer_account_id=referrer_account_id,
            referred_account_id=referred_account_id,
            channel=channel or DEFAULT_CHANNEL,
        )
        self.logger.info(
            "Referral created",
            extra={
                "referral_id": referral.id,
                "referrer_account_id": referrer_account_id,
                "channel": referral.channel,
            },
        )
        return referral

    @with_auto_commit
    async def mark_signed_up(
        self, referral_id: int, referred_account_id: int
    ) -> Referral:
        """
        Advance a referral to SIGNED_UP.

        Repeating the call with the same account is a no-op.

        Args:
            referral_id: Referral ID
            referred_account_id: Account that signed up

        Returns:
            Updated referral

        Raises:
            ReferralNotFoundError: Unknown referral
            AccountNotFoundError: Unknown referred account
            InvalidTransitionError: Referral is bound to another account,
                or already PAID
        """
        await self._require_account(referred_account_id)

        advanced = await self.referral_repo.mark_signed_up(
            referral_id, referred_account_id, utc_now()
        )
        referral = await self.referral_repo.get_fresh(referral_id)
        if referral is None:
            raise ReferralNotFoundError(f"Referral {referral_id} not found")

        if advanced:
            self.logger.info(
                "Referral signed up",
                extra={
                    "referral_id": referral_id,
                    "referred_account_id": referred_account_id,
                },
            )
            return referral

        if (
            referral.status == ReferralStatus.SIGNED_UP
            and referral.referred_account_id == referred_account_id
        ):
            return referral

        if (
            referral.referred_account_id is not None
            and referral.referred_account_id != referred_account_id
        ):
            raise InvalidTransitionError(
                f"Referral {referral_id} belongs to account "
                f"{referral.referred_account_id}, not {referred_account_id}"
            )

        raise InvalidTransitionError(
            f"Referral {referral_id} is {referral.status} and cannot move to "
            f"{ReferralStatus.SIGNED_UP}"
        )

    @with_auto_commit
    async def record_share_event(
        self,
        referrer_account_id: int,
        channel: str | None = None,
        event_type: ShareEventType | str = ShareEventType.SHARE,
        referral_id: int | None = None,
    ) -> ShareEvent:
        """
        Record a raw share or click of a referral link.

        Returns:
            Stored event
        """
        await self._require_account(referrer_account_id)
        return await self.share_repo.create(
            referrer_account_id=referrer_account_id,
            channel=channel or DEFAULT_CHANNEL,
            event_type=ShareEventType(event_type).value,
            referral_id=referral_id,
        )

    async def get_referral(self, referral_id: int) -> Referral:
        """
        Get a referral.

        Raises:
            ReferralNotFoundError: Unknown referral
        """
        referral = await self.referral_repo.get_fresh(referral_id)
        if referral is None:
            raise ReferralNotFoundError(f"Referral {referral_id} not found")
        return referral

    async def _require_account(self, account_id: int) -> Account:
        account = await self.account_repo.get_by_id(account_id)
        if account is None:
            raise AccountNotFoundError(f"Account {account_id} not found")
        return account
