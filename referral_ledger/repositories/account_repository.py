"""
Account repository.

Data access layer for Account model.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.account import Account
from referral_ledger.repositories.base import BaseRepository


class AccountRepository(BaseRepository[Account]):
    """Account repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize account repository."""
        super().__init__(Account, session)

    async def get_by_external_ref(self, external_ref: str) -> Account | None:
        """Get account by the caller's identifier."""
        return await self.get_by(external_ref=external_ref)

    async def lock(self, account_id: int) -> Account | None:
        """
        Lock an account row for the rest of the transaction.

        Serializes ledger appends per account. Appends to different
        accounts never contend.

        Args:
            account_id: Account ID

        Returns:
            Locked account or None if it does not exist
        """
        return await self.get_for_update(account_id)
