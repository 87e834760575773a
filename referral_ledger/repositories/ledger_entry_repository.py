"""
Ledger entry repository.

Append-only data access for LedgerEntry. Updates and deletes are refused.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.ledger_entry import LedgerEntry
from referral_ledger.repositories.base import BaseRepository
from referral_ledger.utils.exceptions import LedgerImmutableError


class LedgerEntryRepository(BaseRepository[LedgerEntry]):
    """Ledger entry repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ledger entry repository."""
        super().__init__(LedgerEntry, session)

    async def update(self, id: int, for_update: bool = False, **data: Any) -> None:
        """Ledger entries are immutable."""
        raise LedgerImmutableError(f"Ledger entry {id} cannot be updated")

    async def delete(self, id: int) -> bool:
        """Ledger entries are never deleted."""
        raise LedgerImmutableError(f"Ledger entry {id} cannot be deleted")

    async def get_latest(self, account_id: int) -> LedgerEntry | None:
        """
        Get the most recent entry of an account.

        Args:
            account_id: Account ID

        Returns:
            Entry with the highest sequence or None
        """
        stmt = (
            select(LedgerEntry)
            .where(LedgerEntry.account_id == account_id)
            .order_by(LedgerEntry.sequence.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_chain(self, account_id: int) -> list[LedgerEntry]:
        """All entries of an account in creation order."""
        stmt = (
            select(LedgerEntry)
            .where(LedgerEntry.account_id == account_id)
            .order_by(LedgerEntry.sequence.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_history(
        self, account_id: int, limit: int = 50, offset: int = 0
    ) -> list[LedgerEntry]:
        """
        Get entries of an account, newest first.

        Args:
            account_id: Account ID
            limit: Max number of entries
            offset: Number of entries to skip

        Returns:
            List of entries
        """
        stmt = (
            select(LedgerEntry)
            .where(LedgerEntry.account_id == account_id)
            .order_by(LedgerEntry.sequence.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_by_source(
        self, source_type: str, reference_id: str
    ) -> list[LedgerEntry]:
        """Entries created for one originating reference."""
        stmt = (
            select(LedgerEntry)
            .where(
                and_(
                    LedgerEntry.source_type == source_type,
                    LedgerEntry.reference_id == reference_id,
                )
            )
            .order_by(LedgerEntry.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def sum_since(
        self, account_id: int, source_type: str, since: datetime
    ) -> Decimal:
        """
        Sum an account's entries of one source type created since a moment.

        Args:
            account_id: Account ID
            source_type: Ledger source type
            since: Lower bound (inclusive)

        Returns:
            Total amount
        """
        stmt = select(func.coalesce(func.sum(LedgerEntry.amount), 0)).where(
            and_(
                LedgerEntry.account_id == account_id,
                LedgerEntry.source_type == source_type,
                LedgerEntry.created_at >= since,
            )
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))
