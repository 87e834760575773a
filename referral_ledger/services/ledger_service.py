"""
Ledger service.

Append-only store of signed credit movements. Balances are always derived
from the latest entry of an account; there is no mutable balance counter.
"""

from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.enums import LedgerSourceType
from referral_ledger.models.ledger_entry import LedgerEntry
from referral_ledger.repositories.account_repository import AccountRepository
from referral_ledger.repositories.ledger_entry_repository import (
    LedgerEntryRepository,
)
from referral_ledger.services.base_service import BaseService
from referral_ledger.utils.exceptions import (
    AccountNotFoundError,
    PersistenceFailureError,
)


ZERO = Decimal("0")


class LedgerService(BaseService):
    """
    Accounting primitive for credit balances.

    ``append`` runs inside the caller's transaction and never commits.
    It does not validate business rules.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ledger service."""
        super().__init__(session)
        self.account_repo = AccountRepository(session)
        self.entry_repo = LedgerEntryRepository(session)

    async def append(
        self,
        account_id: int,
        amount: Decimal,
        source_type: LedgerSourceType | str,
        reference_id: str | int,
        description: str | None = None,
    ) -> LedgerEntry:
        """
        Append a signed movement to an account's chain.

        The account row is locked first, so the read-latest-then-insert
        sequence is serialized per account. The unique
        (account_id, sequence) constraint rejects any writer that still
        raced past a stale latest entry.

        Args:
            account_id: Account credited (positive) or debited (negative)
            amount: Signed amount
            source_type: Ledger source type
            reference_id: Originating reference (referral id, threshold)
            description: Statement text

        Returns:
            The new entry

        Raises:
            AccountNotFoundError: If the account does not exist
            PersistenceFailureError: If the entry cannot be written
        """
        try:
            account = await self.account_repo.lock(account_id)
            if account is None:
                raise AccountNotFoundError(f"Account {account_id} not found")

            latest = await self.entry_repo.get_latest(account_id)
            previous_balance = latest.balance_after if latest else ZERO
            sequence = latest.sequence + 1 if latest else 1

            entry = await self.entry_repo.create(
                account_id=account_id,
                sequence=sequence,
                amount=amount,
                balance_after=previous_balance + amount,
                source_type=str(source_type),
                reference_id=str(reference_id),
                description=description,
            )
        except SQLAlchemyError as e:
            raise PersistenceFailureError(
                f"Failed to append ledger entry for account {account_id}: {e}"
            ) from e

        self.logger.info(
            "Ledger entry appended",
            extra={
                "account_id": account_id,
                "sequence": entry.sequence,
                "amount": str(amount),
                "balance_after": str(entry.balance_after),
                "source_type": str(source_type),
                "reference_id": str(reference_id),
            },
        )
        return entry

    async def balance(self, account_id: int) -> Decimal:
        """
        Current balance of an account.

        Args:
            account_id: Account ID

        Returns:
            ``balance_after`` of the latest entry, or 0
        """
        latest = await self.entry_repo.get_latest(account_id)
        return latest.balance_after if latest else ZERO

    async def history(
        self, account_id: int, limit: int = 50, offset: int = 0
    ) -> list[LedgerEntry]:
        """Entries of an account, newest first."""
        return await self.entry_repo.get_history(account_id, limit, offset)

    async def count_entries(self, account_id: int | None = None) -> int:
        """Number of entries for one account, or in the whole ledger."""
        if account_id is None:
            return await self.entry_repo.count()
        return await self.entry_repo.count(account_id=account_id)

    async def verify_chain(self, account_id: int) -> bool:
        """
        Audit the running-balance chain of an account.

        Every entry must continue the previous one: sequences are
        consecutive from 1 and ``balance_after`` equals the previous
        ``balance_after`` plus ``amount``.

        Args:
            account_id: Account ID

        Returns:
            True if the chain is consistent
        """
        previous_balance = ZERO
        for expected_sequence, entry in enumerate(
            await self.entry_repo.get_chain(account_id), start=1
        ):
            if entry.sequence != expected_sequence:
                self.logger.error(
                    "Ledger chain has a sequence gap",
                    extra={"account_id": account_id, "entry_id": entry.id},
                )
                return False
            if entry.balance_after != previous_balance + entry.amount:
                self.logger.error(
                    "Ledger chain balance mismatch",
                    extra={"account_id": account_id, "entry_id": entry.id},
                )
                return False
            previous_balance = entry.balance_after
        return True
