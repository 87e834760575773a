"""
LedgerEntry model.

Immutable, append-only record of one signed credit movement.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from referral_ledger.models.base import Base
from referral_ledger.models.types import MoneyType


class LedgerEntry(Base):
    """
    LedgerEntry entity.

    Entries for one account form a strict running-balance chain:
    ``balance_after`` equals the previous entry's ``balance_after`` plus
    ``amount``. ``sequence`` numbers the chain from 1 and is unique per
    account, so two writers that read the same latest entry cannot both
    commit.

    Attributes:
        id: Primary key
        account_id: Account credited or debited
        sequence: Position in the account's chain (1-based)
        amount: Signed amount, positive = credit
        balance_after: Account balance after this entry
        source_type: REFERRAL_REWARD / REFERRAL_WELCOME / MILESTONE_BONUS
        reference_id: Originating referral id (or milestone threshold)
        description: Free text for statements
        created_at: Creation timestamp
    """

    __tablename__ = "ledger_entries"
    __table_args__ = (
        UniqueConstraint(
            "account_id", "sequence", name="uq_ledger_entries_account_sequence"
        ),
        Index("idx_ledger_entries_source", "source_type", "reference_id"),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    account_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    balance_after: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False
    )

    source_type: Mapped[str] = mapped_column(
        String(32), nullable=False, index=True
    )
    reference_id: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<LedgerEntry(id={self.id}, account_id={self.account_id}, "
            f"seq={self.sequence}, amount={self.amount}, "
            f"balance_after={self.balance_after}, source={self.source_type})>"
        )
