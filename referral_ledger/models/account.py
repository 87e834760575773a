"""
Account model.

Represents a party that can hold a credit balance.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from referral_ledger.models.base import Base


class Account(Base):
    """
    Account entity.

    An account has no stored balance. Its balance is always the
    ``balance_after`` of its most recent ledger entry (0 if none).

    Attributes:
        id: Primary key
        external_ref: Identifier of the party in the calling system
        display_name: Optional human readable name
        created_at: Registration timestamp
    """

    __tablename__ = "accounts"

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    external_ref: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    display_name: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Account(id={self.id}, external_ref={self.external_ref!r})>"
