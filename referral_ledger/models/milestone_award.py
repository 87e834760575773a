"""
MilestoneAward model.

Records that a referrer has received the bonus for a referral-count
threshold. The unique (account_id, threshold) pair makes the award
exactly-once at the storage layer.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from referral_ledger.models.base import Base
from referral_ledger.models.types import MoneyType


class MilestoneAward(Base):
    """MilestoneAward entity."""

    __tablename__ = "milestone_awards"
    __table_args__ = (
        UniqueConstraint(
            "account_id", "threshold", name="uq_milestone_awards_account_threshold"
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    account_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    threshold: Mapped[int] = mapped_column(Integer, nullable=False)
    bonus_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    # Bonus entry and the referral whose credit crossed the threshold
    ledger_entry_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("ledger_entries.id", ondelete="RESTRICT"),
        nullable=False,
    )
    referral_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("referrals.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<MilestoneAward(account_id={self.account_id}, "
            f"threshold={self.threshold}, bonus={self.bonus_amount})>"
        )
