"""
Referral model.

One referral link use, from invitation to the credited reward.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from referral_ledger.models.base import Base
from referral_ledger.models.enums import ReferralStatus, RewardStatus
from referral_ledger.models.types import MoneyType


class Referral(Base):
    """
    Referral entity.

    ``status`` moves PENDING -> SIGNED_UP -> PAID and never back.
    ``reward_status`` moves UNCREDITED -> CREDITED at most once; the move
    is a conditional UPDATE and is the only idempotency gate for rewards.

    Attributes:
        id: Primary key
        referral_code: Public code embedded in the referral link
        referrer_account_id: Account that shared the link
        referred_account_id: Account that signed up (None until sign-up)
        status: Lifecycle status
        reward_status: Reward crediting status
        channel: Where the link was shared (email, sms, whatsapp, ...)
        reward_value: Referrer reward actually credited
        referred_reward_value: Referred reward actually credited
        created_at: Link use timestamp
        signed_up_at: Sign-up timestamp
        paid_at: Qualifying payment timestamp
        credited_at: Reward claim timestamp
    """

    __tablename__ = "referrals"
    __table_args__ = (
        Index(
            "idx_referrals_referrer_reward_status",
            "referrer_account_id",
            "reward_status",
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    referral_code: Mapped[str] = mapped_column(
        String(32), unique=True, index=True, nullable=False
    )

    referrer_account_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    referred_account_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ReferralStatus.PENDING.value,
        index=True,
    )
    reward_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=RewardStatus.UNCREDITED.value,
        index=True,
    )

    channel: Mapped[str | None] = mapped_column(String(50), nullable=True)

    reward_value: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    referred_reward_value: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    signed_up_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    credited_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Referral(id={self.id}, referrer={self.referrer_account_id}, "
            f"referred={self.referred_account_id}, status={self.status}, "
            f"reward_status={self.reward_status})>"
        )

    @property
    def is_credited(self) -> bool:
        """Whether the reward has been claimed."""
        return self.reward_status == RewardStatus.CREDITED
