"""
RewardRateSettings model.

Stores referral reward rates and milestone rules. Exactly one row may be
active at a time; more than one active row is a configuration error.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from referral_ledger.models.base import Base
from referral_ledger.models.enums import RewardType
from referral_ledger.models.types import JSONType, MoneyType, PercentType


class RewardRateSettings(Base):
    """
    RewardRateSettings entity.

    Attributes:
        id: Primary key
        reward_type: credit / percent / hybrid
        referrer_reward_value: Fixed credit for the referrer
        referred_reward_value: Fixed credit for the referred account
        referrer_reward_percent: Percent of the qualifying payment (referrer)
        referred_reward_percent: Percent of the qualifying payment (referred)
        milestone_rules: List of {"count": int, "bonus": number}
        reward_cap: Monthly cap on a referrer's referral rewards (None = no cap)
        is_active: Whether these rates are in force
        created_at: Creation timestamp
        updated_at: Last modification timestamp
    """

    __tablename__ = "reward_rate_settings"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    reward_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RewardType.CREDIT.value
    )

    referrer_reward_value: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    referred_reward_value: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    referrer_reward_percent: Mapped[Decimal] = mapped_column(
        PercentType, nullable=False, default=Decimal("0")
    )
    referred_reward_percent: Mapped[Decimal] = mapped_column(
        PercentType, nullable=False, default=Decimal("0")
    )

    milestone_rules: Mapped[list] = mapped_column(
        JSONType, nullable=False, default=list
    )

    reward_cap: Mapped[Decimal | None] = mapped_column(
        MoneyType, nullable=True
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<RewardRateSettings(id={self.id}, type={self.reward_type}, "
            f"referrer={self.referrer_reward_value}, "
            f"referred={self.referred_reward_value}, active={self.is_active})>"
        )
