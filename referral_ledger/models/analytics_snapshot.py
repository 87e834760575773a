"""
AnalyticsSnapshot model.

Point-in-time referral aggregates keyed by (period_date, period_type).
Each recompute overwrites the row for its key.
"""

from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import Date, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from referral_ledger.models.base import Base
from referral_ledger.models.types import JSONType, MoneyType, PercentType


class AnalyticsSnapshot(Base):
    """
    AnalyticsSnapshot entity.

    Attributes:
        id: Primary key
        period_date: Date the snapshot is keyed on
        period_type: daily / weekly / monthly
        total_sent: Referrals created
        total_signups: Referrals that reached sign-up
        total_conversions: Referrals whose reward was credited
        conversion_rate: total_conversions / total_sent * 100, 2 decimals
        total_rewards_paid: Sum of referrer + referred rewards credited
        total_shares: Share events recorded
        total_clicks: Click events recorded
        channel_breakdown: {channel: referral count}
    """

    __tablename__ = "analytics_snapshots"
    __table_args__ = (
        UniqueConstraint(
            "period_date", "period_type", name="uq_analytics_snapshots_period"
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    period_date: Mapped[date] = mapped_column(Date, nullable=False)
    period_type: Mapped[str] = mapped_column(String(20), nullable=False)

    total_sent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_signups: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    total_conversions: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    conversion_rate: Mapped[Decimal] = mapped_column(
        PercentType, nullable=False, default=Decimal("0")
    )
    total_rewards_paid: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    total_shares: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    total_clicks: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    channel_breakdown: Mapped[dict] = mapped_column(
        JSONType, nullable=False, default=dict
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<AnalyticsSnapshot({self.period_type} {self.period_date}, "
            f"sent={self.total_sent}, conversions={self.total_conversions})>"
        )

    def to_dict(self) -> dict[str, Any]:
        """Canonical serialization of the snapshot."""
        return {
            "period_date": self.period_date.isoformat(),
            "period_type": self.period_type,
            "total_sent": self.total_sent,
            "total_signups": self.total_signups,
            "total_conversions": self.total_conversions,
            "conversion_rate": f"{Decimal(self.conversion_rate):.2f}",
            "total_rewards_paid": f"{Decimal(self.total_rewards_paid):.2f}",
            "total_shares": self.total_shares,
            "total_clicks": self.total_clicks,
            "channel_breakdown": dict(sorted(self.channel_breakdown.items())),
        }
