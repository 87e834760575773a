"""
ShareEvent model.

Raw share and click events for referral links, used by analytics only.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from referral_ledger.models.base import Base
from referral_ledger.models.enums import ShareEventType


class ShareEvent(Base):
    """ShareEvent entity."""

    __tablename__ = "share_events"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    referrer_account_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    referral_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("referrals.id", ondelete="SET NULL"),
        nullable=True,
    )
    channel: Mapped[str | None] = mapped_column(String(50), nullable=True)
    event_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ShareEventType.SHARE.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ShareEvent(id={self.id}, referrer={self.referrer_account_id}, "
            f"type={self.event_type}, channel={self.channel})>"
        )
