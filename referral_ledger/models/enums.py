"""
Model enumerations.

Values are stored as plain strings in ``String`` columns.
"""

from enum import StrEnum


class LedgerSourceType(StrEnum):
    """Origin of a ledger entry."""

    REFERRAL_REWARD = "REFERRAL_REWARD"  # credit to the referrer
    REFERRAL_WELCOME = "REFERRAL_WELCOME"  # credit to the referred account
    MILESTONE_BONUS = "MILESTONE_BONUS"  # one-time bonus for a referral count


class ReferralStatus(StrEnum):
    """Referral lifecycle, forward-only."""

    PENDING = "PENDING"
    SIGNED_UP = "SIGNED_UP"
    PAID = "PAID"

    @property
    def rank(self) -> int:
        return _REFERRAL_STATUS_ORDER.index(self)


_REFERRAL_STATUS_ORDER = (
    ReferralStatus.PENDING,
    ReferralStatus.SIGNED_UP,
    ReferralStatus.PAID,
)


class RewardStatus(StrEnum):
    """Referral reward state. UNCREDITED -> CREDITED, once."""

    UNCREDITED = "UNCREDITED"
    CREDITED = "CREDITED"


class RewardType(StrEnum):
    """How referral rewards are computed."""

    CREDIT = "credit"  # fixed credit amounts
    PERCENT = "percent"  # percent of the qualifying payment
    HYBRID = "hybrid"  # both added together


class ShareEventType(StrEnum):
    """Raw share/click events feeding analytics."""

    SHARE = "share"
    CLICK = "click"


class PeriodType(StrEnum):
    """Analytics snapshot period."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
