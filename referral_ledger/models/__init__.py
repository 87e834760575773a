"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from referral_ledger.models.account import Account
from referral_ledger.models.analytics_snapshot import AnalyticsSnapshot
from referral_ledger.models.base import Base
from referral_ledger.models.enums import (
    LedgerSourceType,
    PeriodType,
    ReferralStatus,
    RewardStatus,
    RewardType,
    ShareEventType,
)
from referral_ledger.models.ledger_entry import LedgerEntry
from referral_ledger.models.milestone_award import MilestoneAward
from referral_ledger.models.referral import Referral
from referral_ledger.models.reward_rate_settings import RewardRateSettings
from referral_ledger.models.share_event import ShareEvent

__all__ = [
    # Base
    "Base",
    # Enums
    "LedgerSourceType",
    "PeriodType",
    "ReferralStatus",
    "RewardStatus",
    "RewardType",
    "ShareEventType",
    # Ledger
    "Account",
    "LedgerEntry",
    "MilestoneAward",
    # Referrals
    "Referral",
    "ShareEvent",
    "RewardRateSettings",
    # Analytics
    "AnalyticsSnapshot",
]
