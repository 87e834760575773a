"""
Referral services package.

Contains the services that turn referrals into ledger credits:
- reward_issuer: claims a referral and writes its ledger entries
- milestone_detector: awards one-time referral-count bonuses
- tracking: records accounts, referrals, sign-ups and share events
"""

from referral_ledger.services.referral.milestone_detector import (
    MilestoneBonus,
    MilestoneDetector,
)
from referral_ledger.services.referral.reward_issuer import (
    IssueResult,
    RewardIssuer,
    RewardNotification,
)
from referral_ledger.services.referral.tracking import ReferralTrackingService


__all__ = [
    # Reward processing
    "RewardIssuer",
    "IssueResult",
    "RewardNotification",
    "MilestoneDetector",
    "MilestoneBonus",
    # Inputs
    "ReferralTrackingService",
]
