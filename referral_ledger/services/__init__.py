"""
Services.

Business logic layer.
"""

from referral_ledger.services.analytics_service import (
    ReferralAnalyticsService,
    conversion_rate,
)
from referral_ledger.services.base_service import BaseService, log_operation
from referral_ledger.services.ledger_service import LedgerService
from referral_ledger.services.referral import (
    IssueResult,
    MilestoneDetector,
    ReferralTrackingService,
    RewardIssuer,
    RewardNotification,
)
from referral_ledger.services.reward_settings_service import (
    MarginImpact,
    MilestoneRule,
    RewardAmounts,
    RewardRates,
    RewardSettingsService,
)

__all__ = [
    # Base Service Infrastructure
    "BaseService",
    "log_operation",
    # Ledger
    "LedgerService",
    # Referral rewards
    "RewardIssuer",
    "IssueResult",
    "RewardNotification",
    "MilestoneDetector",
    "ReferralTrackingService",
    # Settings
    "RewardSettingsService",
    "RewardRates",
    "RewardAmounts",
    "MilestoneRule",
    "MarginImpact",
    # Analytics
    "ReferralAnalyticsService",
    "conversion_rate",
]
