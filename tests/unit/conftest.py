"""
Shared fixtures for unit tests.

This module provides common fixtures used across multiple test modules:
- Credit, percent and hybrid reward rates
"""

from decimal import Decimal

import pytest

from referral_ledger.models.enums import RewardType
from referral_ledger.services.reward_settings_service import RewardRates


@pytest.fixture
def credit_rates():
    """
    Fixed credit rates.

    Default values:
    - referrer: 20
    - referred: 10
    - milestone: 50 at 5 referrals
    """
    return RewardRates(
        reward_type=RewardType.CREDIT,
        referrer_reward_value=Decimal("20"),
        referred_reward_value=Decimal("10"),
        milestones=({"count": 5, "bonus": Decimal("50")},),
    )


@pytest.fixture
def percent_rates():
    """10% / 5% of the qualifying payment."""
    return RewardRates(
        reward_type=RewardType.PERCENT,
        referrer_reward_percent=Decimal("10"),
        referred_reward_percent=Decimal("5"),
    )


@pytest.fixture
def hybrid_rates():
    """Fixed 5/2 plus 10% / 5% of the qualifying payment."""
    return RewardRates(
        reward_type=RewardType.HYBRID,
        referrer_reward_value=Decimal("5"),
        referred_reward_value=Decimal("2"),
        referrer_reward_percent=Decimal("10"),
        referred_reward_percent=Decimal("5"),
    )
