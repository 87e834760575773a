"""Integration tests for milestone bonuses."""

from decimal import Decimal

import pytest

from referral_ledger.repositories.milestone_award_repository import (
    MilestoneAwardRepository,
)
from referral_ledger.services.ledger_service import LedgerService
from referral_ledger.services.referral import MilestoneDetector, RewardIssuer
from referral_ledger.services.reward_settings_service import (
    MilestoneRule,
    RewardSettingsService,
)


async def _credit_referrals(session_maker, make_account, make_referral, referrer, n):
    results = []
    for _ in range(n):
        referred = await make_account()
        referral_id = await make_referral(referrer, referred)
        async with session_maker() as session:
            results.append(await RewardIssuer(session).issue(referral_id))
    return results


class TestMilestoneDetector:
    """Test milestone detection."""

    @pytest.mark.asyncio
    async def test_awarded_exactly_once(
        self, session, session_maker, make_account, make_referral, active_settings
    ):
        """Re-checking at the same count awards nothing."""
        referrer = await make_account()
        await _credit_referrals(session_maker, make_account, make_referral, referrer, 5)

        rules = (MilestoneRule(count=5, bonus=Decimal("50")),)
        again = await MilestoneDetector(session).check_and_award(referrer, rules)
        await session.commit()

        assert again == []
        awards = await MilestoneAwardRepository(session).get_for_account(referrer)
        assert [award.threshold for award in awards] == [5]
        assert await LedgerService(session).balance(referrer) == Decimal("150")

    @pytest.mark.asyncio
    async def test_not_awarded_past_threshold(
        self, session_maker, make_account, make_referral, active_settings
    ):
        """Credits after the milestone do not pay it again."""
        referrer = await make_account()
        results = await _credit_referrals(
            session_maker, make_account, make_referral, referrer, 7
        )

        assert [len(r.milestones) for r in results] == [0, 0, 0, 0, 1, 0, 0]

    @pytest.mark.asyncio
    async def test_multiple_thresholds(
        self, session, session_maker, make_account, make_referral
    ):
        """Each configured threshold pays on its own count."""
        await RewardSettingsService(session).create_settings(
            referrer_reward_value=Decimal("1"),
            referred_reward_value=Decimal("0"),
            milestone_rules=[
                {"count": 3, "bonus": "30"},
                {"count": 1, "bonus": "5"},
            ],
            activate=True,
        )
        referrer = await make_account()
        results = await _credit_referrals(
            session_maker, make_account, make_referral, referrer, 3
        )

        assert [[b.threshold for b in r.milestones] for r in results] == [[1], [], [3]]
        async with session_maker() as check:
            # 3 x 1 credit + 5 + 30
            assert await LedgerService(check).balance(referrer) == Decimal("38")

    @pytest.mark.asyncio
    async def test_duplicate_threshold_pays_once(
        self, session, session_maker, make_account, make_referral
    ):
        """Two rules for one count pay a single bonus."""
        await RewardSettingsService(session).create_settings(
            referrer_reward_value=Decimal("0"),
            referred_reward_value=Decimal("0"),
            milestone_rules=[
                {"count": 2, "bonus": "5"},
                {"count": 2, "bonus": "7"},
            ],
            activate=True,
        )
        referrer = await make_account()
        results = await _credit_referrals(
            session_maker, make_account, make_referral, referrer, 2
        )

        assert len(results[1].milestones) == 1
        async with session_maker() as check:
            assert await LedgerService(check).balance(referrer) == Decimal("5")

    @pytest.mark.asyncio
    async def test_no_rules(self, session, make_account):
        """Test empty rule set."""
        referrer = await make_account()

        assert await MilestoneDetector(session).check_and_award(referrer, ()) == []
