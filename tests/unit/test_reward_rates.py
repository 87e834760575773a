"""
Unit tests for reward rate calculation.

Tests cover:
- Credit, percent and hybrid reward amounts
- Milestone rule normalization
- Monthly cap clipping
- Margin impact estimates
- Validation of malformed settings
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from referral_ledger.models.enums import RewardType
from referral_ledger.services.reward_settings_service import (
    RewardRates,
    quantize_credit,
)
from referral_ledger.utils.exceptions import InvalidSettingsError


class TestComputeRewards:
    """Test reward amount calculation."""

    def test_credit_rewards_are_fixed(self, credit_rates):
        """Credit rewards ignore the payment amount."""
        amounts = credit_rates.compute_rewards(Decimal("999"))

        assert amounts.referrer_reward == Decimal("20.00")
        assert amounts.referred_reward == Decimal("10.00")

    def test_percent_rewards(self, percent_rates):
        """Percent rewards are a share of the payment."""
        amounts = percent_rates.compute_rewards(Decimal("200"))

        assert amounts.referrer_reward == Decimal("20.00")
        assert amounts.referred_reward == Decimal("10.00")

    def test_percent_rewards_without_payment_are_zero(self, percent_rates):
        """No payment amount means nothing to take a share of."""
        amounts = percent_rates.compute_rewards(None)

        assert amounts.referrer_reward == Decimal("0")
        assert amounts.referred_reward == Decimal("0")
        assert percent_rates.needs_payment_amount is True

    def test_hybrid_rewards_add_both_parts(self, hybrid_rates):
        """Hybrid rewards are fixed credit plus percent."""
        amounts = hybrid_rates.compute_rewards(Decimal("100"))

        assert amounts.referrer_reward == Decimal("15.00")
        assert amounts.referred_reward == Decimal("7.00")

    def test_percent_rewards_round_half_up_to_cents(self, percent_rates):
        """Amounts are rounded to cents, half up."""
        # 10% of 0.25 = 0.025 -> 0.03
        amounts = percent_rates.compute_rewards(Decimal("0.25"))

        assert amounts.referrer_reward == Decimal("0.03")

    def test_quantize_credit(self):
        """Test cent rounding helper."""
        assert quantize_credit(Decimal("1.005")) == Decimal("1.01")
        assert quantize_credit(Decimal("1.004")) == Decimal("1.00")


class TestMilestoneNormalization:
    """Test milestone rule normalization."""

    def test_rules_sorted_by_count(self):
        """Rules are ordered by threshold."""
        rates = RewardRates(
            milestones=(
                {"count": 10, "bonus": "100"},
                {"count": 5, "bonus": "50"},
            )
        )

        assert [rule.count for rule in rates.milestones] == [5, 10]

    def test_duplicate_threshold_keeps_first_bonus(self):
        """Two rules for one count collapse to the first one."""
        rates = RewardRates(
            milestones=(
                {"count": 5, "bonus": "50"},
                {"count": 5, "bonus": "70"},
            )
        )

        assert len(rates.milestones) == 1
        assert rates.milestones[0].bonus == Decimal("50")

    def test_zero_count_rejected(self):
        """A milestone needs at least one referral."""
        with pytest.raises(ValidationError):
            RewardRates(milestones=({"count": 0, "bonus": "50"},))

    def test_non_positive_bonus_rejected(self):
        """A milestone bonus must be positive."""
        with pytest.raises(ValidationError):
            RewardRates(milestones=({"count": 5, "bonus": "0"},))


class TestRewardCap:
    """Test monthly cap clipping."""

    def test_no_cap(self, credit_rates):
        """Without a cap the reward is unchanged."""
        assert credit_rates.apply_cap(Decimal("20"), Decimal("1000")) == Decimal("20")

    def test_cap_clips_remaining(self):
        """Reward is clipped to what is left of the cap."""
        rates = RewardRates(reward_cap=Decimal("50"))

        assert rates.apply_cap(Decimal("20"), Decimal("0")) == Decimal("20")
        assert rates.apply_cap(Decimal("20"), Decimal("40")) == Decimal("10.00")
        assert rates.apply_cap(Decimal("20"), Decimal("50")) == Decimal("0")
        assert rates.apply_cap(Decimal("20"), Decimal("70")) == Decimal("0")


class TestMarginImpact:
    """Test cost estimates."""

    def test_margin_impact(self, credit_rates):
        """Cost, CPA and break-even for 20/10 rewards."""
        impact = credit_rates.margin_impact()

        assert impact.cost_per_referral == Decimal("30.00")
        assert impact.estimated_cpa == Decimal("90.00")
        assert impact.break_even_subscriptions == 5

    def test_break_even_rounds_up(self):
        """Partial subscriptions round up."""
        rates = RewardRates(referrer_reward_value=Decimal("30"))

        assert rates.margin_impact().break_even_subscriptions == 4

    def test_break_even_undefined_without_referrer_reward(self):
        """No referrer reward means no break-even point."""
        assert RewardRates().margin_impact().break_even_subscriptions is None


class TestFromRow:
    """Test building rates from a settings row."""

    def _row(self, **overrides):
        values = {
            "id": 7,
            "reward_type": "credit",
            "referrer_reward_value": Decimal("20"),
            "referred_reward_value": Decimal("10"),
            "referrer_reward_percent": Decimal("0"),
            "referred_reward_percent": Decimal("0"),
            "milestone_rules": [{"count": 5, "bonus": "50"}],
            "reward_cap": None,
        }
        values.update(overrides)
        return SimpleNamespace(**values)

    def test_valid_row(self):
        """Test row values are carried over."""
        rates = RewardRates.from_row(self._row())

        assert rates.settings_id == 7
        assert rates.reward_type is RewardType.CREDIT
        assert rates.milestones[0].count == 5

    def test_negative_reward_rejected(self):
        """Negative rewards are invalid settings."""
        with pytest.raises(InvalidSettingsError):
            RewardRates.from_row(self._row(referrer_reward_value=Decimal("-1")))

    def test_unknown_reward_type_rejected(self):
        """Unknown reward types are invalid settings."""
        with pytest.raises(InvalidSettingsError):
            RewardRates.from_row(self._row(reward_type="points"))

    def test_malformed_milestones_rejected(self):
        """Milestone rules must have a count and a bonus."""
        with pytest.raises(InvalidSettingsError):
            RewardRates.from_row(self._row(milestone_rules=[{"count": 5}]))

    def test_null_milestones_treated_as_empty(self):
        """Test missing rule list."""
        assert RewardRates.from_row(self._row(milestone_rules=None)).milestones == ()
