"""Integration tests for reward settings rows."""

from decimal import Decimal

import pytest

from referral_ledger.models.enums import RewardType
from referral_ledger.repositories.reward_settings_repository import (
    RewardSettingsRepository,
)
from referral_ledger.services.reward_settings_service import RewardSettingsService
from referral_ledger.utils.exceptions import (
    ConfigMissingError,
    InvalidSettingsError,
    SettingsNotFoundError,
)


class TestLoadActive:
    """Test loading the active row."""

    @pytest.mark.asyncio
    async def test_missing(self, session):
        """Test no active row."""
        with pytest.raises(ConfigMissingError):
            await RewardSettingsService(session).load_active()

    @pytest.mark.asyncio
    async def test_loads_active_row(self, session, active_settings):
        """Test values of the active row."""
        rates = await RewardSettingsService(session).load_active()

        assert rates.settings_id == active_settings
        assert rates.reward_type is RewardType.CREDIT
        assert rates.referrer_reward_value == Decimal("20")
        assert rates.referred_reward_value == Decimal("10")
        assert [(rule.count, rule.bonus) for rule in rates.milestones] == [
            (5, Decimal("50"))
        ]

    @pytest.mark.asyncio
    async def test_malformed_row(self, session):
        """A row edited into an invalid state is reported."""
        await RewardSettingsRepository(session).create(
            reward_type="credit",
            referrer_reward_value=Decimal("20"),
            referred_reward_value=Decimal("10"),
            milestone_rules=[{"count": 0, "bonus": "50"}],
            is_active=True,
        )
        await session.commit()

        with pytest.raises(InvalidSettingsError):
            await RewardSettingsService(session).load_active()


class TestManageSettings:
    """Test creating and activating rows."""

    @pytest.mark.asyncio
    async def test_activate_switches_rows(self, session, active_settings):
        """Activating a row deactivates the previous one."""
        service = RewardSettingsService(session)
        newer = await service.create_settings(
            referrer_reward_value=Decimal("25"),
            referred_reward_value=Decimal("5"),
        )
        assert newer.is_active is False

        await service.activate(newer.id)

        active = await RewardSettingsRepository(session).get_active_rows()
        assert [row.id for row in active] == [newer.id]
        assert (await service.load_active()).referrer_reward_value == Decimal("25")

    @pytest.mark.asyncio
    async def test_activate_unknown(self, session):
        """Test activating a missing row."""
        with pytest.raises(SettingsNotFoundError):
            await RewardSettingsService(session).activate(77)

    @pytest.mark.asyncio
    async def test_invalid_values_rejected(self, session):
        """Nothing is written for invalid values."""
        with pytest.raises(InvalidSettingsError):
            await RewardSettingsService(session).create_settings(
                referrer_reward_value=Decimal("-5"),
                referred_reward_value=Decimal("10"),
            )

        assert await RewardSettingsRepository(session).count() == 0
