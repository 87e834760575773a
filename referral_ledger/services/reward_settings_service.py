"""
Reward settings service.

Loads the single active RewardRateSettings row into a validated,
immutable ``RewardRates`` value and manages settings rows.
"""

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.enums import RewardType
from referral_ledger.models.reward_rate_settings import RewardRateSettings
from referral_ledger.repositories.reward_settings_repository import (
    RewardSettingsRepository,
)
from referral_ledger.services.base_service import BaseService
from referral_ledger.utils.db_decorators import with_auto_commit
from referral_ledger.utils.exceptions import (
    ConfigConflictError,
    ConfigMissingError,
    InvalidSettingsError,
    SettingsNotFoundError,
)


CENT = Decimal("0.01")
ZERO = Decimal("0")

# Estimated acquisition cost is three referral payouts per converted customer
CPA_MULTIPLIER = 3
BREAK_EVEN_BASE = Decimal("100")


def quantize_credit(value: Decimal) -> Decimal:
    """Round a credit amount to cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class MilestoneRule(BaseModel):
    """One milestone: reaching ``count`` credited referrals pays ``bonus``."""

    model_config = ConfigDict(frozen=True)

    count: int = Field(..., ge=1)
    bonus: Decimal = Field(..., gt=0)


@dataclass(frozen=True)
class RewardAmounts:
    """Rewards computed for one referral."""

    referrer_reward: Decimal
    referred_reward: Decimal


@dataclass(frozen=True)
class MarginImpact:
    """Cost estimates of a settings row."""

    cost_per_referral: Decimal
    estimated_cpa: Decimal
    break_even_subscriptions: int | None


class RewardRates(BaseModel):
    """
    Validated reward configuration, loaded once per issuance.

    Milestone rules are normalized on construction: one rule per distinct
    count (the first configured bonus wins), sorted by count.
    """

    model_config = ConfigDict(frozen=True)

    settings_id: int | None = None
    reward_type: RewardType = RewardType.CREDIT
    referrer_reward_value: Decimal = Field(default=ZERO, ge=0)
    referred_reward_value: Decimal = Field(default=ZERO, ge=0)
    referrer_reward_percent: Decimal = Field(default=ZERO, ge=0, le=100)
    referred_reward_percent: Decimal = Field(default=ZERO, ge=0, le=100)
    milestones: tuple[MilestoneRule, ...] = ()
    reward_cap: Decimal | None = Field(default=None, ge=0)

    @field_validator("milestones", mode="after")
    @classmethod
    def normalize_milestones(
        cls, rules: tuple[MilestoneRule, ...]
    ) -> tuple[MilestoneRule, ...]:
        """Keep the first rule per distinct count, ascending."""
        distinct: dict[int, MilestoneRule] = {}
        for rule in rules:
            distinct.setdefault(rule.count, rule)
        return tuple(distinct[count] for count in sorted(distinct))

    @classmethod
    def from_row(cls, row: RewardRateSettings) -> "RewardRates":
        """
        Build validated rates from a settings row.

        Raises:
            InvalidSettingsError: If the row holds malformed values
        """
        try:
            return cls(
                settings_id=row.id,
                reward_type=row.reward_type,
                referrer_reward_value=row.referrer_reward_value,
                referred_reward_value=row.referred_reward_value,
                referrer_reward_percent=row.referrer_reward_percent,
                referred_reward_percent=row.referred_reward_percent,
                milestones=tuple(row.milestone_rules or ()),
                reward_cap=row.reward_cap,
            )
        except ValidationError as e:
            raise InvalidSettingsError(
                f"Reward settings {row.id} are invalid: {e}"
            ) from e

    def compute_rewards(self, payment_amount: Decimal | None = None) -> RewardAmounts:
        """
        Compute referrer and referred rewards.

        Args:
            payment_amount: Qualifying payment, used by percent rewards

        Returns:
            Rewards rounded to cents
        """
        referrer = ZERO
        referred = ZERO

        if self.reward_type in (RewardType.CREDIT, RewardType.HYBRID):
            referrer += self.referrer_reward_value
            referred += self.referred_reward_value

        if self.reward_type in (RewardType.PERCENT, RewardType.HYBRID):
            if payment_amount is not None:
                referrer += payment_amount * self.referrer_reward_percent / 100
                referred += payment_amount * self.referred_reward_percent / 100

        return RewardAmounts(
            referrer_reward=quantize_credit(referrer),
            referred_reward=quantize_credit(referred),
        )

    def apply_cap(self, reward: Decimal, credited_this_month: Decimal) -> Decimal:
        """
        Clip a referrer reward to the monthly cap.

        Args:
            reward: Uncapped reward
            credited_this_month: Referral rewards already credited this month

        Returns:
            Reward that keeps the month's total within the cap
        """
        if self.reward_cap is None:
            return reward
        remaining = max(self.reward_cap - credited_this_month, ZERO)
        return min(reward, quantize_credit(remaining))

    @property
    def needs_payment_amount(self) -> bool:
        """Whether rewards depend on the qualifying payment."""
        return self.reward_type in (RewardType.PERCENT, RewardType.HYBRID)

    def margin_impact(self) -> MarginImpact:
        """Cost per referral, estimated CPA and break-even subscriptions."""
        cost = self.referrer_reward_value + self.referred_reward_value
        break_even = None
        if self.referrer_reward_value > 0:
            break_even = math.ceil(BREAK_EVEN_BASE / self.referrer_reward_value)
        return MarginImpact(
            cost_per_referral=quantize_credit(cost),
            estimated_cpa=quantize_credit(cost * CPA_MULTIPLIER),
            break_even_subscriptions=break_even,
        )


class RewardSettingsService(BaseService):
    """Service for reward settings rows."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize reward settings service."""
        super().__init__(session)
        self.settings_repo = RewardSettingsRepository(session)

    async def load_active(self) -> RewardRates:
        """
        Load the single active settings row.

        Returns:
            Validated reward rates

        Raises:
            ConfigMissingError: If no row is active
            ConfigConflictError: If more than one row is active
            InvalidSettingsError: If the active row is malformed
        """
        rows = await self.settings_repo.get_active_rows()

        if not rows:
            raise ConfigMissingError("No active reward settings")

        if len(rows) > 1:
            ids = [row.id for row in rows]
            self.logger.error(
                "Multiple active reward settings rows",
                extra={"settings_ids": ids},
            )
            raise ConfigConflictError(
                f"Expected one active reward settings row, found {len(rows)}: {ids}"
            )

        return RewardRates.from_row(rows[0])

    @with_auto_commit
    async def create_settings(
        self,
        referrer_reward_value: Decimal,
        referred_reward_value: Decimal,
        milestone_rules: list[dict] | None = None,
        reward_type: RewardType = RewardType.CREDIT,
        referrer_reward_percent: Decimal = ZERO,
        referred_reward_percent: Decimal = ZERO,
        reward_cap: Decimal | None = None,
        activate: bool = False,
    ) -> RewardRateSettings:
        """
        Create a settings row, optionally making it the active one.

        Values are validated before anything is written.

        Returns:
            Created settings row
        """
        try:
            rates = RewardRates(
                reward_type=reward_type,
                referrer_reward_value=referrer_reward_value,
                referred_reward_value=referred_reward_value,
                referrer_reward_percent=referrer_reward_percent,
                referred_reward_percent=referred_reward_percent,
                milestones=tuple(milestone_rules or ()),
                reward_cap=reward_cap,
            )
        except ValidationError as e:
            raise InvalidSettingsError(f"Invalid reward settings: {e}") from e

        row = await self.settings_repo.create(
            reward_type=rates.reward_type.value,
            referrer_reward_value=rates.referrer_reward_value,
            referred_reward_value=rates.referred_reward_value,
            referrer_reward_percent=rates.referrer_reward_percent,
            referred_reward_percent=rates.referred_reward_percent,
            milestone_rules=[
                {"count": rule.count, "bonus": str(rule.bonus)}
                for rule in rates.milestones
            ],
            reward_cap=rates.reward_cap,
            is_active=False,
        )

        if activate:
            await self.settings_repo.set_only_active(row.id)
            row = await self.settings_repo.get_fresh(row.id)

        self.logger.info(
            "Reward settings created",
            extra={"settings_id": row.id, "active": row.is_active},
        )
        return row

    @with_auto_commit
    async def activate(self, settings_id: int) -> RewardRateSettings:
        """
        Make one settings row the only active row.

        Args:
            settings_id: Settings row ID

        Returns:
            Activated row

        Raises:
            SettingsNotFoundError: If the row does not exist
        """
        row = await self.settings_repo.get_by_id(settings_id)
        if row is None:
            raise SettingsNotFoundError(f"Reward settings {settings_id} not found")

        await self.settings_repo.set_only_active(settings_id)

        self.logger.info("Reward settings activated", extra={"settings_id": settings_id})
        return await self.settings_repo.get_fresh(settings_id)
