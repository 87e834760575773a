"""
Referral analytics service.

Recomputes point-in-time referral aggregates and overwrites the snapshot
row of a period key. Independent of the ledger's correctness: a failed or
stale snapshot never affects balances.
"""

from collections import Counter
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.analytics_snapshot import AnalyticsSnapshot
from referral_ledger.models.enums import (
    PeriodType,
    ReferralStatus,
    RewardStatus,
    ShareEventType,
)
from referral_ledger.models.referral import Referral
from referral_ledger.repositories.analytics_snapshot_repository import (
    AnalyticsSnapshotRepository,
)
from referral_ledger.repositories.referral_repository import ReferralRepository
from referral_ledger.repositories.share_event_repository import (
    ShareEventRepository,
)
from referral_ledger.services.base_service import BaseService, log_operation
from referral_ledger.utils.datetime_utils import period_window, utc_today
from referral_ledger.utils.db_decorators import with_auto_commit


CENT = Decimal("0.01")
DEFAULT_CHANNEL = "direct"


def conversion_rate(total_conversions: int, total_sent: int) -> Decimal:
    """
    Conversion rate in percent, rounded half-up to 2 decimals.

    Returns 0 when nothing was sent.
    """
    if total_sent == 0:
        return Decimal("0.00")
    rate = Decimal(total_conversions) / Decimal(total_sent) * 100
    return rate.quantize(CENT, rounding=ROUND_HALF_UP)


def _before(moment: datetime | None, end: datetime) -> bool:
    """Whether a stored timestamp precedes ``end``."""
    if moment is None:
        return False
    if moment.tzinfo is None:
        # SQLite returns naive UTC values
        return moment < end.replace(tzinfo=None)
    return moment < end


class ReferralAnalyticsService(BaseService):
    """Aggregates referral activity into snapshots."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize analytics service."""
        super().__init__(session)
        self.referral_repo = ReferralRepository(session)
        self.share_repo = ShareEventRepository(session)
        self.snapshot_repo = AnalyticsSnapshotRepository(session)

    @log_operation
    @with_auto_commit
    async def recompute(
        self,
        period_date: date | None = None,
        period_type: PeriodType | str = PeriodType.DAILY,
    ) -> AnalyticsSnapshot:
        """
        Recompute and overwrite the snapshot of a period.

        Totals are cumulative as of the end of the period window, so a
        snapshot for today equals the live totals and recomputing a past
        period reproduces it.

        Args:
            period_date: Date inside the period (default: today, UTC)
            period_type: daily, weekly or monthly

        Returns:
            Stored snapshot
        """
        period_date = period_date or utc_today()
        period_type = PeriodType(period_type).value
        _, window_end = period_window(period_date, period_type)

        referrals = await self.referral_repo.find_created_before(window_end)
        events = await self.share_repo.count_by_type_before(window_end)

        values = self._aggregate(referrals, window_end)
        values["total_shares"] = events.get(ShareEventType.SHARE.value, 0)
        values["total_clicks"] = events.get(ShareEventType.CLICK.value, 0)

        snapshot = await self.snapshot_repo.upsert(period_date, period_type, **values)

        self.logger.info(
            "Analytics snapshot written",
            extra={
                "period_date": period_date.isoformat(),
                "period_type": period_type,
                "total_sent": values["total_sent"],
                "total_conversions": values["total_conversions"],
            },
        )
        return snapshot

    async def get_snapshot(
        self, period_date: date, period_type: PeriodType | str = PeriodType.DAILY
    ) -> AnalyticsSnapshot | None:
        """Stored snapshot of a period, if any."""
        return await self.snapshot_repo.get_by_period(
            period_date, PeriodType(period_type).value
        )

    @staticmethod
    def _aggregate(referrals: list[Referral], window_end: datetime) -> dict:
        """Fold referrals into snapshot columns."""
        total_signups = 0
        total_conversions = 0
        total_rewards = Decimal("0")
        channels: Counter[str] = Counter()

        for referral in referrals:
            channels[referral.channel or DEFAULT_CHANNEL] += 1

            credited = (
                referral.reward_status == RewardStatus.CREDITED
                and _before(referral.credited_at, window_end)
            )
            signed_up = credited or (
                referral.status in (ReferralStatus.SIGNED_UP, ReferralStatus.PAID)
                and _before(referral.signed_up_at, window_end)
            )

            if signed_up:
                total_signups += 1
            if credited:
                total_conversions += 1
                total_rewards += (
                    referral.reward_value + referral.referred_reward_value
                )

        total_sent = len(referrals)
        return {
            "total_sent": total_sent,
            "total_signups": total_signups,
            "total_conversions": total_conversions,
            "conversion_rate": conversion_rate(total_conversions, total_sent),
            "total_rewards_paid": total_rewards.quantize(CENT, rounding=ROUND_HALF_UP),
            "channel_breakdown": dict(sorted(channels.items())),
        }
