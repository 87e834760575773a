"""Integration tests for referral analytics snapshots."""

import asyncio
from datetime import date, timedelta
from decimal import Decimal

import pytest

from referral_ledger.models.analytics_snapshot import AnalyticsSnapshot
from referral_ledger.models.enums import PeriodType, ShareEventType
from referral_ledger.repositories.analytics_snapshot_repository import (
    AnalyticsSnapshotRepository,
)
from referral_ledger.services.analytics_service import ReferralAnalyticsService
from referral_ledger.services.referral import RewardIssuer
from referral_ledger.utils.datetime_utils import utc_today


async def _recompute(session_maker, period_date=None, period_type=PeriodType.DAILY):
    async with session_maker() as session:
        snapshot = await ReferralAnalyticsService(session).recompute(
            period_date, period_type
        )
        return snapshot.to_dict()


class TestAnalyticsRecompute:
    """Test snapshot contents."""

    @pytest.mark.asyncio
    async def test_empty(self, session_maker):
        """No referrals yields zeros and a 0 conversion rate."""
        snapshot = await _recompute(session_maker)

        assert snapshot["total_sent"] == 0
        assert snapshot["total_conversions"] == 0
        assert snapshot["conversion_rate"] == "0.00"
        assert snapshot["total_rewards_paid"] == "0.00"
        assert snapshot["channel_breakdown"] == {}

    @pytest.mark.asyncio
    async def test_counts(
        self, session, session_maker, tracking, make_account, make_referral,
        active_settings,
    ):
        """Test sent, sign-ups, conversions, rewards and channels."""
        referrer = await make_account()
        friend_a = await make_account()
        friend_b = await make_account()
        friend_c = await make_account()

        await make_referral(referrer, channel="email")
        signed_up = await make_referral(referrer, channel="email")
        converted = await make_referral(referrer)
        direct_paid = await make_referral(referrer, friend_c, channel="sms")

        await tracking.mark_signed_up(signed_up, friend_a)
        await tracking.mark_signed_up(converted, friend_b)
        for referral_id in (converted, direct_paid):
            async with session_maker() as issue_session:
                await RewardIssuer(issue_session).issue(referral_id)

        await tracking.record_share_event(referrer, channel="email")
        await tracking.record_share_event(referrer, channel="sms")
        await tracking.record_share_event(
            referrer, channel="email", event_type=ShareEventType.CLICK
        )

        snapshot = await _recompute(session_maker)

        assert snapshot["period_date"] == utc_today().isoformat()
        assert snapshot["period_type"] == "daily"
        assert snapshot["total_sent"] == 4
        assert snapshot["total_signups"] == 3
        assert snapshot["total_conversions"] == 2
        assert snapshot["conversion_rate"] == "50.00"
        # two referrals x (20 + 10)
        assert snapshot["total_rewards_paid"] == "60.00"
        assert snapshot["total_shares"] == 2
        assert snapshot["total_clicks"] == 1
        assert snapshot["channel_breakdown"] == {"direct": 1, "email": 2, "sms": 1}
        assert list(snapshot["channel_breakdown"]) == ["direct", "email", "sms"]

    @pytest.mark.asyncio
    async def test_past_period_excludes_later_activity(
        self, session_maker, make_account, make_referral
    ):
        """A snapshot for yesterday ignores referrals created today."""
        referrer = await make_account()
        await make_referral(referrer)

        snapshot = await _recompute(session_maker, utc_today() - timedelta(days=1))

        assert snapshot["total_sent"] == 0

    @pytest.mark.asyncio
    async def test_monthly_period(self, session_maker, make_account, make_referral):
        """Test monthly window includes today."""
        referrer = await make_account()
        await make_referral(referrer)

        snapshot = await _recompute(session_maker, period_type="monthly")

        assert snapshot["period_type"] == "monthly"
        assert snapshot["total_sent"] == 1


class TestAnalyticsIdempotency:
    """Test recomputing the same period."""

    @pytest.mark.asyncio
    async def test_recompute_is_stable(
        self, session, session_maker, make_account, make_referral, active_settings
    ):
        """Two recomputes without new data are identical."""
        referrer = await make_account()
        referral_id = await make_referral(referrer, channel="email")
        async with session_maker() as issue_session:
            await RewardIssuer(issue_session).issue(referral_id)

        first = await _recompute(session_maker)
        second = await _recompute(session_maker)

        assert first == second
        assert await AnalyticsSnapshotRepository(session).count() == 1

    @pytest.mark.asyncio
    async def test_recompute_overwrites(
        self, session, session_maker, make_account, make_referral
    ):
        """New data replaces the stored row for the period."""
        referrer = await make_account()
        await make_referral(referrer)
        first = await _recompute(session_maker)

        await make_referral(referrer)
        second = await _recompute(session_maker)

        assert first["total_sent"] == 1
        assert second["total_sent"] == 2
        assert await AnalyticsSnapshotRepository(session).count() == 1

        async with session_maker() as check:
            stored = await ReferralAnalyticsService(check).get_snapshot(utc_today())
            assert isinstance(stored, AnalyticsSnapshot)
            assert stored.total_sent == 2
            assert stored.conversion_rate == Decimal("0")

    @pytest.mark.asyncio
    async def test_concurrent_recomputes_of_new_period(
        self, session, session_maker, make_account, make_referral
    ):
        """Simultaneous recomputes of a missing key all succeed on one row."""
        referrer = await make_account()
        await make_referral(referrer, channel="email")
        period = date(2026, 10, 18)

        snapshots = await asyncio.gather(
            *(_recompute(session_maker, period) for _ in range(4))
        )

        assert all(snapshot == snapshots[0] for snapshot in snapshots)
        assert snapshots[0]["period_date"] == "2026-10-18"
        assert await AnalyticsSnapshotRepository(session).count() == 1
