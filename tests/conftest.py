"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for the settings module
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from referral_ledger.config.database import create_engine, create_session_maker
from referral_ledger.models import Base
from referral_ledger.services.referral import ReferralTrackingService
from referral_ledger.services.reward_settings_service import RewardSettingsService


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.refresh = AsyncMock()
    return session


@pytest.fixture
async def engine(tmp_path):
    """
    Engine on a fresh SQLite file with the full schema.

    NullPool gives every session its own connection, so sessions opened
    concurrently contend for the database lock like real workers do.
    """
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'referral_ledger.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    """Session factory bound to the test engine."""
    return create_session_maker(engine)


@pytest.fixture
async def session(session_maker):
    """Session for arranging and asserting test data."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def tracking(session):
    """Referral tracking service on the shared session."""
    return ReferralTrackingService(session)


@pytest.fixture
def make_account(tracking):
    """Factory returning the ID of a new account."""
    counter = {"n": 0}

    async def _make(name: str | None = None) -> int:
        counter["n"] += 1
        ref = name or f"account-{counter['n']}"
        account = await tracking.register_account(ref, display_name=ref)
        return account.id

    return _make


@pytest.fixture
def make_referral(tracking):
    """Factory returning the ID of a new referral."""

    async def _make(
        referrer_id: int,
        referred_id: int | None = None,
        channel: str | None = None,
    ) -> int:
        referral = await tracking.create_referral(
            referrer_id, channel=channel, referred_account_id=referred_id
        )
        return referral.id

    return _make


@pytest.fixture
async def active_settings(session):
    """Credit rewards 20/10 with a 50 bonus at 5 referrals."""
    row = await RewardSettingsService(session).create_settings(
        referrer_reward_value=Decimal("20"),
        referred_reward_value=Decimal("10"),
        milestone_rules=[{"count": 5, "bonus": "50"}],
        activate=True,
    )
    return row.id
