#!/usr/bin/env python3
"""
Initialize database tables.

Optionally seeds an active reward settings row so that rewards can be
issued right away.

Usage:
    python scripts/init_database.py
    python scripts/init_database.py --seed-settings --referrer 20 --referred 10
"""

import argparse
import asyncio
import sys
from decimal import Decimal
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from referral_ledger.config.database import create_engine, create_session_maker
from referral_ledger.models import Base
from referral_ledger.services.reward_settings_service import RewardSettingsService

# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO")


async def init_database(
    seed_settings: bool = False,
    referrer_reward: Decimal = Decimal("0"),
    referred_reward: Decimal = Decimal("0"),
) -> None:
    """Create all database tables."""
    logger.info("Connecting to database...")
    engine = create_engine()

    async with engine.begin() as conn:
        logger.info("Creating tables (checkfirst=True)...")
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    if seed_settings:
        session_maker = create_session_maker(engine)
        async with session_maker() as session:
            row = await RewardSettingsService(session).create_settings(
                referrer_reward_value=referrer_reward,
                referred_reward_value=referred_reward,
                activate=True,
            )
            logger.info(f"Active reward settings created: id={row.id}")

    await engine.dispose()
    logger.success("Database tables created successfully!")


def main() -> None:
    parser = argparse.ArgumentParser(description="Initialize referral ledger database")
    parser.add_argument(
        "--seed-settings",
        action="store_true",
        help="Create and activate a credit reward settings row",
    )
    parser.add_argument("--referrer", type=Decimal, default=Decimal("0"))
    parser.add_argument("--referred", type=Decimal, default=Decimal("0"))
    args = parser.parse_args()

    asyncio.run(init_database(args.seed_settings, args.referrer, args.referred))


if __name__ == "__main__":
    main()
