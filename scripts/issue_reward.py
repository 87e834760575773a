#!/usr/bin/env python3
"""
Issue a referral reward by hand.

Runs the issue unit of work inline, or enqueues it to the workers.
Repeating the command for the same referral is safe.

Usage:
    python scripts/issue_reward.py 42
    python scripts/issue_reward.py 42 --payment-amount 99.90
    python scripts/issue_reward.py 42 --enqueue
"""

import argparse
import asyncio
import json
import sys
from decimal import Decimal
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from referral_ledger.config.database import create_engine, create_session_maker
from referral_ledger.services.referral import RewardIssuer
from referral_ledger.utils.exceptions import ReferralLedgerError

# Configure logger
logger.remove()
logger.add(sys.stderr, level="INFO", format="{time:HH:mm:ss} | {level} | {message}")


async def issue_reward(referral_id: int, payment_amount: Decimal | None) -> dict:
    """Run one issue call and return its payload."""
    engine = create_engine()
    session_maker = create_session_maker(engine)
    try:
        async with session_maker() as session:
            result = await RewardIssuer(session).issue(referral_id, payment_amount)
            return result.to_payload()
    except ReferralLedgerError as e:
        return e.to_payload()
    finally:
        await engine.dispose()


def main() -> int:
    parser = argparse.ArgumentParser(description="Issue a referral reward")
    parser.add_argument("referral_id", type=int)
    parser.add_argument("--payment-amount", type=Decimal, default=None)
    parser.add_argument(
        "--enqueue",
        action="store_true",
        help="Send to the Dramatiq queue instead of running inline",
    )
    args = parser.parse_args()

    if args.enqueue:
        from jobs.tasks.referral_rewards import issue_referral_reward

        amount = str(args.payment_amount) if args.payment_amount is not None else None
        issue_referral_reward.send(args.referral_id, amount)
        logger.info(f"Reward issue for referral {args.referral_id} enqueued")
        return 0

    payload = asyncio.run(issue_reward(args.referral_id, args.payment_amount))
    print(json.dumps(payload, indent=2))
    return 1 if "error" in payload else 0


if __name__ == "__main__":
    sys.exit(main())
