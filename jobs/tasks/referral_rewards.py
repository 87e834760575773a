"""
Referral reward task.

Entry point for crediting a referral's reward after a qualifying
payment. Safe to deliver any number of times: only the first delivery
credits, later ones report ``already_credited``.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

import dramatiq
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from jobs.async_runner import run_async
from jobs.broker import broker  # noqa: F401
from jobs.tasks.reward_notification import notify_reward_issued
from referral_ledger.config.settings import settings
from referral_ledger.services.referral import RewardIssuer
from referral_ledger.services.referral.reward_issuer import check_payment_amount
from referral_ledger.utils.exceptions import (
    InvalidPaymentAmountError,
    ReferralLedgerError,
    is_retryable,
)


def should_retry(retries_so_far: int, exception: BaseException) -> bool:
    """Redeliver only failures that cannot have applied any effect."""
    return (
        retries_so_far < settings.reward_issue_max_retries
        and is_retryable(exception)
    )


@dramatiq.actor(retry_when=should_retry, time_limit=120_000)
def issue_referral_reward(
    referral_id: int, payment_amount: str | None = None
) -> dict[str, Any]:
    """
    Credit the reward of one referral.

    Args:
        referral_id: Referral ID
        payment_amount: Qualifying payment as a decimal string
            (required for percent/hybrid rewards)

    Returns:
        Issue payload, or ``{"error": code, "detail": ...}`` for
        non-retryable failures
    """
    logger.info(f"Issuing referral reward for referral {referral_id}")
    return run_async(_issue_referral_reward_async(referral_id, payment_amount))


def _parse_amount(payment_amount: Any) -> Decimal | None:
    if payment_amount is None:
        return None
    try:
        amount = Decimal(str(payment_amount))
    except InvalidOperation as e:
        raise InvalidPaymentAmountError(
            f"Invalid payment amount: {payment_amount!r}"
        ) from e
    check_payment_amount(amount)
    return amount


async def _issue_referral_reward_async(
    referral_id: int,
    payment_amount: Any = None,
    session_maker: async_sessionmaker[AsyncSession] | None = None,
) -> dict[str, Any]:
    """Async implementation of reward issuance."""
    if session_maker is None:
        from jobs.utils.database import task_session_maker

        session_maker = task_session_maker

    try:
        amount = _parse_amount(payment_amount)
        async with session_maker() as session:
            result = await RewardIssuer(session).issue(referral_id, amount)
    except ReferralLedgerError as e:
        if e.retryable:
            logger.warning(
                f"Referral reward {referral_id} failed, will retry: "
                f"{e.code}: {e}"
            )
            raise
        logger.error(f"Referral reward {referral_id} rejected: {e.code}: {e}")
        return e.to_payload()

    if result.already_credited:
        logger.info(f"Referral {referral_id} already credited")
    elif result.notification is not None:
        try:
            notify_reward_issued.send(result.notification.to_message())
        except Exception as e:
            logger.warning(
                f"Failed to enqueue reward notification for referral "
                f"{referral_id}: {e}"
            )

    return result.to_payload()
