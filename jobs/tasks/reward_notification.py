"""
Reward notification task.

Informs the referrer and referred account of a credited reward by
POSTing to the configured webhook. Delivery is best effort: the ledger
is already committed when this runs.
"""

from typing import Any

import aiohttp
import dramatiq
from loguru import logger

from jobs.async_runner import run_async
from jobs.broker import broker  # noqa: F401
from referral_ledger.config.settings import settings


@dramatiq.actor(max_retries=2, time_limit=60_000)
def notify_reward_issued(message: dict[str, Any]) -> bool:
    """
    Deliver a reward notification.

    Args:
        message: ``RewardNotification.to_message()`` body

    Returns:
        True if the webhook accepted the message
    """
    return run_async(deliver_notification(message))


async def deliver_notification(
    message: dict[str, Any],
    url: str | None = None,
    timeout: float | None = None,
) -> bool:
    """
    POST a notification body to the webhook.

    Args:
        message: JSON body
        url: Webhook URL (default: settings.notification_webhook_url)
        timeout: Request timeout in seconds

    Returns:
        True on a 2xx response, False if not configured or failed
    """
    url = url or settings.notification_webhook_url
    if not url:
        logger.info(
            f"Reward notification for referral {message.get('referral_id')} "
            f"not delivered: no webhook configured"
        )
        return False

    timeout = timeout or settings.notification_timeout_seconds

    try:
        async with aiohttp.ClientSession() as client:
            async with client.post(
                url,
                json=message,
                timeout=aiohttp.ClientTimeout(total=timeout),
                headers={"Content-Type": "application/json"},
            ) as response:
                if 200 <= response.status < 300:
                    logger.info(
                        f"Reward notification delivered for referral "
                        f"{message.get('referral_id')}"
                    )
                    return True
                logger.warning(
                    f"Reward notification rejected: HTTP {response.status}"
                )
                return False
    except (aiohttp.ClientError, TimeoutError) as e:
        logger.warning(f"Reward notification failed: {e}")
        return False
