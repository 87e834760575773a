"""
Dramatiq broker configuration.

Redis-based message broker for task queue. Tests run against an
in-memory ``StubBroker``.
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.brokers.stub import StubBroker
from dramatiq.middleware import (
    AgeLimit,
    Callbacks,
    CurrentMessage,
    Pipelines,
    Retries,
    ShutdownNotifications,
    TimeLimit,
)
from loguru import logger

from referral_ledger.config.logging import setup_logging
from referral_ledger.config.settings import settings


def build_middleware() -> list:
    """
    Middleware stack shared by every broker.

    ShutdownNotifications: Allows workers to gracefully shutdown
    CurrentMessage: Provides access to current message in actors
    Retries: Exponential backoff for failed tasks; actors narrow it
    with their own ``retry_when``
    """
    return [
        AgeLimit(),
        TimeLimit(),
        ShutdownNotifications(),
        Callbacks(),
        Pipelines(),
        CurrentMessage(),
        Retries(
            max_retries=3,
            min_backoff=1000,  # 1 second
            max_backoff=60000,  # 1 minute
        ),
    ]


def create_broker() -> dramatiq.Broker:
    """Create the broker for the configured environment."""
    if settings.environment == "test":
        return StubBroker(middleware=build_middleware())

    return RedisBroker(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password if settings.redis_password else None,
        db=settings.redis_db,
        middleware=build_middleware(),
    )


if settings.environment != "test":
    setup_logging("referral-worker")

broker = create_broker()

# Set as default broker
dramatiq.set_broker(broker)

if isinstance(broker, RedisBroker):
    logger.info(
        f"Dramatiq broker initialized: "
        f"redis://{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"
    )
else:
    logger.debug("Dramatiq stub broker initialized")
