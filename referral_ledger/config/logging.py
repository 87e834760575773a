"""
Logging configuration.

Configures the loguru logger for workers, the scheduler and scripts.
"""

import sys

from loguru import logger

from referral_ledger.config.settings import settings


def setup_logging(service_name: str = "referral-ledger") -> None:
    """Configure stderr sink and optional rotating file sink."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        backtrace=settings.debug,
        diagnose=settings.debug,
    )

    if settings.log_file:
        logger.add(
            settings.log_file,
            rotation=settings.log_rotation,
            retention=settings.log_retention,
            level=settings.log_level,
            encoding="utf-8",
        )

    logger.info(f"Starting {service_name} ({settings.environment})...")
