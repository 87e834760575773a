"""
Exception types for the referral ledger.

Every domain error carries a machine-readable ``code`` and a ``retryable``
flag so that job runners can decide between redelivery and reporting.
"""

from typing import Any

from sqlalchemy.exc import OperationalError


class ReferralLedgerError(Exception):
    """Base class for referral ledger errors."""

    code = "INTERNAL"
    retryable = False

    def to_payload(self) -> dict[str, Any]:
        """Error object returned to callers."""
        return {"error": self.code, "detail": str(self)}


class NotFoundError(ReferralLedgerError):
    """Unknown referral, account or settings row."""

    code = "NOT_FOUND"


class ReferralNotFoundError(NotFoundError):
    """Raised when a referral id does not exist."""

    pass


class AccountNotFoundError(NotFoundError):
    """Raised when an account id does not exist."""

    pass


class SettingsNotFoundError(NotFoundError):
    """Raised when a reward settings id does not exist."""

    pass


class ConfigMissingError(ReferralLedgerError):
    """No active reward settings row."""

    code = "CONFIG_MISSING"
    retryable = True


class ConfigConflictError(ReferralLedgerError):
    """More than one active reward settings row."""

    code = "CONFIG_CONFLICT"


class InvalidSettingsError(ReferralLedgerError):
    """Reward settings values are malformed."""

    code = "INVALID_SETTINGS"


class InvalidPaymentAmountError(ReferralLedgerError):
    """Payment amount is not a finite, non-negative number."""

    code = "INVALID_PAYMENT_AMOUNT"


class PersistenceFailureError(ReferralLedgerError):
    """The unit of work could not be committed; nothing was applied."""

    code = "PERSISTENCE_FAILURE"
    retryable = True


class InvalidTransitionError(ReferralLedgerError):
    """A referral status would move backwards."""

    code = "INVALID_TRANSITION"


class LedgerImmutableError(ReferralLedgerError):
    """Ledger entries cannot be updated or deleted."""

    code = "LEDGER_IMMUTABLE"


# Infrastructure errors that are worth another attempt
RETRYABLE_INFRASTRUCTURE = (
    OperationalError,  # connection drops, lock timeouts
)


def is_retryable(exc: BaseException) -> bool:
    """
    Check if a failed operation may be retried.

    Args:
        exc: Exception to check

    Returns:
        True if retrying cannot double-apply effects and may succeed
    """
    if isinstance(exc, ReferralLedgerError):
        return exc.retryable
    return isinstance(exc, RETRYABLE_INFRASTRUCTURE)
