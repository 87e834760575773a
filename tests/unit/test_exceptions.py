"""Unit tests for the error taxonomy."""

from sqlalchemy.exc import IntegrityError, OperationalError

from referral_ledger.utils.exceptions import (
    AccountNotFoundError,
    ConfigConflictError,
    ConfigMissingError,
    InvalidTransitionError,
    LedgerImmutableError,
    NotFoundError,
    PersistenceFailureError,
    ReferralNotFoundError,
    is_retryable,
)


class TestErrorCodes:
    """Test error codes and payloads."""

    def test_not_found_family_shares_code(self):
        """Referral and account lookups report NOT_FOUND."""
        assert ReferralNotFoundError.code == "NOT_FOUND"
        assert AccountNotFoundError.code == "NOT_FOUND"
        assert issubclass(ReferralNotFoundError, NotFoundError)

    def test_payload(self):
        """Payload carries the code and the message."""
        payload = ConfigMissingError("No active reward settings").to_payload()

        assert payload == {
            "error": "CONFIG_MISSING",
            "detail": "No active reward settings",
        }

    def test_codes(self):
        """Test distinct codes per kind."""
        assert ConfigConflictError.code == "CONFIG_CONFLICT"
        assert PersistenceFailureError.code == "PERSISTENCE_FAILURE"
        assert InvalidTransitionError.code == "INVALID_TRANSITION"
        assert LedgerImmutableError.code == "LEDGER_IMMUTABLE"


class TestIsRetryable:
    """Test retry classification."""

    def test_retryable_domain_errors(self):
        """Missing config and failed commits may be retried."""
        assert is_retryable(ConfigMissingError("x")) is True
        assert is_retryable(PersistenceFailureError("x")) is True

    def test_non_retryable_domain_errors(self):
        """Conflicts and unknown ids need a human."""
        assert is_retryable(ConfigConflictError("x")) is False
        assert is_retryable(ReferralNotFoundError("x")) is False

    def test_operational_error_is_retryable(self):
        """Dropped connections are worth another attempt."""
        exc = OperationalError("SELECT 1", {}, Exception("connection reset"))

        assert is_retryable(exc) is True

    def test_other_errors_are_not_retryable(self):
        """Test integrity and programming errors."""
        assert is_retryable(IntegrityError("INSERT", {}, Exception("dup"))) is False
        assert is_retryable(ValueError("bad")) is False
