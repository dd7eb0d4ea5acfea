"""Unit tests for error builders."""

from datetime import timedelta

import pytest

from portal.shared.errors import (
    INTERNAL_USER_MESSAGE,
    AppError,
    ErrorCategory,
    Severity,
    account_suspended_error,
    database_error,
    duplicate_resource_error,
    email_already_exists_error,
    event_bus_error,
    external_service_error,
    insufficient_permissions_error,
    internal_error,
    invalid_credentials_error,
    not_found_error,
    optimistic_lock_error,
    panic_error,
    rate_limit_error,
    service_unavailable_error,
    session_expired_error,
    session_invalid_error,
    session_not_found_error,
    timeout_error,
    user_not_found_error,
    validation_error,
    wrap_error,
)


class TestAuthBuilders:
    """Tests for authentication and authorization builders."""

    @pytest.mark.parametrize(
        ("builder", "code", "status"),
        [
            (invalid_credentials_error, "INVALID_CREDENTIALS", 401),
            (session_expired_error, "SESSION_EXPIRED", 401),
            (session_invalid_error, "SESSION_INVALID", 401),
            (insufficient_permissions_error, "INSUFFICIENT_PERMISSIONS", 403),
            (account_suspended_error, "ACCOUNT_SUSPENDED", 403),
        ],
    )
    def test_fixed_auth_errors(self, builder, code, status):
        """Test codes, statuses and that a user message is always set."""
        err = builder()

        assert err.code == code
        assert err.http_status == status
        assert err.severity == Severity.LOW
        assert err.user_message


class TestNotFound:
    """Tests for not-found builders."""

    def test_with_id(self):
        """Test message includes the ID when given."""
        err = not_found_error("User", "123")

        assert err.code == "RESOURCE_NOT_FOUND"
        assert err.http_status == 404
        assert err.message == "User with ID '123' not found"
        assert err.details == {"resource": "User", "id": "123"}

    def test_without_id(self):
        """Test message omits the ID when empty."""
        err = not_found_error("Document")

        assert err.message == "Document not found"
        assert err.details == {"resource": "Document", "id": ""}

    def test_specializations(self):
        """Test user and session shortcuts."""
        assert user_not_found_error("7").details["resource"] == "User"
        assert session_not_found_error("s1").message == "Session with ID 's1' not found"


class TestConflict:
    """Tests for conflict builders."""

    def test_duplicate_resource(self):
        """Test duplicate resource message and details."""
        err = duplicate_resource_error("Project", "name", "demo")

        assert err.code == "DUPLICATE_RESOURCE"
        assert err.category == ErrorCategory.CONFLICT
        assert err.message == "Project with name 'demo' already exists"
        assert err.details == {"resource": "Project", "field": "name", "value": "demo"}

    def test_email_already_exists(self):
        """Test email conflict is a duplicate User email."""
        err = email_already_exists_error("a@example.com")

        assert err.details["field"] == "email"
        assert err.details["value"] == "a@example.com"
        assert err.http_status == 409

    def test_optimistic_lock(self):
        """Test optimistic lock conflict."""
        err = optimistic_lock_error("Order")

        assert err.code == "OPTIMISTIC_LOCK_CONFLICT"
        assert "Order" in err.message


class TestRateLimit:
    """Tests for rate limit builder."""

    def test_rate_limit(self):
        """Test message, details and retryability."""
        err = rate_limit_error(100, "minute")

        assert err.message == "Rate limit exceeded: 100 requests per minute"
        assert err.details == {"limit": 100, "window": "minute"}
        assert err.retryable is True
        assert err.http_status == 429


class TestInternal:
    """Tests for internal builders."""

    def test_internal_error(self):
        """Test internal errors carry the generic user message."""
        cause = RuntimeError("disk full")
        err = internal_error("WRITE_FAILED", "Write failed", cause)

        assert err.severity == Severity.HIGH
        assert err.user_message == INTERNAL_USER_MESSAGE
        assert err.cause is cause

    def test_database_and_event_bus(self):
        """Test operation lands in message and details."""
        db = database_error("insert user")
        bus = event_bus_error("publish")

        assert db.code == "DATABASE_ERROR"
        assert db.message == "Database error during insert user"
        assert db.details == {"operation": "insert user"}
        assert bus.code == "EVENT_BUS_ERROR"

    def test_panic_error_from_exception(self):
        """Test panic errors are critical and keep the exception as cause."""
        boom = ValueError("boom")
        err = panic_error(boom, "Traceback ...")

        assert err.code == "PANIC_RECOVERED"
        assert err.severity == Severity.CRITICAL
        assert err.cause is boom
        assert err.details == {"panic_value": "boom", "stack_trace": "Traceback ..."}

    def test_panic_error_from_value(self):
        """Test non-exception panic values are wrapped."""
        err = panic_error({"state": "broken"})

        assert isinstance(err.cause, RuntimeError)
        assert "panic:" in str(err.cause)
        assert "stack_trace" not in err.details


class TestExternal:
    """Tests for external, timeout and unavailable builders."""

    def test_external_service(self):
        """Test external service error."""
        err = external_service_error("payments", "charge")

        assert err.code == "EXTERNAL_SERVICE_ERROR"
        assert err.message == "External service 'payments' error during charge"
        assert err.http_status == 502
        assert err.retryable is True

    @pytest.mark.parametrize(
        ("timeout", "formatted"),
        [(timedelta(seconds=30), "30s"), (1.5, "1.5s"), (timedelta(minutes=2), "120s")],
    )
    def test_timeout_formats_duration(self, timeout, formatted):
        """Test timeout duration formatting."""
        err = timeout_error("fetch", timeout)

        assert err.code == "OPERATION_TIMEOUT"
        assert err.message == f"Operation 'fetch' timed out after {formatted}"
        assert err.details == {"operation": "fetch", "timeout": formatted}
        assert err.http_status == 408

    def test_service_unavailable(self):
        """Test unavailable service error."""
        err = service_unavailable_error("search")

        assert err.http_status == 503
        assert err.details == {"service": "search"}


class TestValidationBuilder:
    """Tests for validation builder."""

    def test_details_optional(self):
        """Test details are only set when given."""
        assert validation_error("INVALID", "Invalid").details == {}
        assert validation_error("INVALID", "Invalid", {"field": "x"}).details == {"field": "x"}


class TestWrapError:
    """Tests for wrap_error."""

    def test_none_stays_none(self):
        """Test wrapping nothing yields nothing."""
        assert wrap_error(None, ErrorCategory.INTERNAL, "X", "x") is None

    def test_app_error_unchanged(self):
        """Test AppErrors are not re-classified."""
        original = not_found_error("User", "1")

        assert wrap_error(original, ErrorCategory.INTERNAL, "X", "x") is original

    def test_foreign_error_wrapped(self):
        """Test foreign errors become the cause."""
        cause = KeyError("k")
        err = wrap_error(cause, ErrorCategory.EXTERNAL, "UPSTREAM", "Upstream failed")

        assert isinstance(err, AppError)
        assert err.cause is cause
        assert err.http_status == 502
