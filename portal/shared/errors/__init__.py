"""Shared errors package.

Centralized error taxonomy, construction, inspection and HTTP translation.
"""

from .base import AppError, ErrorList, generate_error_id
from .builders import (
    INTERNAL_USER_MESSAGE,
    account_suspended_error,
    authentication_error,
    authorization_error,
    conflict_error,
    database_error,
    duplicate_resource_error,
    email_already_exists_error,
    event_bus_error,
    external_service_error,
    insufficient_permissions_error,
    internal_error,
    invalid_credentials_error,
    new_app_error,
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
from .decorators import safe, safe_with_fallback
from .handlers import register_exception_handlers, setup_exception_handlers
from .helpers import (
    ErrorCollector,
    as_app_error,
    as_error_list,
    chain,
    combine,
    get_category,
    get_error_code,
    get_http_status,
    is_authentication_error,
    is_authorization_error,
    is_category,
    is_conflict_error,
    is_external_error,
    is_internal_error,
    is_not_found_error,
    is_rate_limit_error,
    is_retryable,
    is_timeout_error,
    is_unavailable_error,
    is_validation_error,
    safe_execute,
    validate,
    validate_length,
    validate_not_empty,
    validate_not_none,
)
from .logging import ErrorLogger
from .mapping import ExceptionMapper
from .middleware import ErrorMiddleware, ErrorMiddlewareConfig, RecoveryMiddleware
from .schemas import ErrorBody, ErrorContext, ErrorListResponse, ErrorResponse
from .types import ErrorCategory, Severity

__all__ = [
    # Base
    "AppError",
    "ErrorList",
    "generate_error_id",
    # Taxonomy
    "ErrorCategory",
    "Severity",
    # Builders
    "INTERNAL_USER_MESSAGE",
    "new_app_error",
    "validation_error",
    "authentication_error",
    "invalid_credentials_error",
    "session_expired_error",
    "session_invalid_error",
    "authorization_error",
    "insufficient_permissions_error",
    "account_suspended_error",
    "not_found_error",
    "user_not_found_error",
    "session_not_found_error",
    "conflict_error",
    "duplicate_resource_error",
    "email_already_exists_error",
    "optimistic_lock_error",
    "rate_limit_error",
    "internal_error",
    "database_error",
    "event_bus_error",
    "panic_error",
    "external_service_error",
    "timeout_error",
    "service_unavailable_error",
    "wrap_error",
    # Inspection
    "is_category",
    "is_validation_error",
    "is_authentication_error",
    "is_authorization_error",
    "is_not_found_error",
    "is_conflict_error",
    "is_rate_limit_error",
    "is_internal_error",
    "is_external_error",
    "is_timeout_error",
    "is_unavailable_error",
    "is_retryable",
    "get_error_code",
    "get_category",
    "get_http_status",
    "as_app_error",
    "as_error_list",
    # Aggregation and validation
    "chain",
    "combine",
    "ErrorCollector",
    "validate",
    "validate_not_none",
    "validate_not_empty",
    "validate_length",
    "safe_execute",
    # Mapping
    "ExceptionMapper",
    # Decorators
    "safe",
    "safe_with_fallback",
    # Logging
    "ErrorLogger",
    # Middleware
    "ErrorMiddleware",
    "ErrorMiddlewareConfig",
    "RecoveryMiddleware",
    "setup_exception_handlers",
    "register_exception_handlers",
    # Schemas
    "ErrorBody",
    "ErrorContext",
    "ErrorResponse",
    "ErrorListResponse",
]
