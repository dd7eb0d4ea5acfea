"""Pydantic models for error handling.

Request context attached to errors and the wire shapes of error responses.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorContext(BaseModel):
    """Where an error occurred and on whose behalf."""

    model_config = ConfigDict(extra="forbid")

    operation: str = ""
    component: str = ""
    user_id: str = ""
    request_id: str = ""
    session_id: str = ""
    ip_address: str = ""
    user_agent: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)


class ErrorBody(BaseModel):
    """Single error object as sent to clients."""

    id: str = Field(..., description="Unique error instance ID")
    code: str = Field(..., description="Machine-readable error code (SNAKE_CASE)")
    type: str = Field(..., description="Error category")
    message: str = Field(..., description="Error description")
    timestamp: datetime
    user_message: str | None = Field(default=None, description="Safe-for-display message")
    details: dict[str, Any] | None = None
    retryable: bool | None = Field(default=None, description="Present only when true")
    stack_trace: str | None = None


class ErrorResponse(BaseModel):
    """Unified single-error response schema."""

    error: ErrorBody
    request_id: str | None = Field(default=None, description="Request correlation ID")


class ErrorListResponse(BaseModel):
    """Response schema for several errors at once."""

    errors: list[ErrorBody] = Field(default_factory=list)
    request_id: str | None = None
