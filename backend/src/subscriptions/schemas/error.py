"""Structured error response schemas."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from subscriptions.utils.temporal import utcnow


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    field: str | None = Field(default=None, description="Field that caused the error (for validation errors)")
    value: Any | None = Field(default=None, description="Invalid value (for validation errors)")


class ErrorResponse(BaseModel):
    """Standard error response structure.

    This provides consistent error responses across the API with:
    - Error type and machine-readable codes
    - Human-readable messages
    - Remediation hints
    - Request tracing information
    """

    error: str = Field(..., description="Error type (e.g., 'ValidationError', 'NotFound', 'Conflict')")
    message: str = Field(..., description="Primary error message")
    details: list[ErrorDetail] | None = Field(
        default=None, description="Detailed error information (for validation errors)"
    )
    remediation: str | None = Field(default=None, description="Suggestion for fixing the error")
    request_id: str | None = Field(default=None, description="Request ID for tracing")
    timestamp: datetime = Field(default_factory=utcnow, description="Error timestamp")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "NoEffectiveRate",
                "message": "the Basic subscription plan has no effective rate",
                "details": [
                    {
                        "code": "no_effective_rate",
                        "message": "the Basic subscription plan has no effective rate",
                    }
                ],
                "remediation": "Add a rate with an effective date in the past to the plan",
                "request_id": "req_1234567890",
                "timestamp": "2024-01-15T10:30:00Z",
            }
        }
    )


# Error codes enum for consistency
class ErrorCode:
    """Standard error codes used across the API."""

    # Validation errors (400/422)
    VALIDATION_ERROR = "validation_error"
    INVALID_UUID = "invalid_uuid"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    INVALID_ENUM_VALUE = "invalid_enum_value"
    INVALID_UPDATE_OPERATION = "invalid_update_operation"
    INVALID_SUBSCRIPTION_PERIOD = "invalid_subscription_period"

    # Domain errors
    NOT_FOUND = "not_found"
    NO_EFFECTIVE_RATE = "no_effective_rate"
    UNKNOWN_RESOURCE_TYPE = "unknown_resource_type"
    ALREADY_EXISTS = "already_exists"
    CONFLICT = "conflict"

    # Infrastructure errors (503)
    DATABASE_ERROR = "database_error"

    # Internal errors (500)
    INTERNAL_ERROR = "internal_error"


# Remediation hints for common errors
REMEDIATION_HINTS = {
    ErrorCode.INVALID_UPDATE_OPERATION: "Use ADD to accumulate usage or SET to replace it",
    ErrorCode.INVALID_SUBSCRIPTION_PERIOD: "Provide an end date on or after the start of the subscription",
    ErrorCode.NOT_FOUND: "Verify the identifier is correct and the record exists",
    ErrorCode.NO_EFFECTIVE_RATE: "Add a rate with an effective date in the past to the plan",
    ErrorCode.UNKNOWN_RESOURCE_TYPE: "Register the resource type (name and unit) before reporting usage for it",
    ErrorCode.ALREADY_EXISTS: "Choose another name or update the existing record instead",
    ErrorCode.CONFLICT: "Another update to the same usage counter won the race. Retry the request.",
    ErrorCode.DATABASE_ERROR: "Database temporarily unavailable. Please try again in a few moments.",
}
