"""
Standardized error response schemas for the Portfolio Contact API.

Every failure is returned as ``{success: false, error, code}``; validation
failures add a ``details`` list naming each offending field.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorDetail(BaseModel):
    """
    Detail about a specific error field.

    Used for validation errors to indicate which field failed.
    """

    field: str = Field(..., description="Name of the offending field")
    message: str = Field(..., description="Human-readable error message")


class ErrorResponse(BaseModel):
    """
    Standard error envelope.

    Attributes:
        success: Always false
        error: Human-readable error description
        code: Machine-readable error code (e.g., "VALIDATION_ERROR")
        details: Per-field errors for validation failures
    """

    success: bool = False
    error: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Validation failed"],
    )
    code: str = Field(
        ...,
        description="Error code",
        examples=["VALIDATION_ERROR", "SPAM_DETECTED", "RATE_LIMIT_EXCEEDED"],
    )
    details: Optional[List[ErrorDetail]] = Field(
        None, description="Detailed error information for validation errors"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": False,
                "error": "Validation failed",
                "code": "VALIDATION_ERROR",
                "details": [
                    {
                        "field": "email",
                        "message": "Please provide a valid email address",
                    }
                ],
            }
        }
    )


class ValidationErrorResponse(ErrorResponse):
    """400 Validation or spam rejection."""

    code: str = "VALIDATION_ERROR"


class PayloadTooLargeError(ErrorResponse):
    """413 Request body over the size cap."""

    code: str = "PAYLOAD_TOO_LARGE"


class RateLimitError(ErrorResponse):
    """429 Rate limit exceeded response."""

    code: str = "RATE_LIMIT_EXCEEDED"


class InternalError(ErrorResponse):
    """500 Email delivery or internal failure."""

    code: str = "INTERNAL_ERROR"


class ServiceUnavailableError(ErrorResponse):
    """503 Email service not configured."""

    code: str = "SERVICE_UNAVAILABLE"


# Common error responses for OpenAPI documentation
CONTACT_ERROR_RESPONSES = {
    400: {"model": ValidationErrorResponse, "description": "Validation failed or spam detected"},
    413: {"model": PayloadTooLargeError, "description": "Payload Too Large"},
    429: {"model": RateLimitError, "description": "Rate Limit Exceeded"},
    500: {"model": InternalError, "description": "Email delivery failed"},
    503: {"model": ServiceUnavailableError, "description": "Email service not configured"},
}
