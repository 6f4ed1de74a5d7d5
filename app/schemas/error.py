"""
Standard error response schemas.
All API errors follow this unified format.
"""
from typing import Optional, Dict, Any
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes used throughout the API."""

    INVALID_ARGUMENT = "INVALID_ARGUMENT"  # 422
    NOT_CONFIGURED = "NOT_CONFIGURED"  # 400
    FORBIDDEN = "FORBIDDEN"  # 403
    UPSTREAM_ERROR = "UPSTREAM_ERROR"  # 502
    INTERNAL = "INTERNAL"  # 500


class ErrorDetail(BaseModel):
    """
    Error detail object.
    Contains the error code, human-readable message, and optional additional details.
    """

    code: ErrorCode = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")

    model_config = ConfigDict(use_enum_values=True)


class ErrorResponse(BaseModel):
    """
    Standard error response format.

    Example:
    {
        "requestId": "abc-123-def",
        "error": {
            "code": "NOT_CONFIGURED",
            "message": "LOCATION_NAME not configured",
            "details": {"setting": "LOCATION_NAME"}
        }
    }
    """

    request_id: str = Field(..., alias="requestId", description="Request ID for tracing")
    error: ErrorDetail = Field(..., description="Error details")

    model_config = ConfigDict(populate_by_name=True)


# HTTP Status Code mapping for error codes
ERROR_CODE_TO_HTTP_STATUS = {
    ErrorCode.INVALID_ARGUMENT: 422,
    ErrorCode.NOT_CONFIGURED: 400,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.UPSTREAM_ERROR: 502,
    ErrorCode.INTERNAL: 500,
}
