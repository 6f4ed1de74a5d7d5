"""
Custom exceptions for the application.
All exceptions map to standard error codes and HTTP status codes.
"""
from typing import Optional, Dict, Any

from app.schemas.error import ErrorCode
from app.schemas.upstream import UpstreamError


class AppException(Exception):
    """
    Base exception class for all application exceptions.
    All custom exceptions should inherit from this.
    """

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NotConfiguredException(AppException):
    """Raised when a required setting is missing (400)."""

    def __init__(self, setting: str):
        super().__init__(
            ErrorCode.NOT_CONFIGURED,
            f"{setting} not configured",
            {"setting": setting},
        )


class ForbiddenException(AppException):
    """Raised when access is forbidden (403)."""

    def __init__(self, message: str = "Access denied", details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.FORBIDDEN, message, details)


class UpstreamException(AppException):
    """
    Raised when a Google API call fails (502).

    Carries the tagged UpstreamError so callers can branch on `kind` instead of
    inspecting response shapes.
    """

    def __init__(self, error: UpstreamError, message: Optional[str] = None):
        self.upstream_error = error
        super().__init__(
            ErrorCode.UPSTREAM_ERROR,
            message or f"Upstream request failed ({error.kind})",
            error.model_dump(),
        )

