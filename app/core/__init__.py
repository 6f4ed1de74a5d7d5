"""
Core utilities package.
Exports configuration, logging, middleware, and exceptions.
"""
from app.core.config import settings, Settings
from app.core.logging import logger
from app.core.middleware import RequestIdMiddleware, get_request_id
from app.core.exceptions import (
    AppException,
    NotConfiguredException,
    ForbiddenException,
    UpstreamException,
)

__all__ = [
    "settings",
    "Settings",
    "logger",
    "RequestIdMiddleware",
    "get_request_id",
    "AppException",
    "NotConfiguredException",
    "ForbiddenException",
    "UpstreamException",
]
