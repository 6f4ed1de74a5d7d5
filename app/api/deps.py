"""
API dependencies for dependency injection.

Long-lived collaborators are built in the application lifespan and kept on
app.state; these dependencies hand them to route handlers. Tests replace them
through app.dependency_overrides.
"""
from typing import Optional
from fastapi import Query, Request

from app.core.config import settings
from app.core.exceptions import ForbiddenException
from app.services.google_client import GoogleBusinessClient
from app.services.review_service import ReviewService


def get_review_service(request: Request) -> ReviewService:
    """
    Dependency returning the shared ReviewService.

    Usage:
        @router.get("/endpoint")
        async def endpoint(service: ReviewService = Depends(get_review_service)):
            ...
    """
    return request.app.state.review_service


def get_google_client(request: Request) -> GoogleBusinessClient:
    """Dependency returning the shared GoogleBusinessClient."""
    return request.app.state.google_client


async def verify_api_key(key: Optional[str] = Query(None)) -> str:
    """
    Dependency checking the shared-secret `key` query parameter.

    Raises:
        ForbiddenException: If the key is missing or wrong
    """
    if key != settings.API_KEY:
        raise ForbiddenException("Access denied")

    return key
