"""
Health check endpoint.
"""
from fastapi import APIRouter
from pydantic import BaseModel

from app.core.config import settings


router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Liveness probe. Does not touch Google or the review cache.

    Returns:
        200: Service is up
    """
    return HealthResponse(status="ok", version=settings.APP_VERSION)
