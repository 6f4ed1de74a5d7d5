"""
Public reviews endpoint.
"""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.api.deps import get_review_service
from app.core.config import settings
from app.core.exceptions import NotConfiguredException
from app.core.logging import logger
from app.core.middleware import get_request_id
from app.schemas.review import ReviewsResponse
from app.services.review_service import ReviewService


router = APIRouter(tags=["reviews"])


@router.get("/reviews", response_model=ReviewsResponse)
async def list_reviews(service: ReviewService = Depends(get_review_service)):
    """
    Return every review ever seen for the configured location.

    Merges a fresh Google fetch into the durable cache and returns the merged set
    newest first. If Google is unavailable the cached reviews are returned with
    `cached: true`.

    Returns:
        Reviews payload with average rating and cache metadata

    Raises:
        400: LOCATION_NAME not configured
        500: Unexpected error (body still carries the cached reviews)
    """
    location_name = settings.LOCATION_NAME
    if not location_name:
        raise NotConfiguredException("LOCATION_NAME")

    request_id = get_request_id()

    try:
        response = await service.get_reviews(location_name)
    except Exception as e:
        logger.error(
            f"Reviews request failed, serving cache only: {str(e)}",
            extra={"request_id": request_id, "location": location_name},
            exc_info=True,
        )
        degraded = await service.degraded_response(
            str(e) if settings.DEBUG else "Internal server error"
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=degraded.to_payload(),
        )

    return JSONResponse(content=response.to_payload())
