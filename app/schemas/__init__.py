"""
Pydantic schemas package.
Exports all request/response models.
"""
from app.schemas.review import (
    ReviewRecord,
    StarRating,
    STAR_RATING_VALUES,
    star_value,
    CacheSnapshot,
    CacheInfo,
    ReviewsResponse,
)
from app.schemas.upstream import (
    UpstreamErrorKind,
    UpstreamError,
    FetchResult,
    BusinessInfo,
)
from app.schemas.error import ErrorCode, ErrorDetail, ErrorResponse, ERROR_CODE_TO_HTTP_STATUS

__all__ = [
    # Review
    "ReviewRecord",
    "StarRating",
    "STAR_RATING_VALUES",
    "star_value",
    "CacheSnapshot",
    "CacheInfo",
    "ReviewsResponse",
    # Upstream
    "UpstreamErrorKind",
    "UpstreamError",
    "FetchResult",
    "BusinessInfo",
    # Error
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
    "ERROR_CODE_TO_HTTP_STATUS",
]
