"""
Pydantic schemas for cached reviews and the /reviews payload.

Review records themselves are kept as plain dicts: the upstream object is opaque
payload apart from `reviewId`, `createTime` and `starRating`, and must round-trip
through the cache verbatim.
"""
from typing import Any, Dict, List, Optional
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict

ReviewRecord = Dict[str, Any]


class StarRating(str, Enum):
    """Star rating values used by the Google Business Profile API."""

    ONE = "ONE"
    TWO = "TWO"
    THREE = "THREE"
    FOUR = "FOUR"
    FIVE = "FIVE"


STAR_RATING_VALUES = {
    StarRating.ONE.value: 1,
    StarRating.TWO.value: 2,
    StarRating.THREE.value: 3,
    StarRating.FOUR.value: 4,
    StarRating.FIVE.value: 5,
}


def star_value(record: ReviewRecord) -> int:
    """Numeric value of a record's starRating; 0 when missing or unrecognized."""
    rating = record.get("starRating")
    if not isinstance(rating, str):
        return 0
    return STAR_RATING_VALUES.get(rating, 0)


class CacheSnapshot(BaseModel):
    """
    Durable cache document.

    Persisted as {"reviews": [...], "lastUpdated": "..."}.
    """

    reviews: List[ReviewRecord] = Field(default_factory=list)
    last_updated: Optional[str] = Field(None, alias="lastUpdated")

    model_config = ConfigDict(populate_by_name=True)


class CacheInfo(BaseModel):
    """Cache bookkeeping returned alongside the reviews."""

    total_cached: int = Field(..., alias="totalCached")
    new_from_google: int = Field(..., alias="newFromGoogle")
    last_updated: Optional[str] = Field(None, alias="lastUpdated")

    model_config = ConfigDict(populate_by_name=True)


class ReviewsResponse(BaseModel):
    """
    Response body for GET /reviews.

    `error` is only present on the degraded (HTTP 500) path.
    """

    reviews: List[ReviewRecord] = Field(default_factory=list)
    average_rating: float = Field(0, alias="averageRating")
    total_review_count: int = Field(0, alias="totalReviewCount")
    name: str
    place_id: Optional[str] = Field(None, alias="placeId")
    cached: bool
    cache_info: CacheInfo = Field(..., alias="cacheInfo")
    error: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize with camelCase keys, omitting `error` when unset."""
        payload = self.model_dump(by_alias=True)
        if payload.get("error") is None:
            payload.pop("error", None)
        return payload
