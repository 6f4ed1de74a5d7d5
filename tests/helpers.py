"""
Test helpers: review record factory and a scripted Google client.
"""
from typing import Any, Dict, List, Optional

from app.schemas.upstream import BusinessInfo, FetchResult, UpstreamError, UpstreamErrorKind

FIXED_NOW = "2026-01-01T12:00:00.000Z"


def make_review(
    review_id: Optional[str],
    create_time: Optional[str] = "2024-01-01T00:00:00Z",
    rating: Optional[str] = "FIVE",
    **extra: Any,
) -> Dict[str, Any]:
    """Build a review record shaped like the Google v4 API returns it."""
    record: Dict[str, Any] = {}
    if review_id is not None:
        record["reviewId"] = review_id
    if create_time is not None:
        record["createTime"] = create_time
    if rating is not None:
        record["starRating"] = rating
    record.update(extra)
    return record


def network_error() -> UpstreamError:
    return UpstreamError(kind=UpstreamErrorKind.NETWORK, detail="connection refused")


class FakeGoogleClient:
    """Stand-in for GoogleBusinessClient with scripted results."""

    def __init__(
        self,
        reviews: Optional[List[Dict[str, Any]]] = None,
        error: Optional[UpstreamError] = None,
        raise_on_fetch: Optional[Exception] = None,
        info: Optional[BusinessInfo] = None,
        raise_on_info: Optional[Exception] = None,
    ):
        self.reviews = reviews or []
        self.error = error
        self.raise_on_fetch = raise_on_fetch
        self.info = info or BusinessInfo(name="Test Bakery", place_id="ChIJ-test")
        self.raise_on_info = raise_on_info
        self.fetch_calls: List[str] = []

    async def fetch_reviews(self, location_name: str) -> FetchResult:
        self.fetch_calls.append(location_name)
        if self.raise_on_fetch is not None:
            raise self.raise_on_fetch
        if self.error is not None:
            return FetchResult.failure(self.error)
        return FetchResult.success(list(self.reviews))

    async def get_business_info(self, location_name: str, default_name: str) -> BusinessInfo:
        if self.raise_on_info is not None:
            raise self.raise_on_info
        return self.info

    async def list_accounts(self) -> Dict[str, Any]:
        return {"accounts": [{"name": "accounts/1", "accountName": "Test Bakery"}]}

    async def list_locations(self, account_name: str) -> Dict[str, Any]:
        return {"locations": [{"name": "locations/2", "title": "Test Bakery"}], "account": account_name}
