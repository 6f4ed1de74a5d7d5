"""
Review service - orchestrates one load / fetch / merge / persist cycle.

Upstream, persistence and enrichment failures degrade the response instead of
failing it: as long as anything was ever cached, callers get reviews back.
"""
import asyncio
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from app.core.logging import logger
from app.schemas.review import (
    CacheInfo,
    CacheSnapshot,
    ReviewRecord,
    ReviewsResponse,
    star_value,
)
from app.schemas.upstream import BusinessInfo, FetchResult, UpstreamError, UpstreamErrorKind
from app.services.google_client import GoogleBusinessClient
from app.services.review_store import ReviewStore, merge_reviews


def utc_now_iso() -> str:
    """Current UTC time as ISO 8601 with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def average_rating(records: Iterable[ReviewRecord]) -> float:
    """
    Mean star value over the records, rounded to 2 decimals.

    Unrecognized ratings add 0 but still count. Empty input gives 0.
    """
    records = list(records)
    if not records:
        return 0
    total = sum(star_value(r) for r in records)
    return round(total / len(records), 2)


class ReviewService:
    """
    Serves the /reviews payload from the cache merged with a fresh fetch.

    Collaborators are injected so tests can substitute a fake client:
    - store: ReviewStore over any SnapshotBackend
    - client: anything with fetch_reviews() and get_business_info()
    """

    def __init__(
        self,
        store: ReviewStore,
        client: GoogleBusinessClient,
        default_business_name: str,
        clock: Callable[[], str] = utc_now_iso,
    ):
        self.store = store
        self.client = client
        self.default_business_name = default_business_name
        self.clock = clock

    async def _fetch(self, location_name: str) -> FetchResult:
        try:
            result = await self.client.fetch_reviews(location_name)
        except Exception as e:
            logger.error(
                "Review fetch raised unexpectedly",
                extra={"location": location_name, "error": str(e)},
                exc_info=True,
            )
            return FetchResult.failure(
                UpstreamError(kind=UpstreamErrorKind.UNEXPECTED, detail=str(e))
            )

        # Id-less records are dropped by the merge; a non-string id means the
        # page itself is not what the API promises
        bad_ids = sum(
            1 for r in result.reviews
            if r.get("reviewId") is not None and not isinstance(r.get("reviewId"), str)
        )
        if bad_ids:
            logger.warning(
                "Fetched reviews carry invalid reviewIds, ignoring the page",
                extra={"location": location_name, "invalid_ids": bad_ids},
            )
            return FetchResult.failure(
                UpstreamError(
                    kind=UpstreamErrorKind.MALFORMED,
                    detail=f"{bad_ids} review(s) with a non-string reviewId",
                )
            )
        return result

    async def _business_info(self, location_name: str) -> BusinessInfo:
        try:
            return await self.client.get_business_info(
                location_name, self.default_business_name
            )
        except Exception as e:
            logger.warning(
                "Business info lookup failed, using defaults",
                extra={"location": location_name, "error": str(e)},
            )
            return BusinessInfo(name=self.default_business_name)

    async def get_reviews(self, location_name: str) -> ReviewsResponse:
        """
        Run one cache cycle for a location.

        Args:
            location_name: "accounts/{accountId}/locations/{locationId}"

        Returns:
            ReviewsResponse built from the merged cache
        """
        snapshot = await self.store.load()

        result, info = await asyncio.gather(
            self._fetch(location_name),
            self._business_info(location_name),
        )

        merged = merge_reviews(snapshot.reviews, result.reviews)

        # Only a successful fetch counts as fresh data
        last_updated = self.clock() if result.ok else snapshot.last_updated

        await self.store.persist(
            CacheSnapshot(reviews=merged, last_updated=last_updated), fresh=result.reviews
        )

        logger.info(
            "Review cache cycle complete",
            extra={
                "location": location_name,
                "fetch_ok": result.ok,
                "fetched": len(result.reviews),
                "previously_cached": len(snapshot.reviews),
                "total_cached": len(merged),
            },
        )

        return ReviewsResponse(
            reviews=merged,
            average_rating=average_rating(merged),
            total_review_count=len(merged),
            name=info.name,
            place_id=info.place_id,
            cached=not result.ok,
            cache_info=CacheInfo(
                total_cached=len(merged),
                new_from_google=len(result.reviews),
                last_updated=last_updated,
            ),
        )

    async def degraded_response(self, error: Optional[str] = None) -> ReviewsResponse:
        """
        Best-effort payload straight from the cache, used after an internal error.
        """
        snapshot = await self.store.load()
        reviews = snapshot.reviews

        return ReviewsResponse(
            reviews=reviews,
            average_rating=average_rating(reviews),
            total_review_count=len(reviews),
            name=self.default_business_name,
            place_id=None,
            cached=True,
            cache_info=CacheInfo(
                total_cached=len(reviews),
                new_from_google=0,
                last_updated=snapshot.last_updated,
            ),
            error=error or "Internal server error",
        )
