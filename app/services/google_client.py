"""
Google Business Profile client.

Handles:
- OAuth2 access tokens minted from a long-lived refresh token
- Review fetching (v4 reviews API, following nextPageToken)
- Business metadata (title, place id) for enriching the reviews payload
- Account / location listing for the protected pass-through endpoints

Every failure is raised as UpstreamException carrying a tagged UpstreamError;
fetch_reviews converts it into a failed FetchResult instead of raising.
"""
import asyncio
import time
from typing import Any, Dict, List, Optional

import httpx

from app.core.exceptions import UpstreamException
from app.core.logging import logger
from app.schemas.upstream import (
    BusinessInfo,
    FetchResult,
    UpstreamError,
    UpstreamErrorKind,
)

TOKEN_URL = "https://oauth2.googleapis.com/token"
REVIEWS_API = "https://mybusiness.googleapis.com/v4"
ACCOUNT_API = "https://mybusinessaccountmanagement.googleapis.com/v1"
BUSINESS_INFO_API = "https://mybusinessbusinessinformation.googleapis.com/v1"


def _error_from_response(response: httpx.Response) -> UpstreamError:
    """Classify a non-2xx response."""
    try:
        detail = response.json()
    except ValueError:
        detail = response.text

    if response.status_code in (401, 403):
        kind = UpstreamErrorKind.AUTH
    elif response.status_code == 429:
        kind = UpstreamErrorKind.RATE_LIMITED
    else:
        kind = UpstreamErrorKind.HTTP

    return UpstreamError(kind=kind, detail=detail, status_code=response.status_code)


def _error_from_exception(exc: httpx.HTTPError) -> UpstreamError:
    """Classify a transport-level failure."""
    if isinstance(exc, httpx.TimeoutException):
        return UpstreamError(kind=UpstreamErrorKind.TIMEOUT, detail=str(exc) or "timed out")
    return UpstreamError(kind=UpstreamErrorKind.NETWORK, detail=str(exc) or type(exc).__name__)


def _decode_json(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        raise UpstreamException(
            UpstreamError(
                kind=UpstreamErrorKind.MALFORMED,
                detail="response body is not JSON",
                status_code=response.status_code,
            )
        )
    if not isinstance(data, dict):
        raise UpstreamException(
            UpstreamError(
                kind=UpstreamErrorKind.MALFORMED,
                detail="expected a JSON object",
                status_code=response.status_code,
            )
        )
    return data


def business_info_resource(location_name: str) -> str:
    """
    Convert a v4 location name to the Business Information resource name.

    "accounts/1/locations/2" -> "locations/2"
    """
    index = location_name.find("locations/")
    if index == -1:
        return location_name
    return location_name[index:]


class OAuthTokenProvider:
    """
    Exchanges a refresh token for short-lived access tokens.

    The token is cached until shortly before it expires; refreshes are
    serialized so concurrent requests share one exchange.
    """

    # Refresh this many seconds before the reported expiry
    EXPIRY_MARGIN_SECONDS = 60

    def __init__(
        self,
        http: httpx.AsyncClient,
        client_id: Optional[str],
        client_secret: Optional[str],
        refresh_token: Optional[str],
        token_url: str = TOKEN_URL,
    ):
        self.http = http
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.token_url = token_url
        self._access_token: Optional[str] = None
        self._expires_at: float = 0.0
        self._lock = asyncio.Lock()

    def _token_valid(self) -> bool:
        return self._access_token is not None and time.monotonic() < self._expires_at

    async def get_access_token(self) -> str:
        """
        Return a valid access token, refreshing it if needed.

        Raises:
            UpstreamException: credentials missing or token exchange failed
        """
        if self._token_valid():
            return self._access_token

        async with self._lock:
            if self._token_valid():
                return self._access_token

            if not (self.client_id and self.client_secret and self.refresh_token):
                raise UpstreamException(
                    UpstreamError(
                        kind=UpstreamErrorKind.AUTH,
                        detail="CLIENT_ID, CLIENT_SECRET and REFRESH_TOKEN must be set",
                    )
                )

            try:
                response = await self.http.post(
                    self.token_url,
                    data={
                        "grant_type": "refresh_token",
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "refresh_token": self.refresh_token,
                    },
                )
            except httpx.HTTPError as e:
                raise UpstreamException(_error_from_exception(e))

            if response.status_code >= 400:
                rejected = _error_from_response(response)
                # A rejected refresh token is an auth problem whatever the status
                raise UpstreamException(
                    UpstreamError(
                        kind=UpstreamErrorKind.AUTH,
                        detail=rejected.detail,
                        status_code=rejected.status_code,
                    )
                )

            data = _decode_json(response)
            token = data.get("access_token")
            if not token:
                raise UpstreamException(
                    UpstreamError(
                        kind=UpstreamErrorKind.MALFORMED,
                        detail="token response has no access_token",
                    )
                )

            expires_in = float(data.get("expires_in", 3600))
            self._access_token = token
            self._expires_at = time.monotonic() + max(0.0, expires_in - self.EXPIRY_MARGIN_SECONDS)
            logger.debug("Access token refreshed", extra={"expires_in": expires_in})
            return token


class GoogleBusinessClient:
    """
    Thin async client over the Google Business Profile REST APIs.

    USAGE:
        client = GoogleBusinessClient(http, tokens, page_size=50)
        result = await client.fetch_reviews("accounts/1/locations/2")
        if result.ok:
            ...
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        tokens: OAuthTokenProvider,
        page_size: int = 50,
        max_pages: int = 10,
    ):
        self.http = http
        self.tokens = tokens
        self.page_size = page_size
        self.max_pages = max(1, max_pages)

    async def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Authenticated GET returning the decoded JSON object."""
        token = await self.tokens.get_access_token()
        try:
            response = await self.http.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            raise UpstreamException(_error_from_exception(e))

        if response.status_code >= 400:
            raise UpstreamException(_error_from_response(response))

        return _decode_json(response)

    async def fetch_reviews(self, location_name: str) -> FetchResult:
        """
        Fetch the current reviews for a location.

        Follows nextPageToken up to max_pages. Never raises for upstream
        failures; they come back as a FetchResult with `error` set.

        Args:
            location_name: "accounts/{accountId}/locations/{locationId}"

        Returns:
            FetchResult with the review records or the tagged error
        """
        reviews: List[Dict[str, Any]] = []
        page_token = None

        try:
            for _ in range(self.max_pages):
                params = {"pageSize": self.page_size}
                if page_token:
                    params["pageToken"] = page_token

                data = await self._get(f"{REVIEWS_API}/{location_name}/reviews", params)

                page = data.get("reviews", [])
                if not isinstance(page, list):
                    raise UpstreamException(
                        UpstreamError(
                            kind=UpstreamErrorKind.MALFORMED,
                            detail="reviews is not a list",
                        )
                    )
                reviews.extend(r for r in page if isinstance(r, dict))

                page_token = data.get("nextPageToken")
                if not page_token:
                    break
        except UpstreamException as e:
            logger.warning(
                "Review fetch failed",
                extra={
                    "location": location_name,
                    "error_kind": e.upstream_error.kind,
                    "error_detail": e.upstream_error.detail,
                },
            )
            return FetchResult.failure(e.upstream_error)

        logger.info(
            "Fetched reviews from Google",
            extra={"location": location_name, "count": len(reviews)},
        )
        return FetchResult.success(reviews)

    async def get_business_info(self, location_name: str, default_name: str) -> BusinessInfo:
        """
        Look up the business title and Google place id.

        Raises:
            UpstreamException: lookup failed
        """
        resource = business_info_resource(location_name)
        data = await self._get(
            f"{BUSINESS_INFO_API}/{resource}",
            {"readMask": "title,metadata"},
        )
        metadata = data.get("metadata") or {}
        return BusinessInfo(
            name=data.get("title") or default_name,
            place_id=metadata.get("placeId") if isinstance(metadata, dict) else None,
        )

    async def list_accounts(self) -> Dict[str, Any]:
        """List accounts visible to the authorized user."""
        return await self._get(f"{ACCOUNT_API}/accounts")

    async def list_locations(self, account_name: str) -> Dict[str, Any]:
        """List locations under an account."""
        return await self._get(
            f"{BUSINESS_INFO_API}/{account_name}/locations",
            {"pageSize": 100, "readMask": "name,title,storefrontAddress"},
        )
