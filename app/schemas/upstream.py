"""
Schemas describing results from the Google Business Profile APIs.
"""
from typing import Any, Dict, List, Optional
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict


class UpstreamErrorKind(str, Enum):
    """Classification of upstream failures."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    AUTH = "auth"
    RATE_LIMITED = "rate_limited"
    HTTP = "http"
    MALFORMED = "malformed"
    UNEXPECTED = "unexpected"


class UpstreamError(BaseModel):
    """
    Tagged upstream error.

    `detail` carries whatever the upstream returned (decoded JSON error body when
    available, otherwise a message string).
    """

    kind: UpstreamErrorKind
    detail: Any = None
    status_code: Optional[int] = None

    model_config = ConfigDict(use_enum_values=True)


class FetchResult(BaseModel):
    """Outcome of a review fetch: either records or an error, never both."""

    reviews: List[Dict[str, Any]] = Field(default_factory=list)
    error: Optional[UpstreamError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, reviews: List[Dict[str, Any]]) -> "FetchResult":
        return cls(reviews=reviews)

    @classmethod
    def failure(cls, error: UpstreamError) -> "FetchResult":
        return cls(error=error)


class BusinessInfo(BaseModel):
    """Business display metadata used to enrich the reviews payload."""

    name: str
    place_id: Optional[str] = None
