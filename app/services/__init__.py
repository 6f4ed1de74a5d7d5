"""
Services package.
Review cache, orchestration and Google API client.
"""
from app.services.review_store import ReviewStore, merge_reviews, parse_timestamp
from app.services.review_service import ReviewService, average_rating
from app.services.google_client import GoogleBusinessClient, OAuthTokenProvider

__all__ = [
    "ReviewStore",
    "merge_reviews",
    "parse_timestamp",
    "ReviewService",
    "average_rating",
    "GoogleBusinessClient",
    "OAuthTokenProvider",
]
