"""
SQLAlchemy models package.
"""
from app.models.review_cache import ReviewCacheDocument

__all__ = [
    "ReviewCacheDocument",
]
