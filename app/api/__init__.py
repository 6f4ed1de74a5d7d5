"""
API routers package.
"""
from app.api import health, reviews, google

__all__ = [
    "health",
    "reviews",
    "google",
]
