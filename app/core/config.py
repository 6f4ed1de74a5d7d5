"""
Core configuration module using Pydantic Settings.
"""
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Google OAuth2 credentials
    CLIENT_ID: Optional[str] = None
    CLIENT_SECRET: Optional[str] = None
    REFRESH_TOKEN: Optional[str] = None

    # Google Business Profile resources
    ACCOUNT_NAME: Optional[str] = None  # accounts/{accountId}
    LOCATION_NAME: Optional[str] = None  # accounts/{accountId}/locations/{locationId}

    # Upstream fetching
    REVIEWS_PAGE_SIZE: int = 50
    MAX_REVIEW_PAGES: int = 10
    UPSTREAM_TIMEOUT_SECONDS: float = 10.0

    # API Configuration
    API_KEY: str = "change-me-in-production"
    DEFAULT_BUSINESS_NAME: str = "Our Business"
    INDEX_HTML_PATH: str = "index.html"
    CORS_ALLOW_ORIGINS: List[str] = ["*"]

    # Review cache storage
    STORE_BACKEND: str = "file"  # "file" or "database"
    CACHE_FILE: str = "./data/reviews-cache.json"
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/reviews-cache.db"
    CACHE_KEY: str = "reviews"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 1

    # Logging
    LOG_LEVEL: str = "INFO"

    # Application
    APP_NAME: str = "Review Cache API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


# Global settings instance
settings = Settings()
