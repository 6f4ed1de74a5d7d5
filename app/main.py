"""
FastAPI application entry point.
"""
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, Tuple

import httpx
from fastapi import FastAPI, Request, status
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.config import settings, Settings
from app.core.middleware import RequestIdMiddleware, get_request_id
from app.core.logging import logger
from app.core.exceptions import AppException
from app.schemas.error import ErrorResponse, ErrorDetail, ErrorCode, ERROR_CODE_TO_HTTP_STATUS
from app.db.backends import DatabaseSnapshotBackend, FileSnapshotBackend
from app.db.database import build_engine, build_session_factory, init_db, close_db
from app.services.google_client import GoogleBusinessClient, OAuthTokenProvider
from app.services.review_service import ReviewService
from app.services.review_store import ReviewStore

# Import routers
from app.api import health, reviews, google

FALLBACK_PAGE = "<h2>Google Business Profile Reviews</h2>"


async def build_review_store(config: Settings) -> Tuple[ReviewStore, Optional[AsyncEngine]]:
    """
    Create the ReviewStore for the configured backend.

    Returns:
        (store, engine) where engine is None for the file backend
    """
    backend_name = config.STORE_BACKEND.lower()

    if backend_name == "database":
        engine = build_engine(config.DATABASE_URL)
        await init_db(engine)
        backend = DatabaseSnapshotBackend(build_session_factory(engine), key=config.CACHE_KEY)
        return ReviewStore(backend), engine

    if backend_name != "file":
        logger.warning(
            f"Unknown STORE_BACKEND {config.STORE_BACKEND!r}, using file",
            extra={"store_backend": config.STORE_BACKEND},
        )
    return ReviewStore(FileSnapshotBackend(Path(config.CACHE_FILE))), None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    Builds the shared HTTP client, Google client, review store and review
    service and attaches them to app.state.
    """
    logger.info("Starting up Review Cache API")

    http = httpx.AsyncClient(timeout=settings.UPSTREAM_TIMEOUT_SECONDS)
    tokens = OAuthTokenProvider(
        http,
        settings.CLIENT_ID,
        settings.CLIENT_SECRET,
        settings.REFRESH_TOKEN,
    )
    google_client = GoogleBusinessClient(
        http,
        tokens,
        page_size=settings.REVIEWS_PAGE_SIZE,
        max_pages=settings.MAX_REVIEW_PAGES,
    )

    store, engine = await build_review_store(settings)
    logger.info("Review store ready", extra={"backend": repr(store.backend)})

    app.state.google_client = google_client
    app.state.review_service = ReviewService(
        store,
        google_client,
        default_business_name=settings.DEFAULT_BUSINESS_NAME,
    )

    if not settings.LOCATION_NAME:
        logger.warning("LOCATION_NAME not set; /reviews will return 400")

    yield

    logger.info("Shutting down Review Cache API")
    await http.aclose()
    if engine is not None:
        await close_db(engine)
        logger.info("Database connections closed")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Google Business Profile reviews with a durable merge cache",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Add middleware
app.add_middleware(RequestIdMiddleware)

# Reviews are embedded on third-party sites, so allow any origin by default
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept"],
)


# Exception handlers
@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    """
    Handle all custom application exceptions.

    Returns standardized error response with proper HTTP status code.
    """
    request_id = get_request_id()

    logger.warning(
        f"Application exception: {exc.error_code.value}",
        extra={
            "request_id": request_id,
            "error_code": exc.error_code.value,
            "error_message": exc.message,
            "details": exc.details,
        },
    )

    error_response = ErrorResponse(
        request_id=request_id,
        error=ErrorDetail(
            code=exc.error_code,
            message=exc.message,
            details=exc.details if exc.details else None,
        ),
    )

    status_code = ERROR_CODE_TO_HTTP_STATUS.get(exc.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(by_alias=True, exclude_none=True),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle request validation errors (422).
    """
    request_id = get_request_id()

    error_details = {
        "validation_errors": [
            {
                "field": ".".join(str(loc) for loc in err["loc"]),
                "message": err["msg"],
                "type": err["type"],
            }
            for err in exc.errors()
        ]
    }

    logger.warning(
        "Validation error",
        extra={"request_id": request_id, "errors": error_details},
    )

    error_response = ErrorResponse(
        request_id=request_id,
        error=ErrorDetail(
            code=ErrorCode.INVALID_ARGUMENT,
            message="Request validation failed",
            details=error_details,
        ),
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response.model_dump(by_alias=True, exclude_none=True),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """
    Handle all uncaught exceptions with a standardized 500 response.
    """
    request_id = get_request_id()

    logger.error(
        f"Uncaught exception: {str(exc)}",
        extra={"request_id": request_id, "exception_type": type(exc).__name__},
        exc_info=True,
    )

    error_response = ErrorResponse(
        request_id=request_id,
        error=ErrorDetail(
            code=ErrorCode.INTERNAL,
            message="Internal server error",
            details={"error": str(exc)} if settings.DEBUG else None,
        ),
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response.model_dump(by_alias=True, exclude_none=True),
    )


# Include routers
app.include_router(health.router)
app.include_router(reviews.router)
app.include_router(google.router)


# Root endpoint
@app.get("/", include_in_schema=False)
async def root():
    """Serve the static reviews page, or a placeholder when it is missing."""
    page = Path(settings.INDEX_HTML_PATH)
    if page.is_file():
        return FileResponse(page, media_type="text/html")
    return HTMLResponse(FALLBACK_PAGE)


def serve() -> None:
    """Run the API with uvicorn using HOST / PORT / WORKERS from settings."""
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        workers=settings.WORKERS,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    serve()
