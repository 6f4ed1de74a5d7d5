"""
Custom middleware for the FastAPI application.
"""
import uuid
import time
from typing import Callable, Optional
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from contextvars import ContextVar

from app.core.logging import logger

REQUEST_ID_HEADER = "X-Request-Id"

# Context variable to store request ID across async calls
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Attach a request ID to each request.

    An incoming X-Request-Id header is reused so that IDs from an upstream proxy
    survive; otherwise a UUID4 is generated. The ID is stored in a context
    variable, echoed in the response header, and included in the access log.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_var.set(request_id)
        request.state.request_id = request_id

        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"Request failed with exception: {str(e)}",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                },
                exc_info=True,
            )
            raise
        finally:
            request_id_var.reset(token)

        latency = time.perf_counter() - start_time
        response.headers[REQUEST_ID_HEADER] = request_id

        # Liveness probes are noisy; keep them out of the info log
        log = logger.debug if request.url.path == "/health" else logger.info
        log(
            "Request completed",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "latency_seconds": round(latency, 4),
            },
        )

        return response


def get_request_id() -> str:
    """
    Get the current request ID from context.
    Returns a fresh UUID when called outside a request.
    """
    request_id = request_id_var.get()
    if request_id is None:
        return str(uuid.uuid4())
    return request_id
