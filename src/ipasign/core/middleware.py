"""Middleware for HTTP error logging and upload size enforcement."""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ipasign.core.config import settings
from ipasign.core.logging import session_id_context

logger = logging.getLogger(__name__)


class HTTPErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to ensure all HTTP errors are logged.

    - 4xx responses: logged at WARN level
    - 5xx responses: logged at ERROR level
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        session_id_context.set(None)

        response = await call_next(request)

        duration_ms = (time.time() - start_time) * 1000
        log_extra = {
            "http_status": response.status_code,
            "method": request.method,
            "path": request.url.path,
            "duration_ms": duration_ms,
        }

        if 400 <= response.status_code < 500:
            logger.warning("Client error response", extra=log_extra)
        elif response.status_code >= 500:
            logger.error("Server error response", extra=log_extra)

        return response


class UploadSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject signing uploads whose declared body size can never be valid.

    Runs before the multipart body is read, so oversized requests fail
    without spooling gigabytes to disk. Per-file limits are still enforced
    while streaming each part.
    """

    def __init__(self, app, path: str = "/api/sign"):
        super().__init__(app)
        self.path = path

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method == "POST" and request.url.path == self.path:
            content_length = request.headers.get("content-length")
            if content_length and content_length.isdigit():
                if int(content_length) > settings.max_request_bytes:
                    logger.warning(
                        "Rejected oversized upload",
                        extra={"content_length": int(content_length)},
                    )
                    return JSONResponse(
                        status_code=400,
                        content={
                            "success": False,
                            "error": (
                                f"File size exceeds maximum allowed size of "
                                f"{settings.MAX_FILE_SIZE} bytes"
                            ),
                        },
                    )
        return await call_next(request)
