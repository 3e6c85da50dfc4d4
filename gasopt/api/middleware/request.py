"""Request middleware — request ID tracking and request size limits.

Adds:
  - X-Request-ID header propagation (or generation) for tracing
  - Request body size enforcement to prevent abuse
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from gasopt.api.errors import ErrorCode

logger = logging.getLogger(__name__)

# Analysis requests carry only signatures and numbers
DEFAULT_MAX_REQUEST_SIZE = 256 * 1024  # 256 KB


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Propagate or generate X-Request-ID for every request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Enforce maximum request body size."""

    def __init__(self, app: ASGIApp, max_size: int = DEFAULT_MAX_REQUEST_SIZE) -> None:
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method not in ("POST", "PUT", "PATCH"):
            return await call_next(request)

        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit():
            size = int(content_length)
            if size > self.max_size:
                logger.warning("Rejected %d-byte body on %s", size, request.url.path)
                return JSONResponse(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    content={
                        "error": {
                            "code": ErrorCode.PAYLOAD_TOO_LARGE.value,
                            "message": f"Request body too large: {size} bytes (max: {self.max_size})",
                            "details": None,
                            "request_id": getattr(request.state, "request_id", None),
                        }
                    },
                )

        return await call_next(request)
