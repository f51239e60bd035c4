from __future__ import annotations

import logging
from time import perf_counter
import uuid

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from campus_scheduler.core.config import Settings

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        started = perf_counter()
        response = await call_next(request)
        response.headers.setdefault(REQUEST_ID_HEADER, request_id)
        logger.info(
            "HTTP REQUEST | request_id=%s | method=%s | path=%s | status=%s | duration_ms=%s",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            int((perf_counter() - started) * 1000),
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, *, settings: Settings) -> None:
        super().__init__(app)
        self._enable_hsts = settings.security_enable_hsts
        self._hsts_max_age = max(1, settings.security_hsts_max_age_seconds)

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        # Schedule payloads carry staff assignments; keep them out of shared caches.
        response.headers.setdefault("Cache-Control", "no-store")
        if self._enable_hsts:
            response.headers.setdefault("Strict-Transport-Security", f"max-age={self._hsts_max_age}; includeSubDomains")
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, *, max_bytes: int) -> None:
        super().__init__(app)
        self._max_bytes = max(1, max_bytes)

    async def dispatch(self, request: Request, call_next) -> Response:
        raw_length = request.headers.get("content-length")
        try:
            size = int(raw_length) if raw_length else 0
        except ValueError:
            size = 0
        if size > self._max_bytes:
            logger.warning(
                "REQUEST TOO LARGE | path=%s | size=%s | limit=%s",
                request.url.path,
                size,
                self._max_bytes,
            )
            return JSONResponse(
                status_code=413,
                content={
                    "message": "Request body too large",
                    "details": {"size": size, "maxBytes": self._max_bytes},
                },
            )
        return await call_next(request)
