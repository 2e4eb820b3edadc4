import logging
import time
import uuid
from typing import Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from portfolio_api.core.errors import OriginRejected, PayloadTooLarge

logger = logging.getLogger("portfolio_api.latency")

# Service Level Objectives (SLOs) - Max latency definitions
SLO_THRESHOLDS = {
    "/api/health": 0.200,  # 200ms for health check
    "/api/contact": 12.000,  # SMTP round trip plus the 10s transport timeout
}


class LatencyMonitorMiddleware(BaseHTTPMiddleware):
    """
    Middleware to monitor request latency and check against defined SLOs.
    Logs warnings if SLO is breached.
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()

        response = await call_next(request)

        process_time = time.perf_counter() - start_time

        # Add processing time to headers for transparency
        response.headers["X-Process-Time"] = str(process_time)

        self._check_slo(request.url.path, process_time)

        return response

    def _check_slo(self, path: str, duration: float):
        budget = SLO_THRESHOLDS.get(path.rstrip("/") or "/")
        if budget and duration > budget:
            logger.warning(
                "SLO_BREACH | Endpoint: %s | Duration: %.4fs | Budget: %.3fs",
                path,
                duration,
                budget,
            )


class BodySizeLimitMiddleware:
    """
    Cap request bodies at ``max_bytes``.

    A declared Content-Length over the cap is answered with 413 before
    routing. Bodies without one (chunked uploads) are counted as they are
    received; PayloadTooLarge is raised from ``receive`` once the cap is
    passed and rendered by the registered exception handlers.
    """

    def __init__(self, app: ASGIApp, max_bytes: int) -> None:
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        declared = Headers(scope=scope).get("content-length")
        if declared and declared.isdigit() and int(declared) > self.max_bytes:
            logger.warning("Request body too large: %s bytes on %s", declared, path)
            error = PayloadTooLarge()
            response = JSONResponse(status_code=error.status_code, content=error.to_content())
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    logger.warning("Streamed request body over %d bytes on %s", self.max_bytes, path)
                    raise PayloadTooLarge()
            return message

        await self.app(scope, limited_receive, send)


class OriginGateMiddleware(BaseHTTPMiddleware):
    """Reject requests whose Origin header is outside the CORS allow list."""

    def __init__(self, app, is_allowed: Callable[[str], bool]):
        super().__init__(app)
        self.is_allowed = is_allowed

    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("origin")
        if origin and not self.is_allowed(origin):
            logger.warning("Blocked request from origin %s on %s", origin, request.url.path)
            error = OriginRejected()
            return JSONResponse(status_code=error.status_code, content=error.to_content())
        return await call_next(request)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add X-Request-ID header for distributed tracing.

    If the client sends X-Request-ID, it is preserved.
    Otherwise, a new UUID is generated.

    The request ID is:
    - Available in request.state.request_id for logging
    - Returned in response headers for client correlation
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        request.state.request_id = request_id

        logger.info(
            "REQUEST | id=%s | method=%s | path=%s",
            request_id,
            request.method,
            request.url.path,
        )

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id

        return response
