"""
=============================================================================
PORTFOLIO CONTACT API - ERROR HANDLING MODULE
=============================================================================
Error taxonomy for the contact pipeline and the global handlers that turn
every failure into the ``{success: false, error, code}`` envelope.

Features:
- One exception class per client-visible error code
- Starlette HTTP errors (404, 405, ...) rendered in the same envelope
- Catch-all handler logs the traceback and returns INTERNAL_ERROR
- Prevents information leakage outside debug mode

Usage:
    # In main.py
    from portfolio_api.core.errors import register_exception_handlers
    register_exception_handlers(app)
=============================================================================
"""

import logging
import traceback
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from portfolio_api.core.config import settings

logger = logging.getLogger(__name__)


class ContactError(Exception):
    """Base class for failures that map to a structured client response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred. Please try again later."

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[List[Dict[str, str]]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.message = message or self.message
        self.details = details
        self.headers = headers
        super().__init__(self.message)

    def to_content(self) -> Dict[str, Any]:
        content: Dict[str, Any] = {
            "success": False,
            "error": self.message,
            "code": self.code,
        }
        if self.details is not None:
            content["details"] = self.details
        return content


class ValidationFailed(ContactError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    message = "Validation failed"


class SpamRejected(ContactError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "SPAM_DETECTED"
    message = "Your message appears to be spam. Please revise and try again."


class PayloadTooLarge(ContactError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    code = "PAYLOAD_TOO_LARGE"
    message = "Request body is too large."


class OriginRejected(ContactError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "CORS_ERROR"
    message = "Origin not allowed"


class RateLimitExceeded(ContactError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "RATE_LIMIT_EXCEEDED"
    message = "Too many requests, please try again later."


class ServiceUnavailable(ContactError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "SERVICE_UNAVAILABLE"
    message = "Email service is not configured. Please contact the administrator."


class DispatchAuthError(ContactError):
    code = "EMAIL_AUTH_ERROR"
    message = "Email authentication failed. Please contact the administrator."


class DispatchConnectionError(ContactError):
    code = "EMAIL_CONNECTION_ERROR"
    message = "Could not connect to email server. Please try again later."


class InternalError(ContactError):
    pass


_HTTP_CODES = {
    status.HTTP_400_BAD_REQUEST: ("BAD_REQUEST", "Bad request"),
    status.HTTP_404_NOT_FOUND: ("NOT_FOUND", "Endpoint not found"),
    status.HTTP_405_METHOD_NOT_ALLOWED: ("METHOD_NOT_ALLOWED", "Method not allowed"),
    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: (
        "PAYLOAD_TOO_LARGE",
        "Request body is too large.",
    ),
    status.HTTP_429_TOO_MANY_REQUESTS: (
        "RATE_LIMIT_EXCEEDED",
        "Too many requests. Please try again later.",
    ),
}


def _field_from_loc(loc) -> str:
    parts = [str(part) for part in loc if part != "body"]
    return ".".join(parts) or "body"


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(ContactError)
    async def contact_error_handler(request: Request, exc: ContactError):
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_content(),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = [
            {"field": _field_from_loc(err.get("loc", ())), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ValidationFailed(details=details).to_content(),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        code, default_message = _HTTP_CODES.get(
            exc.status_code, ("HTTP_ERROR", "Request could not be processed")
        )
        message = default_message
        # Starlette's own 404/405 details are generic phrases; keep ours
        if isinstance(exc.detail, str) and exc.status_code not in (404, 405):
            message = exc.detail
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": message, "code": code},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all handler for unhandled exceptions.

        - Logs the full traceback for debugging
        - Returns a generic error message to prevent info leakage
        - In debug mode, includes more details
        """
        logger.error(
            "Unhandled exception on %s %s:\n%s",
            request.method,
            request.url.path,
            traceback.format_exc(),
        )

        content = InternalError().to_content()
        if settings.DEBUG:
            content["error_type"] = type(exc).__name__
            content["detail"] = str(exc)
            content["path"] = request.url.path
        return JSONResponse(status_code=500, content=content)
