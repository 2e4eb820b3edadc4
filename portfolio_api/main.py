import asyncio
import logging
from contextlib import asynccontextmanager, suppress

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portfolio_api.api.routes import health
from portfolio_api.api.v1 import contact
from portfolio_api.core.config import settings
from portfolio_api.core.email import MailDispatcher
from portfolio_api.core.errors import register_exception_handlers
from portfolio_api.core.logging import setup_logging
from portfolio_api.core.middleware import (
    BodySizeLimitMiddleware,
    LatencyMonitorMiddleware,
    OriginGateMiddleware,
    RequestIdMiddleware,
)

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)


tags_metadata = [
    {
        "name": "contact",
        "description": "**Contact** - Portfolio contact form relayed to the site owner by email.",
    },
    {
        "name": "health",
        "description": "**Health** - Liveness and email configuration status.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    dispatcher: MailDispatcher = app.state.mail_dispatcher

    logger.info("Starting %s v%s", settings.PROJECT_NAME, settings.VERSION)
    logger.info("Environment: %s | Port: %s", settings.ENVIRONMENT, settings.PORT)
    logger.info("Frontend URL: %s", settings.FRONTEND_URL)
    logger.info("Email status: %s", "configured" if dispatcher.configured else "not configured")

    app.state.verify_task = None
    if dispatcher.configured:
        # Verification result is informational; startup does not wait on it
        app.state.verify_task = asyncio.create_task(dispatcher.verify())
    else:
        logger.warning(
            "Email configuration incomplete. Contact form will not send emails. "
            "Set SMTP_HOST, SMTP_USER and SMTP_PASSWORD."
        )

    yield

    # Shutdown
    logger.info("Shutting down...")
    verify_task = app.state.verify_task
    if verify_task is not None and not verify_task.done():
        verify_task.cancel()
        with suppress(asyncio.CancelledError):
            await verify_task


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="""
## Portfolio Contact API

Backend for the portfolio website contact form: validation, spam filtering,
rate limiting and email relay with an automatic acknowledgement.
    """,
    openapi_tags=tags_metadata,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
)

app.state.mail_dispatcher = MailDispatcher.from_settings(settings)

# Request body cap
app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.MAX_BODY_BYTES)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_origin_regex=settings.cors_origin_regex,
    allow_credentials=True,
    allow_methods=settings.ALLOWED_METHODS,
    allow_headers=settings.ALLOWED_HEADERS,
    expose_headers=[
        "X-Request-ID",
        "RateLimit-Limit",
        "RateLimit-Remaining",
        "RateLimit-Reset",
        "Retry-After",
    ],
    max_age=settings.CORS_MAX_AGE,
)

# Foreign origins get 403 before any route runs
app.add_middleware(OriginGateMiddleware, is_allowed=settings.origin_allowed)

# Latency Monitoring (SLO Check)
app.add_middleware(LatencyMonitorMiddleware)

# Request ID Tracing
app.add_middleware(RequestIdMiddleware)

# Register global exception handlers
register_exception_handlers(app)

app.include_router(contact.router, prefix=settings.API_PREFIX, tags=["contact"])
app.include_router(health.router, prefix=settings.API_PREFIX, tags=["health"])


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    uvicorn.run(
        "portfolio_api.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.ENVIRONMENT == "development",
        log_config=None,
    )


if __name__ == "__main__":
    run()
