"""
Health check endpoint for the Portfolio Contact API.

Reports liveness and whether the SMTP relay is configured. Rate-limited
under the lenient general API cap.
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from portfolio_api.core.email import MailDispatcher, get_mail_dispatcher
from portfolio_api.core.rate_limiter import check_api_rate_limit
from portfolio_api.schemas.contact import HealthResponse
from portfolio_api.schemas.error import RateLimitError

router = APIRouter(tags=["health"])


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={429: {"model": RateLimitError, "description": "Rate Limit Exceeded"}},
    summary="Health check",
    dependencies=[Depends(check_api_rate_limit)],
)
async def health_check(
    dispatcher: MailDispatcher = Depends(get_mail_dispatcher),
) -> HealthResponse:
    """Always 200 while the process is serving requests."""
    return HealthResponse(
        message="Server is running",
        timestamp=_utc_timestamp(),
        emailConfigured=dispatcher.configured,
    )
