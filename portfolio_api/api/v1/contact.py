"""
Contact form endpoint.

Public endpoint that relays a portfolio contact submission to the site owner
by email and schedules an automatic acknowledgement to the sender.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from portfolio_api.core.email import MailDispatcher, get_mail_dispatcher
from portfolio_api.core.errors import ValidationFailed
from portfolio_api.core.rate_limiter import check_contact_rate_limit
from portfolio_api.schemas.contact import ContactResponse
from portfolio_api.schemas.error import CONTACT_ERROR_RESPONSES
from portfolio_api.services.contact_service import ContactService, build_contact_service

logger = logging.getLogger(__name__)

router = APIRouter()

_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def get_contact_service(
    dispatcher: MailDispatcher = Depends(get_mail_dispatcher),
) -> ContactService:
    """Return the contact pipeline bound to the application's dispatcher."""
    return build_contact_service(dispatcher)


def _body_error(message: str) -> ValidationFailed:
    return ValidationFailed(details=[{"field": "body", "message": message}])


async def read_contact_payload(request: Request) -> Dict[str, Any]:
    """Read a JSON object or a urlencoded/multipart form into a plain dict."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(_FORM_TYPES):
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    try:
        payload = await request.json()
    except ValueError as exc:
        raise _body_error("Request body must be valid JSON") from exc

    if not isinstance(payload, dict):
        raise _body_error("Request body must be a JSON object")
    return payload


@router.post(
    "/contact",
    response_model=ContactResponse,
    responses=CONTACT_ERROR_RESPONSES,
    summary="Send a contact message",
    description="Validates the submission, relays it to the site owner by email "
    "and sends an automatic acknowledgement to the sender.",
)
async def submit_contact(
    request: Request,
    background_tasks: BackgroundTasks,
    client_ip: str = Depends(check_contact_rate_limit),
    service: ContactService = Depends(get_contact_service),
) -> ContactResponse:
    """Run one contact submission through the pipeline."""
    payload = await read_contact_payload(request)
    receipt = await service.submit(payload, client_ip)

    # Auto-reply runs after the response is sent; its outcome is log-only
    background_tasks.add_task(service.send_acknowledgement, receipt.acknowledgement)

    return ContactResponse(
        message="Your message has been sent successfully! I will get back to you soon.",
        messageId=receipt.message_id,
    )
