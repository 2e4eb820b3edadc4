"""Tests for the contact pipeline ordering and failure mapping."""
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from portfolio_api.core.email import MailDispatcher
from portfolio_api.core.errors import (
    DispatchAuthError,
    DispatchConnectionError,
    InternalError,
    ServiceUnavailable,
    SpamRejected,
    ValidationFailed,
)
from portfolio_api.services.contact_service import ContactService
from portfolio_api.services.mail_composer import MailComposer
from portfolio_api.services.spam_filter import SpamFilter

RECEIVED_AT = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
IP = "203.0.113.7"


def make_service(dispatcher):
    return ContactService(
        dispatcher=dispatcher,
        composer=MailComposer(operator_email="owner@example.com", owner_name="Jo Owner"),
        spam_filter=SpamFilter(["free money", "casino"]),
    )


@pytest.mark.asyncio
async def test_submit_sends_notification_only(make_dispatcher, valid_payload):
    dispatcher = make_dispatcher()
    receipt = await make_service(dispatcher).submit(valid_payload, IP, RECEIVED_AT)

    assert receipt.message_id == "<1.contact@test.local>"
    assert len(dispatcher.sent) == 1
    assert dispatcher.sent[0].to == "owner@example.com"
    assert receipt.acknowledgement.to == "jo@x.com"


@pytest.mark.asyncio
async def test_acknowledgement_sent_on_request(make_dispatcher, valid_payload):
    dispatcher = make_dispatcher()
    service = make_service(dispatcher)
    receipt = await service.submit(valid_payload, IP, RECEIVED_AT)

    await service.send_acknowledgement(receipt.acknowledgement)

    assert [m.to for m in dispatcher.sent] == ["owner@example.com", "jo@x.com"]


@pytest.mark.asyncio
async def test_acknowledgement_failure_is_swallowed(make_dispatcher, valid_payload, caplog):
    dispatcher = make_dispatcher(failures=[None, DispatchConnectionError()])
    service = make_service(dispatcher)
    receipt = await service.submit(valid_payload, IP, RECEIVED_AT)

    await service.send_acknowledgement(receipt.acknowledgement)

    assert dispatcher.attempts == 2
    assert "Failed to send auto-reply" in caplog.text


@pytest.mark.asyncio
async def test_invalid_payload_rejected_before_anything_else(make_dispatcher):
    dispatcher = make_dispatcher(configured=False)

    with pytest.raises(ValidationFailed) as exc_info:
        await make_service(dispatcher).submit({"name": "J", "message": "spam"}, IP)

    assert [d["field"] for d in exc_info.value.details] == ["name", "email", "message"]
    assert dispatcher.attempts == 0


@pytest.mark.asyncio
async def test_unconfigured_dispatcher_checked_before_spam(make_dispatcher, valid_payload):
    dispatcher = make_dispatcher(configured=False)
    payload = dict(valid_payload, message="win free money today")

    with pytest.raises(ServiceUnavailable):
        await make_service(dispatcher).submit(payload, IP)

    assert dispatcher.attempts == 0


@pytest.mark.asyncio
async def test_spam_rejected_without_sending(make_dispatcher, valid_payload):
    dispatcher = make_dispatcher()
    payload = dict(valid_payload, message="Visit the CASINO for prizes")

    with pytest.raises(SpamRejected) as exc_info:
        await make_service(dispatcher).submit(payload, IP)

    assert exc_info.value.code == "SPAM_DETECTED"
    assert dispatcher.attempts == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [DispatchAuthError(), DispatchConnectionError()])
async def test_dispatch_errors_propagate(make_dispatcher, valid_payload, error):
    dispatcher = make_dispatcher(failures=[error])

    with pytest.raises(type(error)):
        await make_service(dispatcher).submit(valid_payload, IP)


@pytest.mark.asyncio
async def test_unexpected_errors_become_internal(make_dispatcher, valid_payload):
    dispatcher = make_dispatcher(failures=[ValueError("boom")])

    with pytest.raises(InternalError) as exc_info:
        await make_service(dispatcher).submit(valid_payload, IP)

    assert exc_info.value.code == "INTERNAL_ERROR"
    assert isinstance(exc_info.value.__cause__, ValueError)


@pytest.mark.asyncio
async def test_multiline_subject_reaches_smtp(valid_payload):
    dispatcher = MailDispatcher("smtp.test", 587, "relay@jo.dev", "secret")
    payload = dict(valid_payload, subject="Hello\nthere")

    with patch("portfolio_api.core.email.smtplib.SMTP") as smtp_cls:
        receipt = await make_service(dispatcher).submit(payload, IP, RECEIVED_AT)

    sent = smtp_cls.return_value.__enter__.return_value.send_message.call_args.args[0]
    assert sent["Subject"] == "Portfolio Contact: Hello there"
    assert sent["Message-ID"] == receipt.message_id
