from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional

from portfolio_api.core.config import settings
from portfolio_api.core.email import MailDispatcher
from portfolio_api.core.errors import (
    ContactError,
    InternalError,
    ServiceUnavailable,
    SpamRejected,
    ValidationFailed,
)
from portfolio_api.schemas.contact import ContactReceipt, OutboundMessage
from portfolio_api.services.mail_composer import MailComposer
from portfolio_api.services.spam_filter import SpamFilter
from portfolio_api.services.validation import validate_submission

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    """Gate at which a submission left the pipeline."""

    VALIDATION = "validation"
    AVAILABILITY = "availability"
    SPAM_FILTER = "spam_filter"
    DELIVERY = "delivery"


class ContactService:
    """Runs a rate-checked contact submission through validation, spam
    filtering and delivery.

    The notification send is awaited; the acknowledgement is returned to the
    caller, which schedules ``send_acknowledgement`` without waiting on it.
    """

    def __init__(
        self,
        dispatcher: MailDispatcher,
        composer: MailComposer,
        spam_filter: SpamFilter,
    ) -> None:
        self.dispatcher = dispatcher
        self.composer = composer
        self.spam_filter = spam_filter

    def _reject(self, stage: PipelineStage, error: ContactError, client_ip: str) -> ContactError:
        logger.info(
            "Contact submission rejected stage=%s code=%s ip=%s",
            stage.value,
            error.code,
            client_ip,
            extra={"audit_event": "contact_rejected", "stage": stage.value, "code": error.code},
        )
        return error

    async def submit(
        self,
        raw: Mapping[str, Any],
        client_ip: str,
        received_at: Optional[datetime] = None,
    ) -> ContactReceipt:
        received_at = received_at or datetime.now(timezone.utc)

        submission, errors = validate_submission(raw)
        if errors:
            raise self._reject(
                PipelineStage.VALIDATION,
                ValidationFailed(details=[err.model_dump() for err in errors]),
                client_ip,
            )

        if not self.dispatcher.configured:
            logger.error("Email transporter not configured")
            raise self._reject(PipelineStage.AVAILABILITY, ServiceUnavailable(), client_ip)

        keyword = self.spam_filter.match(submission.message)
        if keyword:
            logger.warning(
                "Potential spam detected from IP: %s keyword=%s", client_ip, keyword
            )
            raise self._reject(PipelineStage.SPAM_FILTER, SpamRejected(), client_ip)

        notification, acknowledgement = self.composer.compose(
            submission, received_at, client_ip
        )

        try:
            message_id = await self.dispatcher.send(notification)
        except ContactError as exc:
            logger.error("Error sending email: %s (%s)", exc.code, exc.__cause__)
            raise self._reject(PipelineStage.DELIVERY, exc, client_ip)
        except Exception as exc:
            logger.exception("Error sending email")
            raise self._reject(PipelineStage.DELIVERY, InternalError(), client_ip) from exc

        logger.info(
            "Email sent successfully: %s",
            message_id,
            extra={"audit_event": "contact_sent"},
        )
        return ContactReceipt(message_id=message_id, acknowledgement=acknowledgement)

    async def send_acknowledgement(self, acknowledgement: OutboundMessage) -> None:
        """Best-effort auto-reply. Failures are logged and never raised."""
        try:
            message_id = await self.dispatcher.send(acknowledgement)
        except Exception as exc:
            logger.error("Failed to send auto-reply: %s", exc)
            return
        logger.info("Auto-reply sent: %s", message_id)


def build_contact_service(dispatcher: MailDispatcher) -> ContactService:
    return ContactService(
        dispatcher=dispatcher,
        composer=MailComposer(
            operator_email=settings.CONTACT_EMAIL,
            owner_name=settings.OWNER_NAME,
        ),
        spam_filter=SpamFilter(settings.SPAM_KEYWORDS),
    )
