from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field


class ContactSubmission(BaseModel):
    """A validated contact-form attempt, holding trimmed values."""

    name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., max_length=254)
    subject: Optional[str] = Field(None, max_length=200)
    message: str = Field(..., min_length=10, max_length=5000)


class FieldError(BaseModel):
    field: str
    message: str


@dataclass(frozen=True)
class OutboundMessage:
    """One email ready for the dispatcher."""

    from_name: str
    to: str
    subject: str
    text: str
    html: str
    reply_to: Optional[str] = None


@dataclass(frozen=True)
class ContactReceipt:
    """Result of a successful pipeline run."""

    message_id: str
    acknowledgement: OutboundMessage


class ContactResponse(BaseModel):
    success: bool = True
    message: str
    messageId: str


class HealthResponse(BaseModel):
    success: bool = True
    message: str
    timestamp: str
    emailConfigured: bool
