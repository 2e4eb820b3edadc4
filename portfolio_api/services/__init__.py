"""
Portfolio contact services.

Services:
    - ContactService: contact submission pipeline
    - MailComposer: operator notification and sender acknowledgement
    - SpamFilter: keyword blocklist check
    - validate_submission: per-field submission rules
"""

from .contact_service import ContactService, PipelineStage, build_contact_service
from .mail_composer import MailComposer
from .spam_filter import SpamFilter, contains_spam
from .validation import validate_submission

__all__ = [
    "ContactService",
    "PipelineStage",
    "build_contact_service",
    "MailComposer",
    "SpamFilter",
    "contains_spam",
    "validate_submission",
]
