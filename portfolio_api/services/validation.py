"""Field rules for contact-form submissions.

Every field is checked independently so the client sees all problems at
once. The returned submission carries the trimmed values the rest of the
pipeline consumes.
"""
from __future__ import annotations

import re
from typing import Any, List, Mapping, Optional, Tuple

from portfolio_api.schemas.contact import ContactSubmission, FieldError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

NAME_MIN, NAME_MAX = 2, 100
EMAIL_MAX = 254
SUBJECT_MAX = 200
MESSAGE_MIN, MESSAGE_MAX = 10, 5000


def _text(raw: Mapping[str, Any], field: str, errors: List[FieldError]) -> Optional[str]:
    value = raw.get(field)
    if value is None:
        return ""
    if not isinstance(value, str):
        errors.append(FieldError(field=field, message=f"{field.capitalize()} must be text"))
        return None
    return value.strip()


def _check_name(raw: Mapping[str, Any], errors: List[FieldError]) -> Optional[str]:
    name = _text(raw, "name", errors)
    if name is None:
        return None
    if not name:
        errors.append(FieldError(field="name", message="Name is required"))
    elif not NAME_MIN <= len(name) <= NAME_MAX:
        errors.append(
            FieldError(
                field="name",
                message=f"Name must be between {NAME_MIN} and {NAME_MAX} characters",
            )
        )
    return name


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _check_email(raw: Mapping[str, Any], errors: List[FieldError]) -> Optional[str]:
    email = _text(raw, "email", errors)
    if email is None:
        return None
    if not email:
        errors.append(FieldError(field="email", message="Email is required"))
    elif not EMAIL_PATTERN.match(email):
        errors.append(
            FieldError(field="email", message="Please provide a valid email address")
        )
    else:
        email = normalize_email(email)
        if len(email) > EMAIL_MAX:
            errors.append(FieldError(field="email", message="Email is too long"))
    return email


def _check_subject(raw: Mapping[str, Any], errors: List[FieldError]) -> Optional[str]:
    subject = _text(raw, "subject", errors)
    if not subject:
        return None
    if len(subject) > SUBJECT_MAX:
        errors.append(
            FieldError(
                field="subject",
                message=f"Subject must be less than {SUBJECT_MAX} characters",
            )
        )
    return subject


def _check_message(raw: Mapping[str, Any], errors: List[FieldError]) -> Optional[str]:
    message = _text(raw, "message", errors)
    if message is None:
        return None
    if not message:
        errors.append(FieldError(field="message", message="Message is required"))
    elif not MESSAGE_MIN <= len(message) <= MESSAGE_MAX:
        errors.append(
            FieldError(
                field="message",
                message=f"Message must be between {MESSAGE_MIN} and {MESSAGE_MAX} characters",
            )
        )
    return message


def validate_submission(
    raw: Mapping[str, Any],
) -> Tuple[Optional[ContactSubmission], List[FieldError]]:
    """Validate a raw contact payload.

    Returns ``(submission, [])`` when every rule passes, otherwise
    ``(None, errors)`` with one entry per offending field.
    """
    errors: List[FieldError] = []
    name = _check_name(raw, errors)
    email = _check_email(raw, errors)
    subject = _check_subject(raw, errors)
    message = _check_message(raw, errors)

    if errors:
        return None, errors

    return (
        ContactSubmission(name=name, email=email, subject=subject, message=message),
        errors,
    )
