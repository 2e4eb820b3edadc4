"""Builds the operator notification and the sender acknowledgement.

Pure construction, no I/O. HTML bodies only ever embed values passed
through ``sanitize_input``; plain-text bodies use the trimmed raw values.
"""
from __future__ import annotations

from datetime import datetime
from typing import Tuple

from portfolio_api.core.email_config import EmailConfig, email_config
from portfolio_api.core.sanitizer import sanitize_input
from portfolio_api.schemas.contact import ContactSubmission, OutboundMessage

_BASE_STYLES = """
            body {{
                font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
                line-height: 1.6;
                color: #333;
                max-width: 600px;
                margin: 0 auto;
                padding: 20px;
                background-color: #f9f9f9;
            }}
            .container {{
                background-color: #ffffff;
                border-radius: 8px;
                padding: 30px;
                box-shadow: 0 2px 10px rgba(0,0,0,0.1);
            }}
            .header {{
                text-align: center;
                padding-bottom: 20px;
                border-bottom: 2px solid {accent};
                margin-bottom: 20px;
            }}
            .header h1 {{
                color: {accent};
                margin: 0;
                font-size: 24px;
            }}
            .content {{
                padding: 20px 0;
            }}
            .footer {{
                text-align: center;
                padding-top: 20px;
                border-top: 1px solid #eee;
                margin-top: 20px;
                color: #999;
                font-size: 12px;
            }}"""

_FIELD_STYLES = """
            .field {{
                margin-bottom: 15px;
            }}
            .field-label {{
                font-weight: 600;
                color: #666;
                font-size: 12px;
                text-transform: uppercase;
                letter-spacing: 0.5px;
            }}
            .field-value {{
                color: #333;
                font-size: 16px;
                margin-top: 5px;
            }}
            .message-box {{
                background-color: #f5f5f5;
                padding: 15px;
                border-radius: 6px;
                border-left: 4px solid {accent};
                margin-top: 5px;
            }}"""


def _document(title: str, styles: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>{title}</title>
        <style>{styles}
        </style>
    </head>
    <body>
        <div class="container">
{body}
        </div>
    </body>
</html>
"""


def format_received_at(received_at: datetime) -> str:
    return received_at.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def header_text(value: str) -> str:
    """Collapse runs of whitespace, line breaks included, to single spaces."""
    return " ".join(value.split())


class MailComposer:
    """Composes the two emails produced by one contact submission."""

    def __init__(
        self,
        operator_email: str,
        owner_name: str,
        config: EmailConfig = email_config,
    ) -> None:
        self.operator_email = operator_email
        self.owner_name = owner_name
        self.config = config

    def notification_subject(self, submission: ContactSubmission) -> str:
        topic = submission.subject or f"New message from {submission.name}"
        # Header values cannot carry CR or LF
        return f"{self.config.NOTIFICATION_SUBJECT_PREFIX}{header_text(topic)}"

    def notification(
        self,
        submission: ContactSubmission,
        received_at: datetime,
        client_ip: str,
    ) -> OutboundMessage:
        text = "\n".join(
            [
                f"Name: {submission.name}",
                f"Email: {submission.email}",
                f"Subject: {submission.subject or self.config.NO_SUBJECT}",
                "",
                "Message:",
                submission.message,
                "",
                "---",
                f"Sent from portfolio website on {format_received_at(received_at)}",
                f"IP: {client_ip}",
            ]
        )
        return OutboundMessage(
            from_name=self.config.NOTIFICATION_FROM_NAME,
            to=self.operator_email,
            reply_to=submission.email,
            subject=self.notification_subject(submission),
            text=text,
            html=self._notification_html(submission, received_at),
        )

    def _notification_html(self, submission: ContactSubmission, received_at: datetime) -> str:
        name = sanitize_input(submission.name)
        email = sanitize_input(submission.email)
        subject = sanitize_input(submission.subject or self.config.NO_SUBJECT)
        message = sanitize_input(submission.message).replace("\n", "<br>")
        accent = self.config.ACCENT_COLOR

        body = f"""            <div class="header">
                <h1>New Contact Form Submission</h1>
            </div>
            <div class="content">
                <div class="field">
                    <div class="field-label">Name</div>
                    <div class="field-value">{name}</div>
                </div>
                <div class="field">
                    <div class="field-label">Email</div>
                    <div class="field-value">
                        <a href="mailto:{email}">{email}</a>
                    </div>
                </div>
                <div class="field">
                    <div class="field-label">Subject</div>
                    <div class="field-value">{subject}</div>
                </div>
                <div class="field">
                    <div class="field-label">Message</div>
                    <div class="message-box">{message}</div>
                </div>
            </div>
            <div class="footer">
                <p>This email was sent from your portfolio website contact form.</p>
                <p>Received on {format_received_at(received_at)}</p>
            </div>"""
        styles = _BASE_STYLES.format(accent=accent) + _FIELD_STYLES.format(accent=accent)
        return _document("New Contact Form Submission", styles, body)

    def acknowledgement(self, submission: ContactSubmission) -> OutboundMessage:
        window = self.config.ACK_RESPONSE_WINDOW
        text = "\n".join(
            [
                f"Hi {submission.name},",
                "",
                "Thank you for reaching out! I've received your message and will "
                "get back to you as soon as possible.",
                f"I typically respond within {window}.",
                "",
                "Best regards,",
                self.owner_name,
                "",
                "---",
                "This is an automated response. Please do not reply to this email.",
            ]
        )
        return OutboundMessage(
            from_name=self.owner_name,
            to=submission.email,
            subject=self.config.ACK_SUBJECT,
            text=text,
            html=self._acknowledgement_html(submission),
        )

    def _acknowledgement_html(self, submission: ContactSubmission) -> str:
        name = sanitize_input(submission.name)
        owner = sanitize_input(self.owner_name)
        window = sanitize_input(self.config.ACK_RESPONSE_WINDOW)

        body = f"""            <div class="header">
                <h1>Thank You for Reaching Out!</h1>
            </div>
            <div class="content">
                <p>Hi {name},</p>
                <p>Thank you for contacting me through my portfolio website. I've received your message and will get back to you as soon as possible.</p>
                <p>I typically respond within {window}.</p>
                <p>In the meantime, feel free to check out my other work on the portfolio!</p>
                <p>Best regards,<br>{owner}</p>
            </div>
            <div class="footer">
                <p>This is an automated response. Please do not reply to this email.</p>
            </div>"""
        styles = _BASE_STYLES.format(accent=self.config.ACCENT_COLOR)
        return _document("Thank you for contacting me", styles, body)

    def compose(
        self,
        submission: ContactSubmission,
        received_at: datetime,
        client_ip: str,
    ) -> Tuple[OutboundMessage, OutboundMessage]:
        """Return ``(notification, acknowledgement)`` for one submission."""
        return (
            self.notification(submission, received_at, client_ip),
            self.acknowledgement(submission),
        )
