from datetime import datetime, timezone

import pytest

from portfolio_api.schemas.contact import ContactSubmission
from portfolio_api.services.mail_composer import MailComposer

RECEIVED_AT = datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)


@pytest.fixture()
def composer():
    return MailComposer(operator_email="owner@example.com", owner_name="Jo Owner")


@pytest.fixture()
def submission():
    return ContactSubmission(
        name="Ana",
        email="ana@example.com",
        subject="Project idea",
        message="Hello there,\nI have a project for you.",
    )


class TestNotification:
    def test_envelope(self, composer, submission):
        mail = composer.notification(submission, RECEIVED_AT, "203.0.113.7")
        assert mail.to == "owner@example.com"
        assert mail.reply_to == "ana@example.com"
        assert mail.from_name == "Portfolio Contact Form"
        assert mail.subject == "Portfolio Contact: Project idea"

    def test_subject_falls_back_to_sender_name(self, composer, submission):
        no_subject = submission.model_copy(update={"subject": None})
        mail = composer.notification(no_subject, RECEIVED_AT, "203.0.113.7")
        assert mail.subject == "Portfolio Contact: New message from Ana"
        assert "Subject: No subject" in mail.text

    def test_subject_line_breaks_folded(self, composer, submission):
        multiline = submission.model_copy(update={"subject": "Hello\r\nthere\n  friend"})
        mail = composer.notification(multiline, RECEIVED_AT, "203.0.113.7")
        assert mail.subject == "Portfolio Contact: Hello there friend"
        assert "Subject: Hello\r\nthere\n  friend" in mail.text

    def test_fallback_subject_folds_name(self, composer, submission):
        no_subject = submission.model_copy(update={"subject": None, "name": "Ana\nMaria"})
        mail = composer.notification(no_subject, RECEIVED_AT, "203.0.113.7")
        assert mail.subject == "Portfolio Contact: New message from Ana Maria"

    def test_text_body(self, composer, submission):
        text = composer.notification(submission, RECEIVED_AT, "203.0.113.7").text
        assert text.startswith("Name: Ana\nEmail: ana@example.com\nSubject: Project idea\n")
        assert "Message:\nHello there,\nI have a project for you." in text
        assert "Sent from portfolio website on 2024-05-01 12:30:00 UTC" in text
        assert text.endswith("IP: 203.0.113.7")

    def test_html_escapes_user_input(self, composer):
        hostile = ContactSubmission(
            name="<script>alert(1)</script>",
            email="x@example.com",
            subject='"><img src=x>',
            message="<b>bold</b> and 'quoted'",
        )
        mail = composer.notification(hostile, RECEIVED_AT, "203.0.113.7")
        assert "<script>" not in mail.html
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in mail.html
        assert "<img src=x>" not in mail.html
        assert "&lt;b&gt;bold&lt;/b&gt; and &#x27;quoted&#x27;" in mail.html
        # Plain text keeps the submitted characters
        assert "Name: <script>alert(1)</script>" in mail.text

    def test_html_keeps_line_breaks(self, composer, submission):
        html = composer.notification(submission, RECEIVED_AT, "203.0.113.7").html
        assert "Hello there,<br>I have a project for you." in html
        assert 'href="mailto:ana@example.com"' in html


class TestAcknowledgement:
    def test_envelope(self, composer, submission):
        mail = composer.acknowledgement(submission)
        assert mail.to == "ana@example.com"
        assert mail.reply_to is None
        assert mail.from_name == "Jo Owner"
        assert mail.subject == "Thank you for contacting me!"

    def test_body_mentions_response_window(self, composer, submission):
        mail = composer.acknowledgement(submission)
        assert mail.text.startswith("Hi Ana,")
        assert "24-48 hours during business days" in mail.text
        assert "24-48 hours during business days" in mail.html
        assert "Jo Owner" in mail.text

    def test_acknowledgement_does_not_echo_message(self, composer, submission):
        mail = composer.acknowledgement(submission)
        assert "I have a project for you." not in mail.text
        assert "I have a project for you." not in mail.html


def test_compose_returns_both(composer, submission):
    notification, acknowledgement = composer.compose(submission, RECEIVED_AT, "203.0.113.7")
    assert notification.to == "owner@example.com"
    assert acknowledgement.to == "ana@example.com"
