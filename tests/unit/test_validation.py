"""Tests for contact submission field rules."""
import pytest

from portfolio_api.services.validation import validate_submission


def _payload(**overrides):
    data = {"name": "Jo", "email": "jo@x.com", "message": "1234567890"}
    data.update(overrides)
    return data


def _fields(errors):
    return [err.field for err in errors]


def test_minimal_valid_submission():
    submission, errors = validate_submission(_payload())
    assert errors == []
    assert submission.name == "Jo"
    assert submission.email == "jo@x.com"
    assert submission.subject is None
    assert submission.message == "1234567890"


def test_values_are_trimmed():
    submission, errors = validate_submission(
        _payload(name="  Jo  ", email=" Jo@X.com ", subject="  Hello ", message="  1234567890  ")
    )
    assert errors == []
    assert submission.name == "Jo"
    assert submission.email == "jo@x.com"
    assert submission.subject == "Hello"
    assert submission.message == "1234567890"


@pytest.mark.parametrize("length,ok", [(1, False), (2, True), (100, True), (101, False)])
def test_name_length_bounds(length, ok):
    _, errors = validate_submission(_payload(name="a" * length))
    assert (errors == []) is ok
    if not ok:
        assert errors[0].message == "Name must be between 2 and 100 characters"


@pytest.mark.parametrize("length,ok", [(9, False), (10, True), (5000, True), (5001, False)])
def test_message_length_bounds(length, ok):
    _, errors = validate_submission(_payload(message="m" * length))
    assert (errors == []) is ok
    if not ok:
        assert errors[0].message == "Message must be between 10 and 5000 characters"


def test_length_is_measured_after_trimming():
    _, errors = validate_submission(_payload(name=" a ", message="   123456789   "))
    assert _fields(errors) == ["name", "message"]


@pytest.mark.parametrize(
    "email,ok",
    [
        ("a@b.co", True),
        ("first.last+tag@sub.example.org", True),
        ("ab.co", False),
        ("a@@b.co", False),
        ("a@bco", False),
        ("a b@c.co", False),
    ],
)
def test_email_shape(email, ok):
    _, errors = validate_submission(_payload(email=email))
    assert (errors == []) is ok
    if not ok:
        assert errors[0].message == "Please provide a valid email address"


def test_email_too_long():
    email = "a" * 250 + "@b.co"
    _, errors = validate_submission(_payload(email=email))
    assert len(errors) == 1
    assert errors[0].field == "email"
    assert errors[0].message == "Email is too long"


def test_subject_length_bound():
    _, errors = validate_submission(_payload(subject="s" * 200))
    assert errors == []

    _, errors = validate_submission(_payload(subject="s" * 201))
    assert _fields(errors) == ["subject"]
    assert errors[0].message == "Subject must be less than 200 characters"


@pytest.mark.parametrize("subject", ["", "   ", None])
def test_blank_subject_is_absent(subject):
    submission, errors = validate_submission(_payload(subject=subject))
    assert errors == []
    assert submission.subject is None


def test_missing_fields_report_required():
    submission, errors = validate_submission({})
    assert submission is None
    assert [(e.field, e.message) for e in errors] == [
        ("name", "Name is required"),
        ("email", "Email is required"),
        ("message", "Message is required"),
    ]


def test_whitespace_only_counts_as_missing():
    _, errors = validate_submission(_payload(name="   ", message="\n\t "))
    assert [(e.field, e.message) for e in errors] == [
        ("name", "Name is required"),
        ("message", "Message is required"),
    ]


def test_every_invalid_field_reported_once():
    _, errors = validate_submission(
        {"name": "J", "email": "nope", "subject": "x" * 300, "message": "short"}
    )
    assert _fields(errors) == ["name", "email", "subject", "message"]


def test_non_string_values_rejected():
    _, errors = validate_submission(_payload(name=123, message=["a" * 20]))
    assert [(e.field, e.message) for e in errors] == [
        ("name", "Name must be text"),
        ("message", "Message must be text"),
    ]
