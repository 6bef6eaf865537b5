import pytest

from email_relay.errors import RequestValidationFailed
from email_relay.models import SendOutcome, validate_send_request


def _field_of(raw):
    with pytest.raises(RequestValidationFailed) as exc_info:
        validate_send_request(raw)
    return exc_info.value.field


def test_minimal_request():
    request = validate_send_request({"to": "a@example.com", "subject": "Hi", "text": "hello"})

    assert request.to == "a@example.com"
    assert request.subject == "Hi"
    assert request.text == "hello"
    assert request.html is None


def test_extension_fields_use_camel_case_aliases():
    request = validate_send_request(
        {
            "to": "a@example.com",
            "subject": "Hi",
            "html": "<p>hello</p>",
            "replyTo": "support@example.com",
            "cc": ["b@example.com", "c@example.com"],
            "bcc": "d@example.com",
            "organizationId": "org-42",
            "meta": {"campaign": "welcome", "step": 1},
        }
    )

    assert request.reply_to == "support@example.com"
    assert request.cc == ["b@example.com", "c@example.com"]
    assert request.bcc == "d@example.com"
    assert request.organization_id == "org-42"
    assert request.meta == {"campaign": "welcome", "step": 1}


@pytest.mark.parametrize(
    "raw, field",
    [
        ({"subject": "Hi", "text": "x"}, "to"),
        ({"to": "", "subject": "Hi", "text": "x"}, "to"),
        ({"to": ["a@example.com"], "subject": "Hi", "text": "x"}, "to"),
        ({"to": "a@example.com", "text": "x"}, "subject"),
        ({"to": "a@example.com", "subject": "Hi"}, "text"),
        ({"to": "a@example.com", "subject": "Hi", "text": "", "html": ""}, "text"),
        ({"to": "a@example.com", "subject": "Hi", "text": 5}, "text"),
    ],
)
def test_required_fields(raw, field):
    assert _field_of(raw) == field


def test_first_failure_wins():
    # Everything is missing: only "to" is reported
    assert _field_of({}) == "to"
    assert _field_of({"to": "a@example.com"}) == "subject"


@pytest.mark.parametrize("raw", [None, [], "text", 42])
def test_body_must_be_an_object(raw):
    assert _field_of(raw) == "body"


def test_invalid_extension_field_is_named():
    assert _field_of({"to": "a@example.com", "subject": "Hi", "text": "x", "replyTo": 12}) == "replyTo"


def test_line_breaks_in_header_fields_are_rejected():
    assert _field_of({"to": "a@example.com", "subject": "Hi\r\nBcc: x@example.com", "text": "x"}) == "subject"
    assert _field_of({"to": "a@example.com", "subject": "Hi", "text": "x", "cc": ["ok@example.com", "b@\nexample.com"]}) == "cc"


@pytest.mark.parametrize("separator", ["\u2028", "\u2029", "\x0b", "\x0c", "\x1c", "\x85"])
def test_unicode_line_separators_are_rejected(separator):
    assert _field_of({"to": "a@example.com", "subject": f"Hi{separator}there", "text": "x"}) == "subject"
    assert _field_of({"to": "a@example.com", "subject": "Hi", "text": "x", "organizationId": f"org{separator}7"}) == "organizationId"
    assert _field_of({"to": "a@example.com", "subject": "Hi", "text": "x", "replyTo": f"r@example.com{separator}"}) == "replyTo"


def test_line_breaks_in_body_and_meta_are_allowed():
    request = validate_send_request(
        {"to": "a@example.com", "subject": "Hi", "text": "line1\nline2", "meta": "line1\nline2\u2028line3"}
    )
    assert request.text == "line1\nline2"
    assert request.meta == "line1\nline2\u2028line3"


def test_whitespace_only_strings_count_as_present():
    request = validate_send_request({"to": "a@example.com", "subject": "   ", "text": " "})
    assert request.subject == "   "
    assert request.text == " "


def test_error_payload_names_the_field():
    with pytest.raises(RequestValidationFailed) as exc_info:
        validate_send_request({"to": "a@example.com", "text": "x"})
    payload = exc_info.value.to_payload()
    assert payload["field"] == "subject"
    assert "subject" in payload["error"]
    assert exc_info.value.status_code == 400


def test_outcome_payloads():
    ok = SendOutcome.success("<id@example.com>", ["a@example.com"], ["b@example.com"])
    assert ok.to_payload() == {
        "ok": True,
        "messageId": "<id@example.com>",
        "accepted": ["a@example.com"],
        "rejected": ["b@example.com"],
    }

    failed = SendOutcome.failure("535 Authentication failed")
    assert failed.to_payload() == {"ok": False, "error": "EmailSendFailed", "detail": "535 Authentication failed"}
