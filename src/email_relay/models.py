# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Pydantic models for the send endpoint.

Models:
    - SendRequest: Email accepted by ``POST /send-email``
    - SendOutcome: Normalized result of a dispatch attempt

The required fields of a send request are checked by
:func:`validate_send_request` in a fixed order (``to``, ``subject``, then
``text``/``html``) so the caller always learns about the first problem;
pydantic then validates the optional extension fields.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import RequestValidationFailed

EMAIL_SEND_FAILED = "EmailSendFailed"
HEADER_FIELDS = ("to", "subject", "replyTo", "reply_to", "cc", "bcc", "organizationId", "organization_id")


class SendRequest(BaseModel):
    """Email to relay.

    Attributes:
        to: Recipient(s), comma separated. Address syntax is not checked;
            the transport reports bad recipients as rejected.
        subject: Subject line.
        text: Plain text body.
        html: HTML body. At least one of ``text``/``html`` is required.
        reply_to: ``Reply-To`` header (``replyTo`` on the wire).
        cc: Carbon copy recipients.
        bcc: Blind carbon copy recipients.
        organization_id: Caller tenant, copied into ``X-Organization-Id``.
        meta: Free-form JSON value, serialized into ``X-Email-Meta``.
    """

    model_config = ConfigDict(populate_by_name=True)

    to: Annotated[str, Field(min_length=1)]
    subject: Annotated[str, Field(min_length=1)]
    text: str | None = None
    html: str | None = None
    reply_to: Annotated[str | None, Field(default=None, alias="replyTo")]
    cc: str | list[str] | None = None
    bcc: str | list[str] | None = None
    organization_id: Annotated[str | int | None, Field(default=None, alias="organizationId")]
    meta: Any = None


class SendOutcome(BaseModel):
    """Result of one dispatch.

    On success ``message_id``, ``accepted`` and ``rejected`` are set; a
    non-empty ``rejected`` list on a successful send means the provider
    accepted only part of the recipients. On failure ``error`` holds
    ``EmailSendFailed`` and ``detail`` the provider error text.
    """

    model_config = ConfigDict(populate_by_name=True)

    ok: bool
    message_id: Annotated[str | None, Field(default=None, alias="messageId")]
    accepted: list[str] | None = None
    rejected: list[str] | None = None
    error: str | None = None
    detail: str | None = None

    @classmethod
    def success(cls, message_id: str, accepted: list[str], rejected: list[str]) -> "SendOutcome":
        return cls(ok=True, message_id=message_id, accepted=accepted, rejected=rejected)

    @classmethod
    def failure(cls, detail: str) -> "SendOutcome":
        return cls(ok=False, error=EMAIL_SEND_FAILED, detail=detail)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def _is_filled_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def _has_line_break(value: Any) -> bool:
    # Any separator str.splitlines() honours, not only CR and LF
    return isinstance(value, str) and bool(value) and value.splitlines() != [value]


def validate_send_request(raw: Any) -> SendRequest:
    """Validate a decoded JSON body and return the matching :class:`SendRequest`.

    Raises:
        RequestValidationFailed: On the first missing or invalid field.
    """
    if not isinstance(raw, dict):
        raise RequestValidationFailed("body", "Request body must be a JSON object")
    if not _is_filled_string(raw.get("to")):
        raise RequestValidationFailed("to", "Missing email fields: 'to' must be a non-empty string")
    if not _is_filled_string(raw.get("subject")):
        raise RequestValidationFailed("subject", "Missing email fields: 'subject' must be a non-empty string")
    if not (_is_filled_string(raw.get("text")) or _is_filled_string(raw.get("html"))):
        raise RequestValidationFailed("text", "Missing email fields: 'text' or 'html' must be a non-empty string")

    try:
        request = SendRequest.model_validate(raw)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = str(first["loc"][0]) if first.get("loc") else "body"
        raise RequestValidationFailed(field, f"Invalid field '{field}': {first['msg']}") from exc

    # Values copied into headers must stay on one line
    for field in HEADER_FIELDS:
        value = raw.get(field)
        values = value if isinstance(value, list) else [value]
        if any(_has_line_break(item) for item in values):
            raise RequestValidationFailed(field, f"Invalid field '{field}': line breaks are not allowed")
    return request
