# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Error taxonomy of the email relay.

Every failure raised on the request path derives from :class:`RelayError` and
carries the HTTP status, the public ``error`` label and a machine ``code``.
The API layer turns them into JSON bodies; nothing here knows about FastAPI.

A failed dispatch is not an exception: the dispatcher reports it through a
failed :class:`email_relay.models.SendOutcome`.
"""

from __future__ import annotations

from typing import Any


class RelayError(RuntimeError):
    """Base class for errors converted to structured JSON responses."""

    status_code = 500
    error = "Internal server error"
    code = "InternalError"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.error)
        self.detail = detail

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error}
        if self.detail:
            payload["detail"] = self.detail
        return payload


class ServerMisconfiguredError(RelayError):
    """A required secret or setting is absent; the operator must fix it."""

    status_code = 500
    error = "Server misconfigured"
    code = "ServerMisconfigured"


class UnauthorizedError(RelayError):
    """The caller credential is missing or does not match the API key."""

    status_code = 401
    error = "Unauthorized"
    code = "Unauthorized"


class TransportConfigError(ServerMisconfiguredError):
    """The mail transport cannot be built from the configured settings.

    The detail is the literal missing-variable message (``missing SMTP vars``
    or ``missing Gmail vars``).
    """

    code = "TransportConfigError"


class RequestValidationFailed(RelayError):
    """The send request body is malformed or incomplete."""

    status_code = 400
    code = "ValidationError"

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        self.error = message or f"Missing or invalid field: {field}"
        super().__init__(None)

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.error, "field": self.field}


class PayloadTooLargeError(RelayError):
    status_code = 413
    error = "Payload too large"
    code = "PayloadTooLarge"
