# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Message construction and dispatch with outcome normalization.

:func:`send` hands one message to a transport exactly once (no retry, no
deduplication: the same request sent twice produces two messages with
distinct ``Message-ID`` values) and maps the result to a
:class:`~email_relay.models.SendOutcome`.

Transport failures never raise: they become a failed outcome whose
``detail`` is the provider error text, verbatim. That text can reveal relay
internals and is only acceptable because callers are trusted,
API-key-authenticated internal services.
"""

from __future__ import annotations

import json
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Any, Protocol

from .config_loader import RelayConfig
from .errors import ServerMisconfiguredError
from .logger import get_logger
from .models import SendOutcome, SendRequest
from .prometheus import RelayMetrics
from .transport import TransportResult

ORGANIZATION_HEADER = "X-Organization-Id"
META_HEADER = "X-Email-Meta"
META_HEADER_MAX_LENGTH = 900

logger = get_logger("Dispatcher")


class MessageSender(Protocol):
    kind: str

    async def send(self, message: EmailMessage) -> TransportResult: ...


def _format_addresses(value: Any) -> str | None:
    if not value:
        return None
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
        return ", ".join(items) if items else None
    if isinstance(value, (list, tuple)):
        items = [str(addr).strip() for addr in value if addr and str(addr).strip()]
        return ", ".join(items) if items else None
    return str(value)


def _capped(value: str) -> str:
    return value[:META_HEADER_MAX_LENGTH]


def _meta_header_value(meta: Any) -> str:
    """Serialize ``meta`` as single-line ASCII JSON, capped at ``META_HEADER_MAX_LENGTH``.

    Strings are serialized too, so line breaks come out escaped.
    """
    return _capped(json.dumps(meta, ensure_ascii=True, separators=(",", ":"), default=str))


def build_message(request: SendRequest, config: RelayConfig) -> EmailMessage:
    """Build the provider message for ``request``.

    Raises:
        ServerMisconfiguredError: No sender address is configured.
    """
    if not config.from_address:
        raise ServerMisconfiguredError("FROM_EMAIL not set")

    msg = EmailMessage()
    msg["From"] = formataddr((config.from_name, config.from_address))
    msg["To"] = _format_addresses(request.to) or request.to
    msg["Subject"] = request.subject
    if cc_value := _format_addresses(request.cc):
        msg["Cc"] = cc_value
    if bcc_value := _format_addresses(request.bcc):
        msg["Bcc"] = bcc_value
    if request.reply_to:
        msg["Reply-To"] = request.reply_to
    domain = config.from_address.rpartition("@")[2] or None
    msg["Message-ID"] = make_msgid(domain=domain)

    if request.organization_id is not None and str(request.organization_id) != "":
        msg[ORGANIZATION_HEADER] = _capped(str(request.organization_id))
    if request.meta is not None:
        msg[META_HEADER] = _meta_header_value(request.meta)

    if request.text and request.html:
        msg.set_content(request.text)
        msg.add_alternative(request.html, subtype="html")
    elif request.html:
        msg.set_content(request.html, subtype="html")
    else:
        msg.set_content(request.text or "")
    return msg


async def send(
    transport: MessageSender,
    request: SendRequest,
    config: RelayConfig,
    metrics: RelayMetrics | None = None,
) -> SendOutcome:
    """Dispatch ``request`` through ``transport`` and normalize the result.

    A non-empty ``rejected`` list on success is a partial acceptance, not a
    failure.

    Raises:
        ServerMisconfiguredError: No sender address is configured. Raised
            before the transport is touched.
    """
    message = build_message(request, config)
    message_id = message["Message-ID"]
    try:
        result = await transport.send(message)
    except Exception as exc:
        detail = str(exc) or exc.__class__.__name__
        logger.error("Dispatch of %s via %s failed: %s", message_id, transport.kind, detail)
        if metrics is not None:
            metrics.inc_error(transport.kind)
        return SendOutcome.failure(detail)

    if metrics is not None:
        metrics.inc_sent(transport.kind)
        metrics.inc_rejected(transport.kind, len(result.rejected))
    if result.rejected:
        logger.warning(
            "Message %s partially accepted: %d accepted, %d rejected",
            result.message_id,
            len(result.accepted),
            len(result.rejected),
        )
    else:
        logger.info("Message %s sent via %s to %d recipient(s)", result.message_id, transport.kind, len(result.accepted))
    return SendOutcome.success(result.message_id or message_id, result.accepted, result.rejected)
