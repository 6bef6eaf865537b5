# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Mail transports and the factory selecting one from the configuration.

Two transport variants exist, both dispatching through ``aiosmtplib``:

- :class:`SmtpTransport`: any SMTP relay. ``secure=True`` means implicit TLS
  (port 465 style), ``secure=False`` a plain connection upgraded with
  STARTTLS (port 587 style).
- :class:`GmailTransport`: Gmail through an app password, always implicit TLS
  on ``smtp.gmail.com:465``.

Selection happens once in :func:`build_transport`: a configured SMTP host wins
over Gmail credentials. Building a transport performs no network I/O; the
first connection is opened by :meth:`send`. Each send uses its own
connection, so concurrent requests never share SMTP state.

Example:
    Sending a prepared message::

        transport = build_transport(config)
        result = await transport.send(message)
        print(result.message_id, result.accepted, result.rejected)
"""

from __future__ import annotations

from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import getaddresses
from typing import ClassVar, Union

import aiosmtplib

from .config_loader import RelayConfig
from .errors import TransportConfigError
from .logger import get_logger

GMAIL_HOST = "smtp.gmail.com"
GMAIL_PORT = 465

logger = get_logger("Transport")


@dataclass(frozen=True)
class TransportResult:
    """Per-recipient result reported by the relay for one message."""

    message_id: str
    accepted: list[str]
    rejected: list[str]


def _envelope_recipients(message: EmailMessage) -> list[str]:
    fields = [value for header in ("To", "Cc", "Bcc") for value in message.get_all(header, [])]
    recipients: list[str] = []
    for _name, address in getaddresses(fields):
        if address and address not in recipients:
            recipients.append(address)
    return recipients


async def _deliver(
    host: str,
    port: int,
    user: str,
    password: str,
    implicit_tls: bool,
    message: EmailMessage,
) -> TransportResult:
    """Open a connection, log in, send ``message`` once and close.

    Raises:
        aiosmtplib.SMTPException: Connection, login or send failure,
            including every recipient being refused.
        OSError: Network failure.
    """
    recipients = _envelope_recipients(message)
    # Implicit TLS on connect, or plain connect followed by STARTTLS
    smtp = aiosmtplib.SMTP(hostname=host, port=port, use_tls=implicit_tls, start_tls=not implicit_tls)
    await smtp.connect()
    try:
        await smtp.login(user, password)
        errors, response = await smtp.send_message(message)
    finally:
        try:
            await smtp.quit()
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.debug("Ignoring error while closing SMTP connection to %s: %s", host, exc)
            smtp.close()

    rejected = [address for address in recipients if address in errors]
    accepted = [address for address in recipients if address not in errors]
    logger.debug("Relay %s:%s answered %s", host, port, response)
    return TransportResult(
        message_id=str(message.get("Message-ID", "")),
        accepted=accepted,
        rejected=rejected,
    )


@dataclass(frozen=True)
class SmtpTransport:
    """Generic SMTP relay bound to one set of credentials."""

    kind: ClassVar[str] = "smtp"

    host: str
    port: int
    user: str
    password: str
    secure: bool

    async def send(self, message: EmailMessage) -> TransportResult:
        return await _deliver(self.host, self.port, self.user, self.password, self.secure, message)


@dataclass(frozen=True)
class GmailTransport:
    """Gmail account reached with an app password."""

    kind: ClassVar[str] = "gmail"

    user: str
    app_password: str

    async def send(self, message: EmailMessage) -> TransportResult:
        return await _deliver(GMAIL_HOST, GMAIL_PORT, self.user, self.app_password, True, message)


Transport = Union[SmtpTransport, GmailTransport]


def build_transport(config: RelayConfig) -> Transport:
    """Select and construct the transport described by ``config``.

    Raises:
        TransportConfigError: ``missing SMTP vars`` when an SMTP host is set
            without port, user and password; ``missing Gmail vars`` when no
            SMTP host is set and the Gmail credentials are incomplete.
    """
    smtp = config.smtp
    if smtp.selected:
        if not (smtp.port and smtp.user and smtp.password):
            raise TransportConfigError("missing SMTP vars")
        return SmtpTransport(
            host=smtp.host,
            port=smtp.port,
            user=smtp.user,
            password=smtp.password,
            secure=smtp.secure,
        )

    if not config.gmail.complete:
        raise TransportConfigError("missing Gmail vars")
    return GmailTransport(user=config.gmail.user, app_password=config.gmail.app_password)
