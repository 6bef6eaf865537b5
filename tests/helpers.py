"""Shared test doubles for the email relay tests."""

from email.message import EmailMessage

from email_relay.transport import TransportResult

API_KEY = "secret-key"


class DummyTransport:
    """Transport stub recording every message it is asked to send."""

    kind = "dummy"

    def __init__(self, rejected=None, error=None):
        self.sent: list[EmailMessage] = []
        self.rejected = list(rejected or [])
        self.error = error

    async def send(self, message):
        self.sent.append(message)
        if self.error is not None:
            raise self.error
        recipients = [addr.strip() for addr in str(message["To"]).split(",")]
        accepted = [addr for addr in recipients if addr not in self.rejected]
        return TransportResult(message_id=message["Message-ID"], accepted=accepted, rejected=list(self.rejected))
