import pytest

from email_relay.config_loader import GmailCredentials, RelayConfig, SmtpSettings
from tests.helpers import API_KEY, DummyTransport


@pytest.fixture
def gmail_config():
    return RelayConfig(
        api_key=API_KEY,
        from_name="Relay Tests",
        from_address="sender@gmail.com",
        gmail=GmailCredentials(user="sender@gmail.com", app_password="app-pass"),
    )


@pytest.fixture
def smtp_config():
    return RelayConfig(
        api_key=API_KEY,
        from_name="Relay Tests",
        from_address="relay@example.com",
        smtp=SmtpSettings(host="smtp.example.com", port=587, user="relay@example.com", password="pw", secure=False),
    )


@pytest.fixture
def dummy_transport():
    return DummyTransport()
