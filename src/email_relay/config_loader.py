# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Configuration loader for the email relay.

Settings are read once at process start from an optional INI file, with
environment variables as fallbacks, and frozen into a :class:`RelayConfig`
snapshot that is passed explicitly to every component needing it.

Example:
    Configuration file format (config.ini)::

        [server]
        port = 8080
        api_key = change-me
        auth_disabled = false
        cors_origins = https://app.example.com, https://admin.example.com

        [gmail]
        user = sender@gmail.com
        app_password = abcd efgh ijkl mnop

        [smtp]
        host = smtp.example.com
        port = 587
        secure = false
        user = relay@example.com
        password = secret

        [sender]
        name = Example Notifications
        address = noreply@example.com

    Loading it::

        config = load_config("/etc/email-relay/config.ini")
        log_config_summary(config)

Environment variables:
    EMAIL_RELAY_CONFIG - Path to the INI file (default: config.ini)
    HOST, PORT - HTTP bind address (default: 0.0.0.0:8080)
    EMAIL_API_KEY - Shared secret required on /send-email
    EMAIL_AUTH_DISABLED - Emergency auth bypass (default: false)
    CORS_ORIGINS - Comma separated allowed origins (default: *)
    MAX_BODY_BYTES - Request body cap (default: 2 MiB)
    GMAIL_USER, GMAIL_APP_PASSWORD - Gmail app-password account
    SMTP_HOST, SMTP_PORT, SMTP_SECURE, SMTP_USER, SMTP_PASS - Generic SMTP
    FROM_NAME, FROM_EMAIL - Sender identity
"""

from __future__ import annotations

import configparser
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from email_relay.logger import get_logger

DEFAULT_FROM_NAME = "Email Relay"
DEFAULT_HTTP_PORT = 8080
DEFAULT_MAX_BODY_BYTES = 2 * 1024 * 1024

logger = get_logger("ConfigLoader")


@dataclass(frozen=True)
class GmailCredentials:
    """Gmail account used through an app password."""

    user: str = ""
    app_password: str = ""

    @property
    def complete(self) -> bool:
        return bool(self.user and self.app_password)


@dataclass(frozen=True)
class SmtpSettings:
    """Generic SMTP relay settings.

    Attributes:
        host: Relay hostname. A non-empty host selects the SMTP transport.
        port: Relay port, ``None`` when not configured.
        user: Login user.
        password: Login password.
        secure: ``True`` for implicit TLS (465-style), ``False`` for a
            STARTTLS upgrade (587-style).
    """

    host: str = ""
    port: int | None = None
    user: str = ""
    password: str = ""
    secure: bool = False

    @property
    def selected(self) -> bool:
        return bool(self.host)


@dataclass(frozen=True)
class RelayConfig:
    """Immutable snapshot of the relay settings for the process lifetime."""

    api_key: str = ""
    auth_disabled: bool = False
    from_name: str = DEFAULT_FROM_NAME
    from_address: str = ""
    gmail: GmailCredentials = field(default_factory=GmailCredentials)
    smtp: SmtpSettings = field(default_factory=SmtpSettings)
    http_host: str = "0.0.0.0"
    http_port: int = DEFAULT_HTTP_PORT
    cors_origins: tuple[str, ...] = ("*",)
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES

    @property
    def transport_kind(self) -> str:
        """Name of the transport selected by these settings."""
        return "smtp" if self.smtp.selected else "gmail"

    def presence(self) -> dict[str, bool]:
        """Presence flags of every secret, safe to expose on ``/health``."""
        return {
            "apiKeySet": bool(self.api_key),
            "gmailUserSet": bool(self.gmail.user),
            "gmailAppPasswordSet": bool(self.gmail.app_password),
            "smtpHostSet": bool(self.smtp.host),
            "smtpUserSet": bool(self.smtp.user),
            "smtpPassSet": bool(self.smtp.password),
            "fromAddressSet": bool(self.from_address),
            "authDisabled": self.auth_disabled,
        }


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = str(value).strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def load_config(config_path: str | os.PathLike[str] | None = None, environ: Mapping[str, str] | None = None) -> RelayConfig:
    """Build the configuration snapshot.

    INI values win over environment variables; a missing INI file is not an
    error. Absent credentials are not reported here: the auth gate and the
    transport factory reject them at request time.

    Args:
        config_path: INI file path. Defaults to ``EMAIL_RELAY_CONFIG`` or
            ``config.ini``.
        environ: Environment mapping, ``os.environ`` when omitted.

    Raises:
        ValueError: If a port or size value is not an integer.
    """
    env = os.environ if environ is None else environ
    path = Path(config_path or env.get("EMAIL_RELAY_CONFIG", "config.ini"))
    parser = configparser.ConfigParser()
    parser.read(path)

    def get(section: str, option: str, env_name: str, default: str = "") -> str:
        if parser.has_option(section, option):
            value = parser.get(section, option)
        else:
            value = env.get(env_name, default)
        return (value or "").strip()

    def get_int(section: str, option: str, env_name: str, default: int | None = None) -> int | None:
        value = get(section, option, env_name)
        if not value:
            return default
        return int(value)

    gmail = GmailCredentials(
        user=get("gmail", "user", "GMAIL_USER"),
        app_password=get("gmail", "app_password", "GMAIL_APP_PASSWORD"),
    )

    smtp_port = get_int("smtp", "port", "SMTP_PORT")
    smtp_secure_raw = get("smtp", "secure", "SMTP_SECURE")
    smtp = SmtpSettings(
        host=get("smtp", "host", "SMTP_HOST"),
        port=smtp_port,
        user=get("smtp", "user", "SMTP_USER"),
        password=get("smtp", "password", "SMTP_PASS"),
        secure=_parse_bool(smtp_secure_raw or None, smtp_port == 465),
    )

    transport_user = smtp.user if smtp.selected else gmail.user
    # Blank or comma-only values fall back to allowing every origin
    origins = tuple(item.strip() for item in get("server", "cors_origins", "CORS_ORIGINS", "*").split(",") if item.strip())

    return RelayConfig(
        api_key=get("server", "api_key", "EMAIL_API_KEY"),
        auth_disabled=_parse_bool(get("server", "auth_disabled", "EMAIL_AUTH_DISABLED") or None, False),
        from_name=get("sender", "name", "FROM_NAME") or DEFAULT_FROM_NAME,
        from_address=get("sender", "address", "FROM_EMAIL") or transport_user,
        gmail=gmail,
        smtp=smtp,
        http_host=get("server", "host", "HOST") or "0.0.0.0",
        http_port=get_int("server", "port", "PORT", DEFAULT_HTTP_PORT),
        cors_origins=origins or ("*",),
        max_body_bytes=get_int("server", "max_body_bytes", "MAX_BODY_BYTES", DEFAULT_MAX_BODY_BYTES),
    )


def log_config_summary(config: RelayConfig) -> None:
    """Log what is configured without ever printing a secret value."""
    logger.info(
        "Config loaded: transport=%s api_key_set=%s api_key_len=%d gmail_user_set=%s "
        "gmail_app_password_len=%d smtp_host_set=%s smtp_user_set=%s smtp_pass_set=%s from_address_set=%s",
        config.transport_kind,
        bool(config.api_key),
        len(config.api_key),
        bool(config.gmail.user),
        len(config.gmail.app_password),
        bool(config.smtp.host),
        bool(config.smtp.user),
        bool(config.smtp.password),
        bool(config.from_address),
    )
    if config.auth_disabled:
        logger.warning("EMAIL_AUTH_DISABLED is set: /send-email accepts unauthenticated requests")
    elif not config.api_key:
        logger.error("EMAIL_API_KEY missing: /send-email will answer 500 until it is configured")
    if config.smtp.selected:
        if not (config.smtp.port and config.smtp.user and config.smtp.password):
            logger.error("SMTP_HOST set but SMTP_PORT/SMTP_USER/SMTP_PASS incomplete")
    elif not config.gmail.complete:
        logger.error("Gmail credentials missing")
