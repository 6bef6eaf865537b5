# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""API key gate for the send endpoint.

The relay protects ``/send-email`` with a single static shared secret. The
caller credential is looked up, in order, in:

1. the ``X-API-Key`` header;
2. an ``Authorization: Bearer <key>`` header;
3. the ``api_key`` query parameter. This fallback is INSECURE (keys end up in
   access logs and browser history) and exists for manual testing only.

Auth fails closed: an empty configured key denies every request with
``ServerMisconfigured`` unless the operator explicitly sets the bypass flag.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader, APIKeyQuery, HTTPAuthorizationCredentials, HTTPBearer

from .config_loader import RelayConfig
from .errors import ServerMisconfiguredError, UnauthorizedError
from .logger import get_logger

API_KEY_HEADER_NAME = "X-API-Key"
API_KEY_QUERY_PARAM = "api_key"
BEARER_PREFIX = "bearer "

ALLOWED = "Allowed"
SERVER_MISCONFIGURED = "ServerMisconfigured"
UNAUTHORIZED = "Unauthorized"

logger = get_logger("Auth")


@dataclass(frozen=True)
class AuthDecision:
    """Outcome of :func:`authenticate`: ``Allowed`` or ``Denied(reason)``."""

    reason: str
    detail: str | None = None

    @property
    def allowed(self) -> bool:
        return self.reason == ALLOWED


api_key_header = APIKeyHeader(name=API_KEY_HEADER_NAME, auto_error=False)
bearer_scheme = HTTPBearer(auto_error=False)
api_key_query = APIKeyQuery(name=API_KEY_QUERY_PARAM, auto_error=False)


def select_credential(header_key: str | None, bearer_token: str | None, query_key: str | None) -> str | None:
    """Return the first non-empty candidate, stripped, in precedence order."""
    for candidate in (header_key, bearer_token, query_key):
        candidate = (candidate or "").strip()
        if candidate:
            return candidate
    return None


def extract_credential(headers: Mapping[str, str], query_params: Mapping[str, str]) -> str | None:
    """Return the first non-empty caller credential, stripped, or ``None``.

    ``headers`` is expected to be case-insensitive (Starlette ``Headers``).
    """
    authorization = (headers.get("Authorization") or "").strip()
    bearer_token = authorization[len(BEARER_PREFIX):] if authorization.lower().startswith(BEARER_PREFIX) else None
    return select_credential(headers.get(API_KEY_HEADER_NAME), bearer_token, query_params.get(API_KEY_QUERY_PARAM))


def check_credential(candidate: str | None, config: RelayConfig) -> AuthDecision:
    if config.auth_disabled:
        return AuthDecision(ALLOWED)
    if not config.api_key:
        return AuthDecision(SERVER_MISCONFIGURED, "EMAIL_API_KEY not loaded")
    if candidate is None:
        return AuthDecision(UNAUTHORIZED, "Missing API key")
    if candidate != config.api_key:
        return AuthDecision(UNAUTHORIZED, "Invalid API key")
    return AuthDecision(ALLOWED)


def authenticate(headers: Mapping[str, str], query_params: Mapping[str, str], config: RelayConfig) -> AuthDecision:
    return check_credential(extract_credential(headers, query_params), config)


async def require_api_key(
    request: Request,
    header_key: str | None = Depends(api_key_header),
    bearer: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    query_key: str | None = Depends(api_key_query),
) -> None:
    """FastAPI dependency gating a route on the relay API key.

    The three credential sources are declared as FastAPI security schemes so
    they show up in the OpenAPI document. The configuration snapshot is read
    from ``request.app.state.config``.

    Raises:
        ServerMisconfiguredError: No API key is configured.
        UnauthorizedError: The credential is absent or does not match.
    """
    config: RelayConfig = request.app.state.config
    candidate = select_credential(header_key, bearer.credentials if bearer else None, query_key)
    decision = check_credential(candidate, config)
    if decision.allowed:
        return
    if decision.reason == SERVER_MISCONFIGURED:
        logger.error("Rejecting %s: %s", request.url.path, decision.detail)
        raise ServerMisconfiguredError(decision.detail)
    logger.warning("Unauthorized request to %s: %s", request.url.path, decision.detail)
    raise UnauthorizedError(decision.detail)
