# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""FastAPI application factory for the email relay.

Routes:

- ``GET /``: plain text banner, no auth.
- ``GET /health``: presence flags of the configured secrets, no auth.
- ``POST /send-email``: relays one email, API key required.
- ``GET /metrics``: Prometheus metrics, API key required.

Every failure on the request path is turned into a JSON body by the exception
handlers registered here; see :mod:`email_relay.errors` for the taxonomy.

Example:
    Creating and running the application::

        from email_relay.api import create_app
        from email_relay.config_loader import load_config

        app = create_app(load_config())
        uvicorn.run(app, host="0.0.0.0", port=8080)
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any, AsyncContextManager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from . import dispatcher
from .auth import API_KEY_HEADER_NAME, require_api_key
from .config_loader import RelayConfig
from .errors import PayloadTooLargeError, RelayError, RequestValidationFailed
from .logger import get_logger
from .models import validate_send_request
from .prometheus import RelayMetrics
from .transport import Transport, build_transport

SERVICE_NAME = "email-relay"
EMAIL_SEND_FAILED_LABEL = "Email send failed"

logger = get_logger("API")

auth_dependency = Depends(require_api_key)


def _get_transport(api: FastAPI, factory: Callable[[RelayConfig], Transport]) -> Transport:
    """Return the cached transport, building it on first use.

    A failed build is not cached; the next request tries again.
    """
    transport = api.state.transport
    if transport is None:
        transport = factory(api.state.config)
        api.state.transport = transport
        logger.info("Transport ready: %s", transport.kind)
    return transport


def create_app(
    config: RelayConfig,
    transport_factory: Callable[[RelayConfig], Transport] = build_transport,
    metrics: RelayMetrics | None = None,
    lifespan: Callable[[FastAPI], AsyncContextManager] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    config:
        Immutable configuration snapshot, stored on ``app.state.config``.
    transport_factory:
        Callable building the transport from ``config``. Tests inject stubs
        here.
    metrics:
        Optional :class:`RelayMetrics`; a fresh one is created otherwise.
    lifespan:
        Optional lifespan context manager for startup/shutdown events.

    Returns
    -------
    FastAPI
        A configured application ready to be served by Uvicorn.
    """
    api = FastAPI(title="Email Relay", lifespan=lifespan)
    api.state.config = config
    api.state.metrics = metrics or RelayMetrics()
    api.state.transport = None

    api.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", API_KEY_HEADER_NAME],
    )

    @api.middleware("http")
    async def limit_body_size(request: Request, call_next):
        content_length = request.headers.get("content-length", "")
        if content_length.isdigit() and int(content_length) > config.max_body_bytes:
            return JSONResponse(status_code=413, content=PayloadTooLargeError().to_payload())
        return await call_next(request)

    @api.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        if exc.status_code >= 500:
            logger.error("%s on %s: %s", exc.code, request.url.path, exc.detail)
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @api.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @api.get("/", response_class=PlainTextResponse)
    async def banner():
        """Name the service and point to the useful routes."""
        return f"{SERVICE_NAME} is running. Try GET /health or POST /send-email.\n"

    @api.get("/health")
    async def health() -> dict[str, Any]:
        """Report which secrets are configured, never their values."""
        return {"ok": True, "service": SERVICE_NAME, "transport": config.transport_kind, **config.presence()}

    @api.post("/send-email", dependencies=[auth_dependency])
    async def send_email(request: Request):
        """Validate the body, dispatch it once and return the outcome."""
        # Chunked uploads carry no Content-Length, so the cap is enforced while reading
        body = bytearray()
        async for chunk in request.stream():
            body.extend(chunk)
            if len(body) > config.max_body_bytes:
                raise PayloadTooLargeError()
        try:
            raw = json.loads(body) if body else None
        except (ValueError, RecursionError) as exc:
            raise RequestValidationFailed("body", "Invalid JSON body") from exc

        send_request = validate_send_request(raw)
        transport = _get_transport(api, transport_factory)
        outcome = await dispatcher.send(transport, send_request, config, api.state.metrics)

        if outcome.ok:
            return JSONResponse(status_code=200, content=outcome.to_payload())
        return JSONResponse(
            status_code=500,
            content={"ok": False, "error": EMAIL_SEND_FAILED_LABEL, "code": outcome.error, "detail": outcome.detail},
        )

    @api.get("/metrics", dependencies=[auth_dependency])
    async def metrics_endpoint():
        """Expose Prometheus metrics collected by the dispatcher."""
        return Response(content=api.state.metrics.generate_latest(), media_type="text/plain; version=0.0.4")

    return api
