# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""ASGI application entry point for uvicorn.

The configuration snapshot is loaded once, at import time, from the INI file
and the environment (see :mod:`email_relay.config_loader`).

Usage:
    uvicorn email_relay.server:app --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

from .api import create_app
from .config_loader import load_config, log_config_summary

config = load_config()
log_config_summary(config)

app = create_app(config)
