"""HTTP microservice relaying JSON email requests through SMTP or Gmail.

This package provides:

- API key authentication (header, bearer token or query parameter)
- Ordered validation of send requests
- Transport selection between a generic SMTP relay and Gmail app passwords
- Single-shot dispatch with a normalized outcome
- Prometheus metrics and a FastAPI REST API

Example:
    Basic usage with the FastAPI application::

        from email_relay.api import create_app
        from email_relay.config_loader import load_config

        app = create_app(load_config())

Authors:
    Softwell S.r.l.
"""

__version__ = "0.1.0"
