# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Logging utilities for the email relay.

Handlers, level and format are configured once with ``logging.basicConfig()``
in the entry point (``main.py``); modules only ask for named loggers here.

Example:
    Typical usage in a module::

        from email_relay.logger import get_logger

        logger = get_logger("Dispatcher")
        logger.info("Message sent")
"""

import logging


def get_logger(name: str = "EmailRelay") -> logging.Logger:
    """Return the standard library logger bound to ``name``.

    No handlers or formatters are attached here.

    Args:
        name: The logger name. Defaults to "EmailRelay".
    """
    return logging.getLogger(name)
