# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Prometheus metrics for the email relay.

All metrics use the ``relay_`` prefix and are labelled by transport kind
(``smtp`` or ``gmail``).

Metrics exposed:
    - ``relay_sent_total``: Counter of messages accepted by the transport.
    - ``relay_errors_total``: Counter of failed dispatches.
    - ``relay_rejected_recipients_total``: Counter of recipients refused
      inside otherwise successful dispatches.

Example:
    Accessing metrics via the REST API::

        GET /metrics
"""

from prometheus_client import CollectorRegistry, Counter, generate_latest


class RelayMetrics:
    """Prometheus counters of the dispatch outcomes.

    Attributes:
        registry: The Prometheus CollectorRegistry holding all metrics.
        sent: Counter of successful dispatches.
        errors: Counter of failed dispatches.
        rejected: Counter of refused recipients.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """Initialize metrics with an optional custom registry.

        Args:
            registry: Optional CollectorRegistry. A private one is created
                when omitted so several apps can coexist in one process.
        """
        self.registry = registry or CollectorRegistry()
        self.sent = Counter(
            "relay_sent_total",
            "Total messages accepted by the transport",
            ["transport"],
            registry=self.registry,
        )
        self.errors = Counter(
            "relay_errors_total",
            "Total failed dispatches",
            ["transport"],
            registry=self.registry,
        )
        self.rejected = Counter(
            "relay_rejected_recipients_total",
            "Total recipients refused by the transport",
            ["transport"],
            registry=self.registry,
        )

    def inc_sent(self, transport: str) -> None:
        self.sent.labels(transport=transport or "unknown").inc()

    def inc_error(self, transport: str) -> None:
        self.errors.labels(transport=transport or "unknown").inc()

    def inc_rejected(self, transport: str, count: int = 1) -> None:
        if count > 0:
            self.rejected.labels(transport=transport or "unknown").inc(count)

    def generate_latest(self) -> bytes:
        """Return the metrics in Prometheus text exposition format."""
        return generate_latest(self.registry)
