"""Colectores Prometheus a nivel de módulo.

Se registran una sola vez en el registry por defecto de prometheus_client.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

HUB_MESSAGES = Counter(
    "hub_messages_total",
    "Total hub messages handled by the pipeline",
    ["status"],  # forwarded, filtered, decode_error, sink_error, handler_error
)

HUB_PROCESSING_LATENCY = Histogram(
    "hub_processing_seconds",
    "Per-message pipeline latency",
    buckets=[0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

HUB_CONNECTION_STATE = Gauge(
    "hub_connection_state",
    "1 when the hub event socket is connected, 0 otherwise",
)

HUB_RECONNECT_ATTEMPTS = Counter(
    "hub_reconnect_attempts_total",
    "Connection attempts made after the first one",
)

SINK_WRITE_FAILURES = Counter(
    "hub_sink_write_failures_total",
    "Failed writes reported by the time-series sink",
)
