"""Monitoring and metrics instrumentation for the structured inference pipeline.

Exports custom Prometheus metrics for operational monitoring and alerting.
"""

from structured_inference.monitoring.metrics import (
    delivery_exhausted_total,
    generation_attempts_total,
    parse_failures_total,
    provider_attempts_total,
    provider_failures_total,
    provider_latency_seconds,
)

__all__ = [
    "provider_attempts_total",
    "provider_failures_total",
    "provider_latency_seconds",
    "delivery_exhausted_total",
    "parse_failures_total",
    "generation_attempts_total",
]
