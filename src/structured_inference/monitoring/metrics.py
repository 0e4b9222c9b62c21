"""Custom Prometheus metrics for the structured inference pipeline.

These metrics are exposed at /metrics endpoint and should be scraped by Prometheus.
Alert rules should be configured for:
- provider_failures_total (provider instability, expired credentials)
- delivery_exhausted_total (every provider down at once)
- parse_failures_total (model drifting away from the requested format)
"""

from prometheus_client import Counter, Histogram

# === Provider Metrics ===

provider_attempts_total = Counter(
    "provider_attempts_total",
    "Total provider attempts by provider and outcome",
    ["provider", "outcome"],
)
"""
Provider attempts counter.

Labels:
- provider: provider_id from configuration
- outcome: success, transient, permanent
"""

provider_failures_total = Counter(
    "provider_failures_total",
    "Total failed provider attempts by provider and failure kind",
    ["provider", "kind"],
)
"""
Failed attempts counter, one increment per failed attempt.

Labels:
- provider: provider_id from configuration
- kind: transient (retried on same provider), permanent (skipped to next provider)

Alert thresholds:
- WARN: any permanent failure (usually credentials or model name)
- CRITICAL: transient failure rate > 30% of attempts
"""

provider_latency_seconds = Histogram(
    "provider_latency_seconds",
    "Provider call latency in seconds",
    ["provider"],
    buckets=[0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
)

delivery_exhausted_total = Counter(
    "delivery_exhausted_total",
    "Deliveries that failed on every configured provider",
)

# === Generation Metrics ===

parse_failures_total = Counter(
    "parse_failures_total",
    "Model outputs rejected by the task parser",
    ["task", "error_type"],
)
"""
Parse failures counter.

Labels:
- task: classification, feedback, ...
- error_type: NoCategoryMatch, InvalidScore, MissingRequiredField, ...

High rates indicate prompt/model drift: each failure costs a corrective retry.
"""

generation_attempts_total = Counter(
    "generation_attempts_total",
    "Orchestrator attempts by task and outcome",
    ["task", "outcome"],
)
"""
Orchestrator attempts counter.

Labels:
- task: task name
- outcome: parsed, rejected, failed (retry budget exhausted)
"""
