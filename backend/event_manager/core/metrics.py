"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Registration metrics
registration_attempts = Counter(
    "registration_attempts_total",
    "Total event registration attempts",
    ["outcome"],  # success, EventFull, DuplicateRegistration, EventInPast, ...
)

registration_latency = Histogram(
    "registration_latency_seconds",
    "Registration transaction latency, including time spent waiting on the event row lock",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

cancellation_attempts = Counter(
    "cancellation_attempts_total",
    "Total registration cancellation attempts",
    ["outcome"],  # success, RegistrationNotFound, error
)

# Cache metrics
cache_operations = Counter(
    "cache_operations_total",
    "Cache operations",
    ["operation", "result"],  # get/set/invalidate, hit/miss/error/ok
)


def metrics_endpoint() -> Response:
    """Render the default registry in the Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def record_registration_attempt(outcome: str):
    registration_attempts.labels(outcome=outcome).inc()


def record_cancellation(outcome: str):
    cancellation_attempts.labels(outcome=outcome).inc()


def record_cache_operation(operation: str, result: str):
    cache_operations.labels(operation=operation, result=result).inc()
