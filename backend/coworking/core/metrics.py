"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at the /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Reservation metrics
reservation_attempts = Counter(
    'reservation_attempts_total',
    'Total reservation attempts',
    ['status']  # success, conflict, invalid, busy, error
)

reservation_latency = Histogram(
    'reservation_latency_seconds',
    'Reservation creation latency',
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

reservation_cancellations = Counter(
    'reservation_cancellations_total',
    'Reservation cancellation attempts',
    ['result']  # cancelled, rejected
)

# Lock metrics
lock_wait = Histogram(
    'reservation_lock_wait_seconds',
    'Time spent waiting for a per-office lock',
    ['backend'],
    buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 3.0]
)

lock_failures = Counter(
    'reservation_lock_failures_total',
    'Per-office lock acquisitions that ran out of wait budget',
    ['backend']
)

# Notification metrics
notification_failures = Counter(
    'notification_failures_total',
    'Notifications that could not be handed to the dispatcher',
    ['event_type']
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)


def metrics_endpoint() -> Response:
    """Prometheus scrape response."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_reservation_attempt(status: str):
    """Record reservation attempt. Status: success, conflict, invalid, busy, error"""
    reservation_attempts.labels(status=status).inc()


def record_cancellation(cancelled: bool):
    result = "cancelled" if cancelled else "rejected"
    reservation_cancellations.labels(result=result).inc()


def record_lock_wait(backend: str, seconds: float, acquired: bool):
    lock_wait.labels(backend=backend).observe(seconds)
    if not acquired:
        lock_failures.labels(backend=backend).inc()


def record_notification_failure(event_type: str):
    notification_failures.labels(event_type=event_type).inc()
