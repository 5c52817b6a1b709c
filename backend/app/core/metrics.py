"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Ticket metrics
ticket_issuance = Counter(
    'ticket_issuance_total',
    'Ticket issuance attempts',
    ['result']  # issued, exhausted, not_found, render_failure
)

ticket_issuance_latency = Histogram(
    'ticket_issuance_latency_seconds',
    'Ticket issuance latency (signing, QR rendering, persistence)',
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

ticket_scans = Counter(
    'ticket_scans_total',
    'Ticket scan attempts',
    ['result']  # accepted, forbidden, not_found, invalid_token, already_scanned
)

# Reminder pipeline metrics
reminders_enqueued = Counter(
    'reminders_enqueued_total',
    'Reminder emails handed to the task queue'
)

reminder_enqueue_errors = Counter(
    'reminder_enqueue_errors_total',
    'Reminders that could not be enqueued and stay unsent'
)

reminder_emails = Counter(
    'reminder_emails_total',
    'Reminder email deliveries',
    ['result']  # sent, failed
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


# Convenience functions for instrumentation
def record_issuance(result: str):
    """Record ticket issuance. Result: issued, exhausted, not_found, render_failure"""
    ticket_issuance.labels(result=result).inc()


def record_scan(result: str):
    """Record ticket scan outcome."""
    ticket_scans.labels(result=result).inc()


def record_reminder_email(sent: bool):
    result = "sent" if sent else "failed"
    reminder_emails.labels(result=result).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
