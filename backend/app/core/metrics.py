"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Auth metrics
auth_attempts = Counter(
    'auth_attempts_total',
    'Registration and login attempts',
    ['operation', 'result']  # register/login, success/conflict/rejected
)

token_rejections = Counter(
    'token_rejections_total',
    'Requests rejected by the access gate',
    ['reason']  # missing, invalid, expired, unknown_user
)

# Booking metrics
booking_operations = Counter(
    'booking_operations_total',
    'Booking operations',
    ['operation', 'result']  # create/update/delete, success/conflict/forbidden/not_found
)

# Attendee metrics
attendee_changes = Counter(
    'attendee_changes_total',
    'Attendee membership changes',
    ['operation', 'result']  # register/unregister, success/rejected
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )

# Convenience functions for instrumentation
def record_auth_attempt(operation: str, result: str):
    """Record register/login outcome."""
    auth_attempts.labels(operation=operation, result=result).inc()

def record_token_rejection(reason: str):
    token_rejections.labels(reason=reason).inc()

def record_booking_operation(operation: str, result: str):
    """Record booking operation. Result: success, conflict, forbidden, not_found"""
    booking_operations.labels(operation=operation, result=result).inc()

def record_attendee_change(operation: str, success: bool):
    result = "success" if success else "rejected"
    attendee_changes.labels(operation=operation, result=result).inc()
