"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking lifecycle metrics
booking_operations = Counter(
    'booking_operations_total',
    'Booking lifecycle operations',
    ['operation', 'status']  # register/close/delete, success/conflict/not_found
)

booking_latency = Histogram(
    'booking_latency_seconds',
    'Latency of booking register/close operations',
    ['operation'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

active_bookings = Gauge(
    'active_bookings',
    'Bookings opened minus bookings closed since process start'
)

# Asset / customer CRUD metrics
entity_operations = Counter(
    'entity_operations_total',
    'Asset and customer write operations',
    ['entity', 'operation']  # asset/customer, create/update/delete
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set/invalidate, hit/miss/error
)

# Auth metrics
api_key_rejections = Counter(
    'api_key_rejections_total',
    'Mutating requests rejected for a missing or invalid API key'
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_operation(operation: str, status: str):
    """Record booking operation. Status: success, conflict, not_found, error"""
    booking_operations.labels(operation=operation, status=status).inc()
    if status != "success":
        return
    if operation == "register":
        active_bookings.inc()
    elif operation == "close":
        active_bookings.dec()


def record_entity_operation(entity: str, operation: str):
    entity_operations.labels(entity=entity, operation=operation).inc()


def record_cache_operation(operation: str, result: str):
    cache_operations.labels(operation=operation, result=result).inc()
