"""
Prometheus-based metrics for production monitoring.
Provides /metrics endpoint for scraping.
"""
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response


# Counters
stream_requests_total = Counter(
    "stream_requests_total",
    "Total video stream requests by response status",
    ["status"],  # 200, 206, 403, 404, 416, 501
)

stream_bytes_total = Counter(
    "stream_bytes_total",
    "Total video bytes written to clients",
)

access_checks_total = Counter(
    "access_checks_total",
    "Total entitlement decisions",
    ["result"],  # admin, paid, denied
)

orders_initiated_total = Counter(
    "orders_initiated_total",
    "Total orders created at the payment gateway",
)

orders_paid_total = Counter(
    "orders_paid_total",
    "Total orders confirmed as paid",
    ["source"],  # pending, direct, replay
)

payment_confirm_rejected_total = Counter(
    "payment_confirm_rejected_total",
    "Total rejected payment confirmations",
    ["reason"],
)

gateway_requests_total = Counter(
    "gateway_requests_total",
    "Total payment gateway API requests",
    ["method", "status"],
)

circuit_breaker_state = Gauge(
    "circuit_breaker_state",
    "Circuit breaker state (0=closed, 1=open)",
    ["name"],
)

# Histograms
gateway_request_duration_seconds = Histogram(
    "gateway_request_duration_seconds",
    "Payment gateway API request duration",
    ["method"],
    buckets=[0.1, 0.5, 1, 2, 5, 10],
)


# Metrics endpoint router
router = APIRouter()


@router.get("/metrics")
def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint for scraping."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
