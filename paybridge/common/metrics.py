"""Prometheus metric definitions for the checkout service."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


checkout_requests_total = Counter("checkout_requests_total", "Total checkout requests", ["service"])
checkout_success_total = Counter("checkout_success_total", "Checkouts that produced a payment URL", ["service"])
checkout_failure_total = Counter(
    "checkout_failure_total",
    "Checkouts that ended in a failed result",
    ["service", "error_type"],
)
checkout_latency_seconds = Histogram("checkout_latency_seconds", "Checkout latency seconds", ["service"])
processor_request_duration_seconds = Histogram(
    "processor_request_duration_seconds",
    "Round-trip duration of the processor checkout call",
    ["service", "outcome"],
)
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
