"""
Prometheus metric definitions.

Metrics are registered on the default registry at import time and exposed
on ``GET /metrics``.
"""

from prometheus_client import Counter, Gauge, Histogram

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

http_requests_in_progress = Gauge(
    "http_requests_in_progress",
    "HTTP requests currently in progress",
    ["method"]
)

bookings_created_total = Counter(
    "bookings_created_total",
    "Bookings created, split by whether the requester was authenticated",
    ["authenticated"]
)
