"""
Request logging and metrics middleware.

Binds a correlation id into the structlog context for the lifetime of a
request and records Prometheus request metrics.
"""

import time
import uuid

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from marketplace_api.metrics import (
    http_request_duration_seconds,
    http_requests_in_progress,
    http_requests_total,
)
from shared.logging import bind_context, clear_context

logger = structlog.get_logger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"


UNMATCHED_ENDPOINT = "unmatched"


def _endpoint_label(request: Request) -> str:
    """Route template (e.g. ``/api/services/{service_id}``), never the raw path."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ENDPOINT


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request logging and metrics."""

    async def dispatch(self, request: Request, call_next):
        """Process request and log details."""
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or str(uuid.uuid4())
        clear_context()
        bind_context(correlation_id=correlation_id)

        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"

        http_requests_in_progress.labels(method=method).inc()
        start_time = time.perf_counter()

        logger.info("request_started", method=method, path=path, client_ip=client_ip)

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - start_time
            http_requests_total.labels(
                method=method,
                endpoint=_endpoint_label(request),
                status=500
            ).inc()
            logger.error(
                "request_failed",
                method=method,
                path=path,
                error=str(e),
                duration=f"{duration:.3f}s",
                exc_info=True
            )
            raise
        finally:
            http_requests_in_progress.labels(method=method).dec()

        duration = time.perf_counter() - start_time
        endpoint = _endpoint_label(request)

        http_requests_total.labels(
            method=method,
            endpoint=endpoint,
            status=response.status_code
        ).inc()
        http_request_duration_seconds.labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

        logger.info(
            "request_completed",
            method=method,
            path=path,
            status_code=response.status_code,
            duration=f"{duration:.3f}s"
        )

        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
