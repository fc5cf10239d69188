"""Monitoring and observability middleware"""
import time
from typing import Callable

from fastapi import Request, Response
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

from masterlist.utils.logger import logger


# ===== Prometheus Metrics =====

# Request metrics
http_requests_total = Counter(
    "masterlist_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "masterlist_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"]
)

http_errors_total = Counter(
    "masterlist_http_errors_total",
    "Total HTTP errors",
    ["method", "endpoint", "status"]
)

# Domain metrics
access_decisions_total = Counter(
    "masterlist_access_decisions_total",
    "Access evaluator decisions",
    ["required_role", "reason_code"]
)

activity_writes_total = Counter(
    "masterlist_activity_writes_total",
    "Activity log entries written",
    ["type"]
)

activity_write_failures_total = Counter(
    "masterlist_activity_write_failures_total",
    "Activity log writes that failed and were dropped",
    ["type"]
)

authentication_failures_total = Counter(
    "masterlist_authentication_failures_total",
    "Total authentication failures",
    ["code"]  # MISSING_CREDENTIALS, INVALID_CREDENTIALS
)


class MonitoringMiddleware(BaseHTTPMiddleware):
    """Request counters, latency histogram and the X-Request-ID header"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        method = request.method
        endpoint = request.url.path

        request_id = request.headers.get("x-request-id", f"req_{int(time.time() * 1000)}")
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.time() - start_time
            http_errors_total.labels(method=method, endpoint=endpoint, status=500).inc()
            logger.error(
                f"Request failed: {method} {endpoint}",
                extra={"request_id": request_id, "duration": duration, "error": str(e)},
                exc_info=True
            )
            raise

        status = response.status_code
        duration = time.time() - start_time
        http_requests_total.labels(method=method, endpoint=endpoint, status=status).inc()
        http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)

        if duration > 1.0:
            logger.warning(
                f"Slow request detected: {method} {endpoint}",
                extra={"request_id": request_id, "duration": duration, "status": status}
            )

        if status >= 400:
            http_errors_total.labels(method=method, endpoint=endpoint, status=status).inc()

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response


def record_access_decision(required_role: str, reason_code: str):
    """Record an access evaluator outcome"""
    access_decisions_total.labels(required_role=required_role, reason_code=reason_code).inc()


def record_activity_write(kind: str):
    activity_writes_total.labels(type=kind).inc()


def record_activity_failure(kind: str):
    activity_write_failures_total.labels(type=kind).inc()


def record_auth_failure(code: str):
    """Record authentication failure"""
    authentication_failures_total.labels(code=code).inc()
