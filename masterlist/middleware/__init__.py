"""Middleware modules for production-ready features"""
from masterlist.middleware.monitoring import (
    MonitoringMiddleware,
    record_access_decision,
    record_activity_failure,
    record_activity_write,
    record_auth_failure
)
from masterlist.middleware.rate_limit import limiter, get_rate_limit

__all__ = [
    "MonitoringMiddleware",
    "record_access_decision",
    "record_activity_failure",
    "record_activity_write",
    "record_auth_failure",
    "limiter",
    "get_rate_limit"
]
