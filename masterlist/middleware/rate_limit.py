"""Rate limiting for API protection"""
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from masterlist.config import settings


def get_identifier(request: Request) -> str:
    """
    Get identifier for rate limiting

    Priority:
    1. Session subject (set on request.state by the session bootstrap)
    2. Admin key
    3. IP address (for unauthenticated callers, including login attempts)
    """
    uid = getattr(request.state, "session_uid", None)
    if uid:
        return f"user:{uid}"

    admin_key = request.headers.get("x-admin-key")
    if admin_key and admin_key == settings.ADMIN_API_KEY:
        return "admin:key"

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_identifier,
    default_limits=settings.RATE_LIMIT_DEFAULT,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


# Rate limit configurations for different endpoints
RATE_LIMITS = {
    "login": "10/minute",
    "flags_write": "30/minute",
    "logs_export": "20/minute",
}


def get_rate_limit(endpoint: str) -> str:
    """Get rate limit for specific endpoint"""
    return RATE_LIMITS.get(endpoint, settings.RATE_LIMIT_DEFAULT[0])
