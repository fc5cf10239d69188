"""FastAPI application entry point"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from masterlist.api import access, auth, characters, health, logs, profile, users
from masterlist.api.deps import AccessDenied
from masterlist.config import settings
from masterlist.middleware.rate_limit import limiter
from masterlist.utils.access import ReasonCode
from masterlist.utils.logger import logger, setup_logging

# Setup logging
setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    logger.info("Masterlist backend starting up", extra={
        "version": VERSION,
        "log_level": settings.LOG_LEVEL,
        "rate_limiting": settings.RATE_LIMIT_ENABLED,
        "monitoring": settings.METRICS_ENABLED
    })
    yield
    logger.info("Masterlist backend shutting down")


app = FastAPI(
    title="Masterlist",
    description="Character masterlist dashboard backend: access control, records and activity log",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# ===== Middleware Setup =====

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Redirect-To", "X-Request-ID"],
)

# Monitoring middleware
if settings.METRICS_ENABLED:
    from masterlist.middleware.monitoring import MonitoringMiddleware
    app.add_middleware(MonitoringMiddleware)

    # Prometheus metrics
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_respect_env_var=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/metrics", "/health", "/health/ready", "/health/live"],
        inprogress_name="masterlist_requests_inprogress",
        inprogress_labels=True
    )
    instrumentator.instrument(app)
    instrumentator.expose(app, endpoint=settings.METRICS_PATH, include_in_schema=False)

# Rate limiting (the limiter is a no-op when RATE_LIMIT_ENABLED is false)
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded errors"""
    logger.warning(
        "Rate limit exceeded",
        extra={"request_id": getattr(request.state, "request_id", None), "action": request.url.path}
    )
    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please try again later.",
            "detail": str(exc.detail)
        }
    )

# ===== Route Setup =====

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(access.router)
app.include_router(characters.router)
app.include_router(users.router)
app.include_router(profile.router)
app.include_router(logs.router)


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "service": "Masterlist",
        "version": VERSION,
        "status": "operational",
        "docs": "/docs",
        "health": "/health",
        "metrics": settings.METRICS_PATH if settings.METRICS_ENABLED else None
    }


# ===== Error Handlers =====

_DENIAL_STATUS = {
    ReasonCode.MAINTENANCE_MODE: 503,
    ReasonCode.FIRST_TIME_RESTRICTION: 403,
    ReasonCode.AUTHENTICATION_REQUIRED: 401,
    ReasonCode.INSUFFICIENT_PRIVILEGE: 403,
}


@app.exception_handler(AccessDenied)
async def access_denied_handler(request: Request, exc: AccessDenied):
    """Render an evaluator denial with the page the browser should go to"""
    decision = exc.decision
    return JSONResponse(
        status_code=_DENIAL_STATUS.get(decision.reason_code, 403),
        content={
            "allowed": False,
            "reason_code": decision.reason_code.value,
            "redirect_target": decision.redirect_target,
            "required_role": exc.required_role,
        },
        headers={"X-Redirect-To": decision.redirect_target or ""},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    """Store unavailable or failing: report a retryable error"""
    logger.error(
        f"Database error: {str(exc)}",
        extra={"request_id": getattr(request.state, "request_id", None), "error": type(exc).__name__},
        exc_info=True
    )
    return JSONResponse(
        status_code=503,
        content={"error": "service_unavailable", "retryable": True}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for uncaught errors"""
    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={"request_id": getattr(request.state, "request_id", None)},
        exc_info=True
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please contact support."
        }
    )
