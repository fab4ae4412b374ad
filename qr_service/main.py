"""
FastAPI application: owner API, auth routes and the public /r/{id} redirector.

Per-instance objects live on app.state: the rate limiter, the tracker that
owns detached scan-recording tasks, and the auth event bus. The tracker is
drained on shutdown so in-flight scans get a chance to land.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from qr_service.api import auth, endpoints
from qr_service.core.rate_limit import limiter
from qr_service.core.setting import settings
from qr_service.core.task_tracker import BackgroundTaskTracker
from qr_service.db.session import create_tables
from qr_service.middleware.logging import add_logging_middleware, configure_logging
from qr_service.services.auth_events import AuthEventBus, log_auth_event

logger = logging.getLogger(__name__)

configure_logging(settings.LOG_LEVEL)

app = FastAPI(
    title="Dynamic QR Code Service",
    description="Create, manage and track dynamic QR codes",
    version="1.0.0",
    # Interactive docs are off in production
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# task_tracker is created in startup_event
app.state.auth_events = AuthEventBus()
app.state.auth_events.subscribe(log_auth_event)

add_logging_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Health"])
async def root():
    """
    Root endpoint for health checks.

    Returns:
        Simple JSON response indicating service is running
    """
    return {
        "message": "Dynamic QR Code Service",
        "version": "1.0.0",
        "docs": app.docs_url
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "pending_scan_tasks": app.state.task_tracker.pending
    }


app.include_router(auth.router)
app.include_router(endpoints.router)
app.include_router(endpoints.redirect_router)


@app.on_event("startup")
async def startup_event():
    """Create the scan task tracker and, if configured, missing tables."""
    app.state.task_tracker = BackgroundTaskTracker()
    if settings.CREATE_TABLES_ON_STARTUP:
        await create_tables()
        logger.info("Database tables ensured")


@app.on_event("shutdown")
async def shutdown_event():
    """Let in-flight scan logging finish before the process exits."""
    await app.state.task_tracker.drain(timeout=settings.SCAN_TASK_DRAIN_TIMEOUT)
