"""
Request logging.

One access line per request (method, path, status, duration, client IP)
on the "qr_service.access" logger, plus an X-Process-Time response header.
Server errors are logged at ERROR and client errors at WARNING so that
failed scans and rejected API calls stand out from normal traffic.

configure_logging() applies LOG_LEVEL and a single format process-wide.
"""

import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from qr_service.api.deps import get_client_ip

logger = logging.getLogger("qr_service.access")

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    root.setLevel(level.upper())


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class LoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        client_ip = get_client_ip(request)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.exception(f"{request.method} {request.url.path} failed after {elapsed_ms:.2f}ms IP:{client_ip}")
            raise

        elapsed = time.perf_counter() - started
        # METHOD PATH STATUS DURATION IP
        logger.log(
            _level_for(response.status_code),
            f"{request.method} {request.url.path} {response.status_code} {elapsed * 1000:.2f}ms IP:{client_ip}"
        )
        response.headers["X-Process-Time"] = f"{elapsed:.6f}"
        return response


def add_logging_middleware(app) -> None:
    app.add_middleware(LoggingMiddleware)
