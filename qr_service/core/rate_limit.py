"""
Rate Limiting Configuration

This module provides rate limiting functionality for API endpoints.
Rate limiting prevents abuse and ensures fair usage.

Design Decisions:
- Uses slowapi for rate limiting (lightweight, FastAPI-compatible)
- Different limits for different endpoints
- IP-based limiting (can be extended to user-based)
- Can be switched off with RATE_LIMIT_ENABLED=false
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from qr_service.core.setting import settings

# Uses IP address for rate limiting
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

# Format: "count/period" (e.g., "10/minute" means 10 requests per minute)
RATE_LIMITS = {
    "create": "20/minute",  # QR code creation per IP
    "redirect": "100/minute",  # Public scans per IP
    "read": "60/minute",  # Dashboard reads per IP
    "update": "30/minute",  # Destination, status changes and deletes per IP
    "auth": "10/minute",  # Sign-up / sign-in attempts per IP
}
