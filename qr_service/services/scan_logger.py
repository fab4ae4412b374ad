"""
Scan Logging Service

This service appends scan events for QR code resolutions.
Separated from other services to keep the analytics write path apart
from the redirect decision.

Design Decisions:
- Append-only: rows are never updated or deleted by this service
- Captures the client user agent (best-effort) and a server timestamp
- Commits its own unit of work so callers know the event is durable
  before the counter is incremented
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from qr_service.db.models import ScanEvent, utc_now

MAX_USER_AGENT_LENGTH = 500


class ScanLoggerService:
    """
    Service for logging QR code scans.

    Called from a detached background task so it never blocks the
    redirect response.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize the scan logger with a database session.

        Args:
            session: Async database session for database operations
        """
        self.session = session

    async def log_scan(self, qr_code_id: str, user_agent: Optional[str] = None) -> ScanEvent:
        """
        Insert a scan event and commit it.

        Args:
            qr_code_id: The QR code that was resolved
            user_agent: User agent string (optional, truncated to 500 chars)

        Returns:
            The stored ScanEvent
        """
        scan_event = ScanEvent(
            qr_code_id=qr_code_id,
            user_agent=user_agent[:MAX_USER_AGENT_LENGTH] if user_agent else None,
            occurred_at=utc_now()
        )

        self.session.add(scan_event)
        await self.session.commit()
        return scan_event
