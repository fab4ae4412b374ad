"""
Redirect Service

This service resolves a public QR code identifier to its live destination.

Resolution of a single request:

    START -> LOOKUP -> FOUND_ACTIVE -> (scan logging detached) -> REDIRECTED
                    |
                    +--> NOT_FOUND

Design Decisions:
- Fail closed: a malformed id, a missing row, an inactive code, or any
  store error during lookup all end in NOT_FOUND. Never redirect on
  uncertainty, never retry.
- The lookup blocks (the redirect depends on it); scan logging does not.
  It is handed to a BackgroundTaskTracker and the destination is returned
  without awaiting it.
- Scan logging failures never reach the visitor (see background_tasks).
"""

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from qr_service.core.task_tracker import BackgroundTaskTracker
from qr_service.core.validators import sanitize_qr_code_id
from qr_service.services.background_tasks import record_scan_background
from qr_service.services.qr_code_service import QRCodeService

logger = logging.getLogger(__name__)


class ResolutionState(str, enum.Enum):
    NOT_FOUND = "not_found"
    REDIRECTED = "redirected"


@dataclass
class Resolution:
    """Terminal outcome of one resolve() call."""
    state: ResolutionState
    qr_code_id: str
    destination_url: Optional[str] = None
    scan_task: Optional[asyncio.Task] = None

    @property
    def is_redirect(self) -> bool:
        return self.state is ResolutionState.REDIRECTED


class RedirectResolver:
    """
    Service for resolving QR code scans.

    Holds no state across requests; a fresh resolver is built per request
    around that request's session.
    """

    def __init__(
        self,
        session: AsyncSession,
        tracker: BackgroundTaskTracker,
        record_scan=record_scan_background
    ):
        """
        Args:
            session: Request-scoped session used for the lookup only
            tracker: Owner of the detached scan-logging tasks
            record_scan: Coroutine function (qr_code_id, user_agent) run detached
        """
        self.session = session
        self.tracker = tracker
        self.record_scan = record_scan
        self.qr_code_service = QRCodeService(session)

    async def resolve(self, qr_code_id: str, user_agent: Optional[str] = None) -> Resolution:
        """
        Resolve ``qr_code_id`` to a redirect target.

        Args:
            qr_code_id: Identifier from the /r/{id} path
            user_agent: Client user agent, recorded with the scan

        Returns:
            Resolution in state REDIRECTED (with destination_url and the
            scan task) or NOT_FOUND
        """
        sanitized_id = sanitize_qr_code_id(qr_code_id)
        if sanitized_id is None:
            logger.info(f"Rejected malformed QR code id {qr_code_id!r}")
            return Resolution(ResolutionState.NOT_FOUND, qr_code_id)

        try:
            target = await self.qr_code_service.get_redirect_target(sanitized_id)
        except Exception as e:
            logger.warning(f"Lookup failed for QR code {sanitized_id}, treating as not found: {e}")
            return Resolution(ResolutionState.NOT_FOUND, sanitized_id)

        if target is None or not target.is_active:
            return Resolution(ResolutionState.NOT_FOUND, sanitized_id)

        scan_task = self.tracker.spawn(
            self.record_scan(sanitized_id, user_agent),
            name=f"record-scan-{sanitized_id}"
        )

        return Resolution(
            ResolutionState.REDIRECTED,
            sanitized_id,
            destination_url=target.destination_url,
            scan_task=scan_task
        )
