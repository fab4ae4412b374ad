"""
Background Task Helpers

Provides the scan-recording coroutine run after a redirect decision.
Background tasks cannot use the endpoint's session as it's closed after the
endpoint returns, so each step opens its own session.

Ordering:
1. Insert the scan event and commit
2. Only then increment the counter
If step 1 fails, step 2 is never attempted, so scan_count never runs ahead
of the scan log. Failures are logged and swallowed: the visitor has
already been redirected.
"""

import logging
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from qr_service.db.session import async_session_maker
from qr_service.services.scan_count_service import ScanCountService
from qr_service.services.scan_logger import ScanLoggerService

logger = logging.getLogger(__name__)


async def record_scan_background(
    qr_code_id: str,
    user_agent: Optional[str] = None,
    session_factory: Callable[[], AsyncSession] = async_session_maker
) -> bool:
    """
    Background task to log a scan and then bump the scan counter.

    Args:
        qr_code_id: The QR code that was resolved
        user_agent: User agent string (optional)
        session_factory: Session factory, defaults to the application's

    Returns:
        True if both steps succeeded, False otherwise (never raises)
    """
    try:
        async with session_factory() as session:
            scan_logger = ScanLoggerService(session)
            await scan_logger.log_scan(qr_code_id=qr_code_id, user_agent=user_agent)
    except Exception as e:
        logger.error(
            f"Failed to log scan for {qr_code_id}, skipping counter increment: {str(e)}",
            exc_info=True
        )
        return False

    try:
        async with session_factory() as session:
            scan_count_service = ScanCountService(session)
            await scan_count_service.increment_scan_count(qr_code_id)
            await session.commit()
    except Exception as e:
        logger.error(
            f"Failed to increment scan count for {qr_code_id}: {str(e)}",
            exc_info=True
        )
        return False

    return True
