"""
Scan Count Service

This service handles incrementing scan counts for QR codes.

Design Decisions:
- Uses database-level atomic increment (UPDATE ... SET n = n + 1)
- Concurrent increments for the same code commute: N calls raise the
  counter by exactly N regardless of interleaving
- scan_count is never written any other way
"""

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from qr_service.db.models import QRCode


class ScanCountService:
    """Service for managing the denormalized scan counter."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def increment_scan_count(self, qr_code_id: str) -> bool:
        """
        Increment the scan count for a QR code atomically.

        Args:
            qr_code_id: The QR code to increment count for

        Returns:
            True if a row was updated, False if the code no longer exists

        Note:
        - Commit is handled by the caller (background task or service)
        """
        statement = (
            update(QRCode)
            .where(QRCode.id == qr_code_id)
            .values(scan_count=QRCode.scan_count + 1)
        )

        result = await self.session.execute(statement)
        return result.rowcount > 0

    async def get_total_for_owner(self, owner: str) -> int:
        """Sum of scan counts across every code of ``owner``."""
        statement = select(func.coalesce(func.sum(QRCode.scan_count), 0)).where(QRCode.owner_id == owner)
        result = await self.session.execute(statement)
        return int(result.scalar_one())
