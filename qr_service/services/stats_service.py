"""
Statistics Service

This service handles retrieving statistics for the owner dashboard.

Design Decisions:
- Aggregates data from multiple sources (QR code records, scan counter,
  scan log, profile)
- scan_count is denormalized for fast queries; the scan log is consulted
  only for per-code detail
"""

from typing import Optional

from sqlalchemy import case, func, select, true
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from qr_service.core.exceptions import TransientStoreError
from qr_service.db.models import Profile, QRCode, ScanEvent
from qr_service.services.qr_code_service import QRCodeService
from qr_service.services.scan_count_service import ScanCountService


class StatsService:
    """
    Service for retrieving QR code statistics.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize the stats service with a database session.

        Args:
            session: Async database session for database operations
        """
        self.session = session
        self.qr_code_service = QRCodeService(session)
        self.scan_count_service = ScanCountService(session)

    async def get_dashboard(self, owner: str) -> dict:
        """
        Get the headline numbers shown on the owner's dashboard.

        Returns:
            Dictionary with:
            - full_name: Profile display name (may be None)
            - credits: Remaining credits
            - total_qr_codes: Number of codes owned
            - active_qr_codes: Number of codes currently resolving
            - total_scans: Sum of scan counts across all codes

        Raises:
            TransientStoreError: If the store cannot be read
        """
        statement = (
            select(
                func.count(QRCode.id),
                func.coalesce(func.sum(case((QRCode.is_active == true(), 1), else_=0)), 0)
            )
            .where(QRCode.owner_id == owner)
        )
        try:
            profile: Optional[Profile] = await self.session.get(Profile, owner)
            result = await self.session.execute(statement)
            total_codes, active_codes = result.one()
            total_scans = await self.scan_count_service.get_total_for_owner(owner)
        except SQLAlchemyError as e:
            raise TransientStoreError("Failed to load dashboard", original_error=e)

        return {
            "full_name": profile.full_name if profile else None,
            "credits": profile.credits if profile else 0,
            "total_qr_codes": int(total_codes or 0),
            "active_qr_codes": int(active_codes or 0),
            "total_scans": total_scans,
        }

    async def get_qr_stats(self, owner: str, qr_code_id: str) -> dict:
        """
        Get statistics for one of the owner's QR codes.

        Raises:
            NotFoundError: If the code does not exist for this owner
        """
        qr_code = await self.qr_code_service.get(owner, qr_code_id)

        statement = (
            select(func.count(ScanEvent.id), func.max(ScanEvent.occurred_at))
            .where(ScanEvent.qr_code_id == qr_code.id)
        )
        try:
            result = await self.session.execute(statement)
            logged_scans, last_scanned_at = result.one()
        except SQLAlchemyError as e:
            raise TransientStoreError("Failed to load scan statistics", original_error=e)

        return {
            "id": qr_code.id,
            "name": qr_code.name,
            "destination_url": qr_code.destination_url,
            "is_active": qr_code.is_active,
            "scan_count": qr_code.scan_count,
            "logged_scans": int(logged_scans or 0),
            "last_scanned_at": last_scanned_at,
            "created_at": qr_code.created_at,
        }