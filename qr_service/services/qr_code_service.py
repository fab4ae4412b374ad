"""
QR Code Service

This service handles validated CRUD over QR code records:
- Creating records for an authenticated owner
- Changing the destination of dynamic codes
- Toggling activation
- Deleting records (scan history cascades)
- Listing an owner's records, newest first

Design Decisions:
- The owner is an explicit argument on every call; no ambient session state
- Validation happens before any store access, so invalid input never writes
- Every query is scoped to owner_id, so another user's record is simply
  "not found"
- Static codes are rejected by update_destination: their destination is
  printed into the image itself
- Listing is unpaginated (acceptable at this scale, a known scaling limit)
"""

import logging
from typing import List, NamedTuple, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from qr_service.core.exceptions import (
    NotFoundError,
    StaticQRCodeError,
    TransientStoreError,
)
from qr_service.core.validators import (
    sanitize_qr_code_id,
    validate_destination_url,
    validate_qr_code_input,
)
from qr_service.db.models import QRCode

logger = logging.getLogger(__name__)

RESOURCE = "QR code"


class RedirectTarget(NamedTuple):
    """Projection of a QR code loaded by the redirect path."""
    id: str
    destination_url: str
    is_active: bool


class QRCodeService:
    """
    Core business logic for QR code records.

    Separated from API layer for testability and maintainability.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize the QR code service.

        Args:
            session: Database session
        """
        self.session = session

    async def create(
        self,
        owner: str,
        name: str,
        destination_url: str,
        is_dynamic: bool = True
    ) -> QRCode:
        """
        Create a new QR code.

        Args:
            owner: Id of the authenticated owner
            name: Human label, trimmed, 1-100 characters
            destination_url: Absolute http(s) URL, trimmed, <= 2048 characters
            is_dynamic: Whether the printed code points at /r/{id}

        Returns:
            The stored QRCode with scan_count=0 and is_active=True

        Raises:
            ValidationError: If any input constraint is violated
            TransientStoreError: If the insert fails
        """
        name, destination_url = validate_qr_code_input(name, destination_url)

        qr_code = QRCode(
            owner_id=owner,
            name=name,
            destination_url=destination_url,
            is_dynamic=is_dynamic,
            is_active=True,
            scan_count=0
        )

        try:
            self.session.add(qr_code)
            await self.session.flush()
            await self.session.commit()
            await self.session.refresh(qr_code)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to create QR code for owner {owner}: {e}", exc_info=True)
            raise TransientStoreError("Failed to create QR code", original_error=e)

        logger.info(f"Created QR code {qr_code.id} (dynamic={is_dynamic}) for owner {owner}")
        return qr_code

    async def get(self, owner: str, qr_code_id: str) -> QRCode:
        """
        Fetch one of the owner's QR codes.

        Raises:
            NotFoundError: If the id is malformed or no row matches
        """
        qr_code = await self._find(owner, qr_code_id)
        if qr_code is None:
            raise NotFoundError(RESOURCE, qr_code_id)
        return qr_code

    async def list(self, owner: str) -> List[QRCode]:
        """Return every QR code of ``owner``, newest first."""
        statement = (
            select(QRCode)
            .where(QRCode.owner_id == owner)
            .order_by(QRCode.created_at.desc())
        )
        try:
            result = await self.session.execute(statement)
        except SQLAlchemyError as e:
            raise TransientStoreError("Failed to list QR codes", original_error=e)
        return list(result.scalars().all())

    async def update_destination(self, owner: str, qr_code_id: str, new_url: str) -> QRCode:
        """
        Point a dynamic QR code at a new destination.

        Args:
            owner: Id of the authenticated owner
            qr_code_id: The record to change
            new_url: Replacement destination, same rules as on create

        Returns:
            The updated QRCode

        Raises:
            ValidationError: If new_url is invalid (checked before any query)
            NotFoundError: If no row matches id and owner
            StaticQRCodeError: If the record is static
            TransientStoreError: If the update fails
        """
        new_url = validate_destination_url(new_url)

        qr_code = await self.get(owner, qr_code_id)
        if not qr_code.is_dynamic:
            raise StaticQRCodeError(qr_code.id)

        statement = (
            update(QRCode)
            .where(QRCode.id == qr_code.id, QRCode.owner_id == owner)
            .values(destination_url=new_url)
        )
        await self._execute_mutation(statement, qr_code.id, "update destination of")

        await self.session.refresh(qr_code)
        logger.info(f"Updated destination of QR code {qr_code.id}")
        return qr_code

    async def set_active(self, owner: str, qr_code_id: str, is_active: bool) -> QRCode:
        """
        Enable or disable a QR code. Disabled codes resolve as not found.

        Raises:
            NotFoundError: If no row matches id and owner
            TransientStoreError: If the update fails
        """
        qr_code = await self.get(owner, qr_code_id)

        statement = (
            update(QRCode)
            .where(QRCode.id == qr_code.id, QRCode.owner_id == owner)
            .values(is_active=is_active)
        )
        await self._execute_mutation(statement, qr_code.id, "change status of")

        await self.session.refresh(qr_code)
        logger.info(f"QR code {qr_code.id} is_active={is_active}")
        return qr_code

    async def delete(self, owner: str, qr_code_id: str) -> None:
        """
        Delete a QR code together with its scan history.

        Raises:
            NotFoundError: If the id is malformed or no row matched
            TransientStoreError: If the delete fails
        """
        sanitized_id = sanitize_qr_code_id(qr_code_id)
        if sanitized_id is None:
            raise NotFoundError(RESOURCE, qr_code_id)

        statement = delete(QRCode).where(QRCode.id == sanitized_id, QRCode.owner_id == owner)
        rowcount = await self._execute_mutation(statement, sanitized_id, "delete")
        if rowcount == 0:
            raise NotFoundError(RESOURCE, qr_code_id)

        logger.info(f"Deleted QR code {sanitized_id}")

    async def get_redirect_target(self, qr_code_id: str) -> Optional[RedirectTarget]:
        """
        Point lookup used by the public redirect path.

        Not scoped to an owner: any visitor can resolve any code. Only the
        columns the redirect decision needs are loaded.

        Returns:
            RedirectTarget, or None if absent
        """
        statement = (
            select(QRCode.id, QRCode.destination_url, QRCode.is_active)
            .where(QRCode.id == qr_code_id)
        )
        result = await self.session.execute(statement)
        row = result.first()
        if row is None:
            return None
        return RedirectTarget(row.id, row.destination_url, bool(row.is_active))

    async def _find(self, owner: str, qr_code_id: str) -> Optional[QRCode]:
        sanitized_id = sanitize_qr_code_id(qr_code_id)
        if sanitized_id is None:
            return None

        statement = select(QRCode).where(QRCode.id == sanitized_id, QRCode.owner_id == owner)
        try:
            result = await self.session.execute(statement)
        except SQLAlchemyError as e:
            raise TransientStoreError("Failed to load QR code", original_error=e)
        return result.scalar_one_or_none()

    async def _execute_mutation(self, statement, qr_code_id: str, action: str) -> int:
        try:
            result = await self.session.execute(statement)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to {action} QR code {qr_code_id}: {e}", exc_info=True)
            raise TransientStoreError(f"Failed to {action} QR code", original_error=e)
        return result.rowcount
