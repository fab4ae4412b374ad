"""
Database Models for the QR Code Service

This module defines the SQLModel database schemas for:
- User: Accounts known to the identity provider
- Profile: Display name and credit balance shown on the dashboard
- QRCode: User-owned redirect targets
- ScanEvent: Append-only log of redirect resolutions
- RevokedToken: Access tokens invalidated by sign-out

Design Decisions:
- qr_scans is a separate table so the scan log can grow without touching
  the hot lookup path on qr_codes
- scan_count is denormalized on QRCode and only changed by an atomic UPDATE
- Foreign keys cascade: deleting a user removes their codes, deleting a
  code removes its scan history
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlmodel import Column, Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> str:
    return str(uuid.uuid4())


class User(SQLModel, table=True):
    """
    Account table owned by the identity provider.

    Fields:
    - id: UUID string, referenced as owner by every QR code
    - email: Unique, lower-cased login
    - password_hash: werkzeug password hash
    """
    __tablename__ = "users"

    id: str = Field(default_factory=new_uuid, sa_column=Column(String(36), primary_key=True))
    email: str = Field(sa_column=Column(String(320), nullable=False, unique=True, index=True))
    password_hash: str = Field(sa_column=Column(String(255), nullable=False))
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )


class Profile(SQLModel, table=True):
    """Per-user dashboard data, created together with the account."""
    __tablename__ = "profiles"

    id: str = Field(
        sa_column=Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    )
    full_name: Optional[str] = Field(default=None, sa_column=Column(String(200), nullable=True))
    credits: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )


class QRCode(SQLModel, table=True):
    """
    Main table storing QR code records.

    Fields:
    - id: UUID, the public key embedded in /r/{id} for dynamic codes
    - owner_id: Owning user, every mutation is scoped to it
    - name: Human label (1-100 chars)
    - destination_url: Navigation target (<= 2048 chars)
    - is_dynamic: Fixed at creation; static codes embed destination_url directly
    - is_active: Inactive codes resolve as not found
    - scan_count: Only increased through ScanCountService
    - created_at: Immutable creation timestamp

    Indexes:
    - owner_id + created_at: dashboard listing, newest first
    """
    __tablename__ = "qr_codes"
    __table_args__ = (
        CheckConstraint("scan_count >= 0", name="ck_qr_codes_scan_count_non_negative"),
    )

    id: str = Field(default_factory=new_uuid, sa_column=Column(String(36), primary_key=True))
    owner_id: str = Field(
        sa_column=Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    )
    name: str = Field(sa_column=Column(String(100), nullable=False))
    destination_url: str = Field(sa_column=Column(Text, nullable=False))
    is_dynamic: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))
    is_active: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))
    scan_count: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )


class ScanEvent(SQLModel, table=True):
    """
    Scan log table.

    Rows are written only by the redirect path and never updated.
    """
    __tablename__ = "qr_scans"

    id: Optional[int] = Field(default=None, primary_key=True)
    qr_code_id: str = Field(
        sa_column=Column(String(36), ForeignKey("qr_codes.id", ondelete="CASCADE"), nullable=False, index=True)
    )
    user_agent: Optional[str] = Field(
        default=None,
        sa_column=Column(String(500), nullable=True)
    )
    occurred_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )


class RevokedToken(SQLModel, table=True):
    """Token ids invalidated by sign-out."""
    __tablename__ = "revoked_tokens"

    jti: str = Field(sa_column=Column(String(64), primary_key=True))
    user_id: str = Field(sa_column=Column(String(36), nullable=False, index=True))
    revoked_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
