"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.
Separated from endpoints to keep concerns separated and enable reuse.

Design Principles:
- Request models carry raw strings; trimming and the name/URL rules live
  in the service layer so every violated rule is reported in one message
- Response models: Define output structure
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class QRCodeCreateRequest(BaseModel):
    """Request model for QR code creation."""
    name: str = Field(..., description="Human label, 1-100 characters")
    destination_url: str = Field(..., description="Absolute http(s) URL the code leads to")
    is_dynamic: bool = Field(
        default=True,
        description="Dynamic codes embed /r/{id} and can be re-pointed later"
    )


class DestinationUpdateRequest(BaseModel):
    """Request model for changing a dynamic code's destination."""
    destination_url: str = Field(..., description="New destination URL")


class StatusUpdateRequest(BaseModel):
    """Request model for enabling or disabling a code."""
    is_active: bool


class QRCodeResponse(BaseModel):
    """Response model for a QR code record."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    destination_url: str
    is_dynamic: bool
    is_active: bool
    scan_count: int
    created_at: datetime
    qr_payload: str = Field(..., description="The text encoded in the printed image")


class QRCodeStatsResponse(BaseModel):
    """Response model for per-code statistics."""
    id: str
    name: str
    destination_url: str
    is_active: bool
    scan_count: int
    logged_scans: int
    last_scanned_at: Optional[datetime] = None
    created_at: datetime


class DashboardResponse(BaseModel):
    """Response model for the dashboard summary."""
    full_name: Optional[str] = None
    credits: int
    total_qr_codes: int
    active_qr_codes: int
    total_scans: int


class SignUpRequest(BaseModel):
    email: str
    password: str
    full_name: Optional[str] = Field(default=None, max_length=200)


class SignInRequest(BaseModel):
    email: str
    password: str


class AuthSessionResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    expires_at: datetime


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: Optional[str] = None
    credits: int
