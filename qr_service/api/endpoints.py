"""
FastAPI Endpoints for the QR Code Service

This module defines the owner API and the public redirect with minimal logic.
Endpoints only handle:
- Request validation (Pydantic models)
- Rate limiting
- Error handling and HTTP responses
- Delegating to service layer

Design Principles:
- Thin endpoints: Only validation and rate limiting
- Service layer: All business logic
- Owner id comes from the bearer token and is passed explicitly to services
- Error handling: ValidationError 400, NotFoundError 404,
  StaticQRCodeError 409, TransientStoreError 500
"""

from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from qr_service.api.deps import get_current_owner, get_task_tracker
from qr_service.api.schemas import (
    DashboardResponse,
    DestinationUpdateRequest,
    QRCodeCreateRequest,
    QRCodeResponse,
    QRCodeStatsResponse,
    StatusUpdateRequest,
)
from qr_service.core.exceptions import (
    NotFoundError,
    StaticQRCodeError,
    TransientStoreError,
    ValidationError,
)
from qr_service.core.rate_limit import RATE_LIMITS, limiter
from qr_service.core.setting import settings
from qr_service.core.task_tracker import BackgroundTaskTracker
from qr_service.db.models import QRCode
from qr_service.db.session import get_session
from qr_service.services.qr_code_service import QRCodeService
from qr_service.services.qr_image import build_qr_payload, download_filename, render_qr_png
from qr_service.services.redirect_service import RedirectResolver
from qr_service.services.stats_service import StatsService

router = APIRouter(prefix="/api", tags=["QR Codes"])
redirect_router = APIRouter(tags=["Redirect"])

NOT_FOUND_PAGE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>QR code not found</title></head>
<body>
<h1>QR code not found</h1>
<p>This QR code does not exist or has been disabled.</p>
</body>
</html>
"""


def to_response(qr_code: QRCode) -> QRCodeResponse:
    return QRCodeResponse(
        id=qr_code.id,
        name=qr_code.name,
        destination_url=qr_code.destination_url,
        is_dynamic=qr_code.is_dynamic,
        is_active=qr_code.is_active,
        scan_count=qr_code.scan_count,
        created_at=qr_code.created_at,
        qr_payload=build_qr_payload(qr_code, settings.BASE_URL),
    )


def to_http_error(error: Exception, action: str) -> HTTPException:
    """Translate a service exception into the matching HTTPException."""
    if isinstance(error, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, StaticQRCodeError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    if isinstance(error, TransientStoreError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to {action}. Please try again."
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}: {str(error)}"
    )


@router.post(
    "/qr-codes",
    response_model=QRCodeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a QR code",
    description="Validates name and destination and stores a new QR code for the signed-in owner"
)
@limiter.limit(RATE_LIMITS["create"])
async def create_qr_code(
    request: Request,  # Required for rate limiting (slowapi expects parameter named 'request')
    body: QRCodeCreateRequest,
    owner: str = Depends(get_current_owner),
    session: AsyncSession = Depends(get_session)
) -> QRCodeResponse:
    try:
        qr_code = await QRCodeService(session).create(
            owner,
            name=body.name,
            destination_url=body.destination_url,
            is_dynamic=body.is_dynamic
        )
    except (ValidationError, TransientStoreError) as e:
        raise to_http_error(e, "create QR code")
    return to_response(qr_code)


@router.get(
    "/qr-codes",
    response_model=list[QRCodeResponse],
    summary="List QR codes",
    description="Returns every QR code of the signed-in owner, newest first"
)
@limiter.limit(RATE_LIMITS["read"])
async def list_qr_codes(
    request: Request,
    owner: str = Depends(get_current_owner),
    session: AsyncSession = Depends(get_session)
) -> list[QRCodeResponse]:
    try:
        qr_codes = await QRCodeService(session).list(owner)
    except TransientStoreError as e:
        raise to_http_error(e, "load QR codes")
    return [to_response(qr_code) for qr_code in qr_codes]


@router.get(
    "/qr-codes/{qr_code_id}",
    response_model=QRCodeResponse,
    summary="Get a QR code"
)
@limiter.limit(RATE_LIMITS["read"])
async def get_qr_code(
    qr_code_id: str,
    request: Request,
    owner: str = Depends(get_current_owner),
    session: AsyncSession = Depends(get_session)
) -> QRCodeResponse:
    try:
        qr_code = await QRCodeService(session).get(owner, qr_code_id)
    except (NotFoundError, TransientStoreError) as e:
        raise to_http_error(e, "load QR code")
    return to_response(qr_code)


@router.patch(
    "/qr-codes/{qr_code_id}",
    response_model=QRCodeResponse,
    summary="Change the destination of a dynamic QR code",
    description="Static codes embed their destination in the image and are rejected with 409"
)
@limiter.limit(RATE_LIMITS["update"])
async def update_destination(
    qr_code_id: str,
    request: Request,
    body: DestinationUpdateRequest,
    owner: str = Depends(get_current_owner),
    session: AsyncSession = Depends(get_session)
) -> QRCodeResponse:
    try:
        qr_code = await QRCodeService(session).update_destination(owner, qr_code_id, body.destination_url)
    except (ValidationError, NotFoundError, StaticQRCodeError, TransientStoreError) as e:
        raise to_http_error(e, "update QR code")
    return to_response(qr_code)


@router.patch(
    "/qr-codes/{qr_code_id}/status",
    response_model=QRCodeResponse,
    summary="Enable or disable a QR code",
    description="Disabled codes answer scans with the not-found page"
)
@limiter.limit(RATE_LIMITS["update"])
async def update_status(
    qr_code_id: str,
    request: Request,
    body: StatusUpdateRequest,
    owner: str = Depends(get_current_owner),
    session: AsyncSession = Depends(get_session)
) -> QRCodeResponse:
    try:
        qr_code = await QRCodeService(session).set_active(owner, qr_code_id, body.is_active)
    except (NotFoundError, TransientStoreError) as e:
        raise to_http_error(e, "update QR code")
    return to_response(qr_code)


@router.delete(
    "/qr-codes/{qr_code_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a QR code",
    description="Deletes the code together with its scan history"
)
@limiter.limit(RATE_LIMITS["update"])
async def delete_qr_code(
    qr_code_id: str,
    request: Request,
    owner: str = Depends(get_current_owner),
    session: AsyncSession = Depends(get_session)
) -> Response:
    try:
        await QRCodeService(session).delete(owner, qr_code_id)
    except (NotFoundError, TransientStoreError) as e:
        raise to_http_error(e, "delete QR code")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/qr-codes/{qr_code_id}/image",
    response_class=Response,
    summary="Download the QR code image",
    description="PNG of the printed code: the redirector link for dynamic codes, the destination for static ones"
)
@limiter.limit(RATE_LIMITS["read"])
async def download_qr_image(
    qr_code_id: str,
    request: Request,
    owner: str = Depends(get_current_owner),
    session: AsyncSession = Depends(get_session)
) -> Response:
    try:
        qr_code = await QRCodeService(session).get(owner, qr_code_id)
    except (NotFoundError, TransientStoreError) as e:
        raise to_http_error(e, "load QR code")

    png = render_qr_png(build_qr_payload(qr_code, settings.BASE_URL))
    filename = download_filename(qr_code.name)
    return Response(
        content=png,
        media_type="image/png",
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"
        }
    )


@router.get(
    "/qr-codes/{qr_code_id}/stats",
    response_model=QRCodeStatsResponse,
    summary="Get QR code statistics"
)
@limiter.limit(RATE_LIMITS["read"])
async def get_qr_code_stats(
    qr_code_id: str,
    request: Request,
    owner: str = Depends(get_current_owner),
    session: AsyncSession = Depends(get_session)
) -> QRCodeStatsResponse:
    try:
        stats = await StatsService(session).get_qr_stats(owner, qr_code_id)
    except (NotFoundError, TransientStoreError) as e:
        raise to_http_error(e, "load statistics")
    return QRCodeStatsResponse(**stats)


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Dashboard summary",
    description="Credits, number of active codes and total scans of the signed-in owner"
)
@limiter.limit(RATE_LIMITS["read"])
async def get_dashboard(
    request: Request,
    owner: str = Depends(get_current_owner),
    session: AsyncSession = Depends(get_session)
) -> DashboardResponse:
    try:
        stats = await StatsService(session).get_dashboard(owner)
    except TransientStoreError as e:
        raise to_http_error(e, "load dashboard")
    return DashboardResponse(**stats)


@redirect_router.get(
    "/r/{qr_code_id}",
    status_code=status.HTTP_302_FOUND,
    response_class=RedirectResponse,
    summary="Resolve a scanned QR code",
    description="Redirects to the destination of an active QR code and records the scan in the background"
)
@limiter.limit(RATE_LIMITS["redirect"])
async def redirect_qr_code(
    qr_code_id: str,
    request: Request,
    session: AsyncSession = Depends(get_session),
    tracker: BackgroundTaskTracker = Depends(get_task_tracker)
) -> Response:
    """
    Redirect to the destination of a QR code.

    Returns:
        RedirectResponse (HTTP 302) to the destination, or the static
        not-found page (HTTP 404) for unknown, malformed or disabled codes
    """
    resolver = RedirectResolver(session, tracker)
    resolution = await resolver.resolve(qr_code_id, user_agent=request.headers.get("User-Agent"))

    if not resolution.is_redirect:
        return HTMLResponse(content=NOT_FOUND_PAGE, status_code=status.HTTP_404_NOT_FOUND)

    return RedirectResponse(
        url=resolution.destination_url,
        status_code=status.HTTP_302_FOUND
    )
