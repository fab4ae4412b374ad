"""
Shared FastAPI dependencies.

- get_identity_provider: IdentityProvider bound to the request session and
  the application's auth event bus
- get_current_owner: resolves the bearer token to the owner id passed
  explicitly into every QR code operation
- get_task_tracker: the application's BackgroundTaskTracker
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from qr_service.core.exceptions import AuthenticationError
from qr_service.core.task_tracker import BackgroundTaskTracker
from qr_service.db.session import get_session
from qr_service.services.identity import IdentityProvider

bearer_scheme = HTTPBearer(auto_error=False)


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.

    Handles proxies and load balancers by checking X-Forwarded-For header.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first one
        return forwarded_for.split(",")[0].strip()

    return request.client.host if request.client else "unknown"


def get_task_tracker(request: Request) -> BackgroundTaskTracker:
    return request.app.state.task_tracker


def get_identity_provider(
    request: Request,
    session: AsyncSession = Depends(get_session)
) -> IdentityProvider:
    return IdentityProvider(session, events=request.app.state.auth_events)


def get_bearer_token(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)
) -> str:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


async def get_current_owner(
    token: str = Depends(get_bearer_token),
    identity: IdentityProvider = Depends(get_identity_provider)
) -> str:
    """Id of the signed-in user; 401 if the token is not acceptable."""
    try:
        return await identity.verify(token)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
