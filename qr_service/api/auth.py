"""
Authentication endpoints.

Thin wrappers around IdentityProvider: sign-up, sign-in, sign-out and the
signed-in user's profile.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from qr_service.api.deps import get_bearer_token, get_current_owner, get_identity_provider
from qr_service.api.schemas import (
    AuthSessionResponse,
    ProfileResponse,
    SignInRequest,
    SignUpRequest,
)
from qr_service.core.exceptions import (
    AuthenticationError,
    DuplicateAccountError,
    TransientStoreError,
    ValidationError,
)
from qr_service.core.rate_limit import RATE_LIMITS, limiter
from qr_service.services.identity import AuthSession, IdentityProvider

router = APIRouter(prefix="/auth", tags=["Auth"])


def to_session_response(auth_session: AuthSession) -> AuthSessionResponse:
    return AuthSessionResponse(
        access_token=auth_session.access_token,
        token_type=auth_session.token_type,
        user_id=auth_session.user_id,
        expires_at=auth_session.expires_at,
    )


@router.post(
    "/signup",
    response_model=AuthSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account"
)
@limiter.limit(RATE_LIMITS["auth"])
async def sign_up(
    request: Request,
    body: SignUpRequest,
    identity: IdentityProvider = Depends(get_identity_provider)
) -> AuthSessionResponse:
    try:
        auth_session = await identity.sign_up(body.email, body.password, full_name=body.full_name)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DuplicateAccountError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except TransientStoreError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create account. Please try again."
        )
    return to_session_response(auth_session)


@router.post(
    "/signin",
    response_model=AuthSessionResponse,
    summary="Sign in with email and password"
)
@limiter.limit(RATE_LIMITS["auth"])
async def sign_in(
    request: Request,
    body: SignInRequest,
    identity: IdentityProvider = Depends(get_identity_provider)
) -> AuthSessionResponse:
    try:
        auth_session = await identity.sign_in(body.email, body.password)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return to_session_response(auth_session)


@router.post(
    "/signout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Sign out and revoke the current token"
)
async def sign_out(
    token: str = Depends(get_bearer_token),
    identity: IdentityProvider = Depends(get_identity_provider)
) -> Response:
    try:
        await identity.sign_out(token)
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except TransientStoreError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to sign out. Please try again."
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/me",
    response_model=ProfileResponse,
    summary="Profile of the signed-in user"
)
async def get_me(
    owner: str = Depends(get_current_owner),
    identity: IdentityProvider = Depends(get_identity_provider)
) -> ProfileResponse:
    try:
        profile = await identity.get_profile(owner)
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    return ProfileResponse.model_validate(profile)
