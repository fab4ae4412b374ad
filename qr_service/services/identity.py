"""
Identity Provider

Issues and validates the sessions that identify the acting owner.

- sign_up / sign_in return an AuthSession carrying a signed JWT
- verify turns a token back into a user id
- sign_out revokes the token's jti so it stops working immediately
- Every lifecycle change is published on an AuthEventBus

Tokens are HS256 JWTs (python-jose) with sub, jti, iat and exp claims.
Passwords are stored as werkzeug hashes.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from werkzeug.security import check_password_hash, generate_password_hash

from qr_service.core.exceptions import (
    AuthenticationError,
    DuplicateAccountError,
    TransientStoreError,
)
from qr_service.core.setting import settings
from qr_service.core.validators import validate_credentials
from qr_service.db.models import Profile, RevokedToken, User, utc_now
from qr_service.services.auth_events import AuthEvent, AuthEventBus, AuthEventType

logger = logging.getLogger(__name__)


@dataclass
class AuthSession:
    access_token: str
    user_id: str
    expires_at: datetime
    token_type: str = "bearer"


class IdentityProvider:
    """Account and session lifecycle backed by the users/profiles tables."""

    def __init__(
        self,
        session: AsyncSession,
        events: Optional[AuthEventBus] = None,
        secret_key: str = settings.JWT_SECRET_KEY,
        algorithm: str = settings.JWT_ALGORITHM,
        expire_minutes: int = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    ):
        self.session = session
        self.events = events or AuthEventBus()
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    async def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> AuthSession:
        """
        Create an account and its profile, then sign it in.

        Raises:
            ValidationError: If email or password are unacceptable
            DuplicateAccountError: If the email is already registered
        """
        email = validate_credentials(email, password)

        existing = await self._get_user_by_email(email)
        if existing is not None:
            raise DuplicateAccountError(email)

        user = User(email=email, password_hash=generate_password_hash(password))
        profile = Profile(
            id=user.id,
            full_name=(full_name or "").strip() or None,
            credits=settings.DEFAULT_CREDITS
        )

        try:
            self.session.add(user)
            await self.session.flush()
            self.session.add(profile)
            await self.session.commit()
        except IntegrityError:
            # Concurrent sign-up with the same email
            await self.session.rollback()
            raise DuplicateAccountError(email)
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise TransientStoreError("Failed to create account", original_error=e)

        logger.info(f"Account created: {user.id}")
        self.events.publish(AuthEvent(AuthEventType.SIGNED_UP, user.id))
        return self._start_session(user.id)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """
        Exchange credentials for a session.

        Raises:
            AuthenticationError: If the credentials do not match an account
        """
        user = await self._get_user_by_email((email or "").strip().lower())
        if user is None or not check_password_hash(user.password_hash, password or ""):
            raise AuthenticationError("Invalid email or password")

        return self._start_session(user.id)

    async def verify(self, token: str) -> str:
        """
        Validate an access token.

        Returns:
            The user id the token was issued to

        Raises:
            AuthenticationError: If the token is malformed, badly signed,
                expired, or revoked
        """
        claims = self._decode(token)

        revoked = await self.session.get(RevokedToken, claims["jti"])
        if revoked is not None:
            raise AuthenticationError("Session has been signed out")

        return claims["sub"]

    async def sign_out(self, token: str) -> None:
        """Revoke ``token``. Signing out twice is harmless."""
        claims = self._decode(token)

        if await self.session.get(RevokedToken, claims["jti"]) is None:
            try:
                self.session.add(RevokedToken(jti=claims["jti"], user_id=claims["sub"]))
                await self.session.commit()
            except SQLAlchemyError as e:
                await self.session.rollback()
                raise TransientStoreError("Failed to sign out", original_error=e)

        self.events.publish(AuthEvent(AuthEventType.SIGNED_OUT, claims["sub"]))

    async def get_profile(self, user_id: str) -> Profile:
        profile = await self.session.get(Profile, user_id)
        if profile is None:
            raise AuthenticationError("Account no longer exists")
        return profile

    def _start_session(self, user_id: str) -> AuthSession:
        issued_at = utc_now()
        expires_at = issued_at + timedelta(minutes=self.expire_minutes)
        claims = {
            "sub": user_id,
            "jti": uuid.uuid4().hex,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

        self.events.publish(AuthEvent(AuthEventType.SIGNED_IN, user_id))
        return AuthSession(access_token=token, user_id=user_id, expires_at=expires_at)

    def _decode(self, token: str) -> dict:
        if not isinstance(token, str) or token.count(".") != 2:
            raise AuthenticationError("Malformed bearer token")
        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            # signature/expiry errors land here
            raise AuthenticationError(f"Invalid token: {e}")

        if not claims.get("sub") or not claims.get("jti"):
            raise AuthenticationError("Token is missing required claims")
        return claims

    async def _get_user_by_email(self, email: str) -> Optional[User]:
        statement = select(User).where(User.email == email)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()
