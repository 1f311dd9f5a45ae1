"""
Authentication and Credential Handling.

Two kinds of bearer tokens identify a caller:

- access tokens issued by ``POST /auth/login`` for local e-mail/password
  accounts (HS256 JWT, ``sub`` is the user uid);
- Firebase ID tokens obtained by the frontend through Google sign-in.

``get_current_user`` accepts either and resolves it to a ``User`` row.
"""

import json
from datetime import datetime, timedelta
from typing import Any, Optional

import bcrypt
import firebase_admin
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials
from firebase_admin import exceptions as firebase_exceptions
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from careerpath.core.logging_config import get_logger
from careerpath.server.core.config import settings
from careerpath.server.core.database import get_session
from careerpath.server.models.user import User

logger = get_logger(__name__)

# Bearer token security; missing headers are reported by get_current_user itself
bearer_scheme = HTTPBearer(auto_error=False)

_firebase_app: Optional[firebase_admin.App] = None


class InvalidTokenError(Exception):
    """Raised when a bearer token cannot be verified."""


def hash_password(password: str) -> str:
    """Hash password with configurable rounds (BCRYPT_ROUNDS in .env)"""
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = password.encode("utf-8")[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.auth.bcrypt_rounds))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password"""
    password_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def create_access_token(uid: str, extra: Optional[dict[str, Any]] = None) -> str:
    """Create a signed access token whose subject is the user uid."""
    auth_config = settings.auth
    to_encode: dict[str, Any] = dict(extra or {})
    expire = datetime.utcnow() + timedelta(minutes=auth_config.access_token_expire_minutes)
    to_encode.update({"sub": uid, "exp": expire, "type": "access"})
    return jwt.encode(to_encode, auth_config.jwt_secret_key, algorithm=auth_config.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a locally issued access token.

    Raises:
        InvalidTokenError: bad signature, expired, wrong type or no subject.
    """
    auth_config = settings.auth
    try:
        payload = jwt.decode(token, auth_config.jwt_secret_key, algorithms=[auth_config.jwt_algorithm])
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e

    if payload.get("type") != "access":
        raise InvalidTokenError("Invalid token type")
    if not payload.get("sub"):
        raise InvalidTokenError("Token has no subject")
    return payload


def _get_firebase_app() -> firebase_admin.App:
    global _firebase_app

    if _firebase_app is not None:
        return _firebase_app

    firebase_config = settings.firebase
    if not firebase_config.enabled:
        raise InvalidTokenError("Firebase is not configured")

    try:
        service_account = json.loads(firebase_config.service_account_key or "")
    except json.JSONDecodeError as e:
        raise InvalidTokenError("FIREBASE_SERVICE_ACCOUNT_KEY is not valid JSON") from e

    options = {"projectId": firebase_config.project_id} if firebase_config.project_id else None
    _firebase_app = firebase_admin.initialize_app(
        credentials.Certificate(service_account), options=options, name="careerpath"
    )
    logger.info("Firebase Admin initialized")
    return _firebase_app


def verify_firebase_token(id_token: str) -> dict[str, Any]:
    """
    Verify a Firebase ID token.

    Returns:
        The decoded token claims (``uid``, ``email``, ``name``, ``picture``, ...).

    Raises:
        InvalidTokenError: Firebase is not configured or rejected the token.
    """
    app = _get_firebase_app()
    try:
        return firebase_auth.verify_id_token(id_token, app=app)
    except (ValueError, firebase_exceptions.FirebaseError) as e:
        raise InvalidTokenError(str(e)) from e


def resolve_token_uid(token: str) -> str:
    """Return the uid a bearer token belongs to, trying local tokens first."""
    try:
        return decode_access_token(token)["sub"]
    except InvalidTokenError as local_error:
        logger.debug(f"Not a local access token: {local_error}")

    decoded = verify_firebase_token(token)
    uid = decoded.get("uid")
    if not uid:
        raise InvalidTokenError("Firebase token has no uid")
    return uid


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> User:
    """
    Dependency resolving the ``Authorization: Bearer`` header to a user.

    Raises:
        HTTPException: 401 when the header is missing, the token is invalid, or
            no account exists for the token's uid.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        uid = resolve_token_uid(credentials.credentials)
    except InvalidTokenError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await session.execute(select(User).where(User.uid == uid))
    user = result.scalars().first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
