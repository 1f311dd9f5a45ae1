"""
API endpoints for account registration and sign-in.

Two sign-in flows are supported:

- local accounts: ``/register`` then ``/login`` returns a bearer access token;
- Google sign-in: the frontend obtains a Firebase ID token and exchanges it at
  ``/verify-token``; the Firebase token itself is then used as bearer token.
"""

import secrets
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from careerpath.core.logging_config import get_logger
from careerpath.server.core.database import get_session
from careerpath.server.core.security import (
    InvalidTokenError,
    create_access_token,
    hash_password,
    verify_firebase_token,
    verify_password,
)
from careerpath.server.models.user import Activity, ActivityType, User, UserRead
from careerpath.server.schemas.users import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    UserEnvelope,
    VerifyTokenRequest,
)
from careerpath.server.services.deps import CurrentUserDep

logger = get_logger(__name__)

router = APIRouter(tags=["auth"])


def new_local_uid() -> str:
    return f"local_{secrets.token_hex(12)}"


async def _user_by_email(session: AsyncSession, email: str):
    result = await session.execute(select(User).where(User.email == email.lower()))
    return result.scalars().first()


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register Account",
    description="Create a local e-mail/password account.",
    response_description="The id of the new account.",
    responses={
        201: {"description": "Account created"},
        400: {"description": "Invalid e-mail or password too short"},
        409: {"description": "E-mail already registered"},
    },
)
async def register(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_session),
) -> RegisterResponse:
    """
    Register a local account.

    The display name defaults to the local part of the e-mail address.

    - **email**: Account e-mail, stored lower-cased.
    - **password**: At least 6 characters.
    """
    email = payload.email.lower()
    if await _user_by_email(session, email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered.")

    user = User(
        uid=new_local_uid(),
        email=email,
        password_hash=hash_password(payload.password),
        name=email.split("@")[0],
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info(f"New local user registered: {user.email}")
    return RegisterResponse(message="User registered successfully.", user_id=user.id)


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login",
    description="Exchange e-mail and password for a bearer access token.",
    response_description="The access token and the signed-in user.",
    responses={
        200: {"description": "Login successful"},
        401: {"description": "Invalid email or password"},
    },
)
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> LoginResponse:
    """
    Log in with a local account.

    Records the login time and a ``login`` activity.

    - **email**: Account e-mail.
    - **password**: Account password.
    """
    user = await _user_by_email(session, payload.email)
    if user is None or not user.password_hash or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password.")

    now = datetime.utcnow()
    user.last_login = now
    user.updated_at = now
    session.add(user)
    session.add(
        Activity(
            user_id=user.id,
            type=ActivityType.LOGIN,
            title="Logged in",
            description="Signed in with e-mail and password",
            points=0,
        )
    )
    await session.commit()
    await session.refresh(user)

    return LoginResponse(
        message="Login successful.",
        access_token=create_access_token(user.uid),
        user=UserRead.model_validate(user),
    )


@router.post(
    "/verify-token",
    response_model=UserEnvelope,
    summary="Verify Firebase Token",
    description="Verify a Firebase ID token and return (creating if needed) the matching account.",
    response_description="The account the token belongs to.",
    responses={
        200: {"description": "Token verified"},
        401: {"description": "Invalid token"},
    },
)
async def verify_token(
    payload: VerifyTokenRequest,
    session: AsyncSession = Depends(get_session),
) -> UserEnvelope:
    """
    Sign in with Google via Firebase.

    A first sign-in creates the account. When a local account already owns
    the token's e-mail, the Firebase uid is linked onto that account instead.

    - **id_token**: Firebase ID token from the client SDK.
    """
    try:
        decoded = verify_firebase_token(payload.id_token)
    except InvalidTokenError as e:
        logger.warning(f"Token verification error: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    uid = decoded.get("uid")
    if not uid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    result = await session.execute(select(User).where(User.uid == uid))
    user = result.scalars().first()
    if user is None:
        email = (decoded.get("email") or f"{uid}@users.firebase").lower()
        user = await _user_by_email(session, email)
        if user is not None:
            logger.info(f"Linking Firebase uid to existing account {email}")
            user.uid = uid
            user.photo_url = user.photo_url or decoded.get("picture")
            user.updated_at = datetime.utcnow()
        else:
            user = User(
                uid=uid,
                email=email,
                name=decoded.get("name") or "",
                photo_url=decoded.get("picture"),
            )
            logger.info(f"New user created: {email}")
        session.add(user)
        await session.commit()
        await session.refresh(user)

    return UserEnvelope(user=UserRead.model_validate(user))


@router.get(
    "/me",
    response_model=UserEnvelope,
    summary="Current User",
    description="Return the account the bearer token belongs to.",
    responses={401: {"description": "Missing or invalid token"}},
)
async def me(user: CurrentUserDep) -> UserEnvelope:
    return UserEnvelope(user=UserRead.model_validate(user))
