from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from models.config import settings
from models.exceptions import (
    AuthenticationException,
    InactiveUserException,
    InsufficientPermissionsException,
    SessionExpiredException,
)
from repositories.database import get_db
from repositories.user_repository import UserRepository

bearer_scheme = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12)).decode()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_user_token(user: db_models.User) -> str:
    return create_access_token(data={"sub": str(user.id)})


def decode_user_id(token: str) -> int:
    """
    Validate a session token and return the user id it was issued for.

    Raises:
        AuthenticationException: If the token is expired, malformed or
            carries no usable subject.
    """
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
    except jwt.exceptions.ExpiredSignatureError:
        raise SessionExpiredException()
    except jwt.exceptions.InvalidTokenError:
        raise AuthenticationException("Not authorized, token failed")

    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError):
        raise AuthenticationException("Not authorized, token failed")


def authenticate_user(db: Session, email: str, password: str) -> db_models.User | None:
    user = UserRepository(db).get_by_email(email)
    if not user or not user.hashed_password:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.COOKIE_NAME,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def _request_token(
    request: Request, credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    """Bearer header first, then the session cookie."""
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(settings.COOKIE_NAME)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> db_models.User:
    """
    Get the authenticated user from the bearer token or session cookie.

    Raises:
        AuthenticationException: If no token is sent, the token is invalid,
            or its user no longer exists.
    """
    token = _request_token(request, credentials)
    if not token:
        raise AuthenticationException("Not authorized, no token")

    user = UserRepository(db).get_by_id(decode_user_id(token))
    if user is None:
        raise AuthenticationException("Not authorized, user not found")
    return user


async def get_current_active_user(
    current_user: db_models.User = Depends(get_current_user),
) -> db_models.User:
    """
    Raises:
        InactiveUserException: If the user account has been deactivated.
    """
    if not current_user.is_active:
        raise InactiveUserException()
    return current_user


async def get_current_user_optional(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[db_models.User]:
    """
    Get current user if authenticated, otherwise return None.

    An expired token raises so the client knows to log in again; a malformed
    token, an unknown user or a deactivated account is treated as anonymous.
    """
    token = _request_token(request, credentials)
    if not token:
        return None

    try:
        user_id = decode_user_id(token)
    except SessionExpiredException:
        raise
    except AuthenticationException:
        return None

    user = UserRepository(db).get_by_id(user_id)
    if user is None or not user.is_active:
        return None
    return user


async def get_admin_user(
    current_user: db_models.User = Depends(get_current_active_user),
) -> db_models.User:
    """
    Require the admin role.

    Raises:
        InsufficientPermissionsException: If user is not an admin.
    """
    if not current_user.is_admin:
        raise InsufficientPermissionsException("Admin access required")
    return current_user
