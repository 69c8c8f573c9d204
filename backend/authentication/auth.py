"""
Password hashing, access tokens and the FastAPI user dependencies.

Tokens are HS256 JWTs whose ``sub`` claim is the member's email.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends
from fastapi.security import (
    HTTPAuthorizationCredentials,
    HTTPBearer,
    OAuth2PasswordBearer,
)
import jwt
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.config import settings
from models.exceptions import (
    AuthenticationException,
    InactiveUserException,
)
from repositories.database import get_db
from repositories.user_repository import UserRepository

# Missing header -> 401 before the route runs
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login")
# Missing header -> anonymous viewer
optional_bearer_scheme = HTTPBearer(auto_error=False)

INVALID_CREDENTIALS = "Could not validate credentials"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign ``data`` with an expiry, ACCESS_TOKEN_EXPIRE_MINUTES by default."""
    expires_delta = expires_delta or timedelta(
        minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    claims = {**data, "exp": datetime.now(timezone.utc) + expires_delta}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> schemas.TokenData:
    """
    Validate a token and extract its subject.

    Raises:
        jwt.exceptions.ExpiredSignatureError: Token has expired
        jwt.exceptions.InvalidTokenError: Bad signature, malformed or no subject
    """
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    subject = payload.get("sub")
    if subject is None:
        raise jwt.exceptions.InvalidTokenError("Token has no subject")
    return schemas.TokenData(email=str(subject))


def authenticate_user(db: Session, email: str, password: str) -> db_models.User | None:
    user = UserRepository(db).get_by_email(email)
    if user is None or not verify_password(password, str(user.hashed_password)):
        return None
    return user


async def get_current_user(
    token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> db_models.User:
    """
    Resolve the bearer token to a user.

    Raises:
        AuthenticationException: Invalid or expired token, or unknown user
    """
    try:
        token_data = decode_token(token)
    except jwt.exceptions.InvalidTokenError:
        raise AuthenticationException(INVALID_CREDENTIALS)

    user = UserRepository(db).get_by_email(token_data.email)
    if user is None:
        raise AuthenticationException(INVALID_CREDENTIALS)
    return user


async def get_current_active_user(
    current_user: db_models.User = Depends(get_current_user),
) -> db_models.User:
    """
    Raises:
        InactiveUserException: If the user account has been deactivated.
    """
    if not bool(current_user.is_active):
        raise InactiveUserException("Account has been deactivated")
    return current_user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(
        optional_bearer_scheme
    ),
    db: Session = Depends(get_db),
) -> Optional[db_models.User]:
    """
    Resolve the viewer for endpoints that anonymous visitors may call.

    Only a missing header means an anonymous viewer. A token that is sent
    but cannot be honoured fails the same way it does on member-only
    endpoints, so clients never silently lose their identity.

    Raises:
        AuthenticationException: Expired or invalid token, or unknown user
        InactiveUserException: If the user account has been deactivated.
    """
    if credentials is None:
        return None

    try:
        token_data = decode_token(credentials.credentials)
    except jwt.exceptions.ExpiredSignatureError:
        raise AuthenticationException("Session expired. Please log in again.")
    except jwt.exceptions.InvalidTokenError:
        raise AuthenticationException(INVALID_CREDENTIALS)

    user = UserRepository(db).get_by_email(token_data.email)
    if user is None:
        raise AuthenticationException(INVALID_CREDENTIALS)
    if not bool(user.is_active):
        raise InactiveUserException("Account has been deactivated")
    return user
