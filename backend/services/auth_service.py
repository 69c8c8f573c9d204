"""
Authentication Service

Handles registration and login, including the club roster check that
decides whether a new account is enrolled.
"""

from datetime import timedelta

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from authentication.auth import (
    authenticate_user,
    create_access_token,
    get_password_hash,
)
from models.config import settings
from models.exceptions import (
    AlreadyExistsException,
    InactiveUserException,
    InvalidCredentialsException,
)
from repositories.user_repository import UserRepository


class AuthService:
    """Service for authentication business logic."""

    @staticmethod
    def register(db: Session, user_data: schemas.UserCreate) -> db_models.User:
        """
        Create a user account.

        Accounts whose email and handle match the club roster are enrolled;
        everyone else joins as a non-enrolled guest.

        Args:
            db: Database session
            user_data: Registration payload

        Returns:
            Created user

        Raises:
            AlreadyExistsException: Email or handle already taken
        """
        user_repo = UserRepository(db)
        email = str(user_data.email).lower()

        if user_repo.email_exists(email):
            raise AlreadyExistsException("Email already registered")
        if user_repo.unique_id_exists(user_data.unique_id):
            raise AlreadyExistsException("Handle already taken")

        roster_entry = user_repo.get_roster_entry(email, user_data.unique_id)
        user = db_models.User(
            email=email,
            unique_id=user_data.unique_id,
            name=roster_entry.name if roster_entry else user_data.name,
            hashed_password=get_password_hash(user_data.password),
            is_enrolled=roster_entry is not None,
        )
        try:
            user_repo.create(user)
        except IntegrityError:
            # Lost a race with a concurrent registration
            user_repo.rollback()
            raise AlreadyExistsException("Email or handle already registered")

        logger.info("User registered", user_id=user.id, enrolled=user.is_enrolled)
        return user

    @staticmethod
    def login(db: Session, email: str, password: str) -> schemas.Token:
        """
        Authenticate a user and create an access token.

        Args:
            db: Database session
            email: User email
            password: User password

        Returns:
            Token object with access_token and token_type

        Raises:
            InvalidCredentialsException: If email or password is incorrect
            InactiveUserException: If the account is deactivated
        """
        user = authenticate_user(db, email.lower(), password)
        if not user:
            raise InvalidCredentialsException("Incorrect email or password")
        if not user.is_active:
            raise InactiveUserException("Account has been deactivated")

        access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        access_token = create_access_token(
            data={"sub": str(user.email)}, expires_delta=access_token_expires
        )
        # nosec B106: "bearer" is OAuth2 token type, not a password
        return schemas.Token(access_token=access_token, token_type="bearer")  # nosec B106
