"""Authentication router endpoints."""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.rate_limiter import auth_limit, limiter
from repositories.database import get_db
from services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register", response_model=schemas.User, status_code=status.HTTP_201_CREATED
)
@limiter.limit(auth_limit)
def register(
    request: Request, user: schemas.UserCreate, db: Session = Depends(get_db)
) -> db_models.User:
    """
    Register a new user.

    Accounts that match the club roster are enrolled; others join as guests.
    Domain exceptions are caught by centralized exception handlers.
    """
    return AuthService.register(db, user)


@router.post("/login", response_model=schemas.Token)
@limiter.limit(auth_limit)
def login(
    request: Request,
    credentials: schemas.UserLogin,
    db: Session = Depends(get_db),
) -> schemas.Token:
    """Exchange email and password for a bearer token."""
    return AuthService.login(db, str(credentials.email), credentials.password)


@router.get("/me", response_model=schemas.User)
async def read_users_me(
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> db_models.User:
    return current_user
