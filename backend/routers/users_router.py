"""User relationship, profile and privacy router endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.rate_limiter import follow_limit, limiter
from repositories.database import get_db
from services.privacy_settings_service import PrivacySettingsService
from services.relationship_service import RelationshipService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me/privacy", response_model=schemas.PrivacySettings)
async def get_privacy_settings(
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> schemas.PrivacySettings:
    return PrivacySettingsService.get_privacy_settings(db, current_user.id)


@router.put("/me/privacy", response_model=schemas.PrivacySettings)
async def update_privacy_settings(
    settings_update: schemas.PrivacySettingsUpdate,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> schemas.PrivacySettings:
    """Change who can see the current user's profile."""
    return PrivacySettingsService.update_privacy_settings(
        db, current_user.id, settings_update
    )


@router.get("/{user_id}/profile", response_model=schemas.UserProfile)
async def get_user_profile(
    user_id: int,
    current_user: Optional[db_models.User] = Depends(auth.get_current_user_optional),
    db: Session = Depends(get_db),
) -> schemas.UserProfile:
    """
    Get another user's profile.

    Anonymous callers only see public profiles. Blocks hide the profile in
    both directions.
    """
    return RelationshipService.get_profile(db, current_user, user_id)


@router.post("/{user_id}/follow", response_model=schemas.RelationshipResponse)
@limiter.limit(follow_limit)
def follow_user(
    request: Request,
    user_id: int,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> schemas.RelationshipResponse:
    """
    Follow a user. Private profiles receive a pending request.

    Domain exceptions are caught by centralized exception handlers.
    """
    return RelationshipService.follow(db, current_user, user_id)


@router.delete("/{user_id}/follow", response_model=schemas.RelationshipResponse)
@limiter.limit(follow_limit)
def unfollow_user(
    request: Request,
    user_id: int,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> schemas.RelationshipResponse:
    return RelationshipService.unfollow(db, current_user, user_id)


@router.post("/{user_id}/follow/accept", response_model=schemas.RelationshipResponse)
def accept_follow_request(
    user_id: int,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> schemas.RelationshipResponse:
    """Accept a pending follow request from `user_id`."""
    return RelationshipService.accept_follow(db, current_user, user_id)


@router.post("/{user_id}/block", response_model=schemas.RelationshipResponse)
@limiter.limit(follow_limit)
def block_user(
    request: Request,
    user_id: int,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> schemas.RelationshipResponse:
    """Block a user. Their follow towards the current user is removed."""
    return RelationshipService.block(db, current_user, user_id)


@router.delete("/{user_id}/block", response_model=schemas.RelationshipResponse)
def unblock_user(
    user_id: int,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> schemas.RelationshipResponse:
    return RelationshipService.unblock(db, current_user, user_id)


@router.post("/{user_id}/mute", response_model=schemas.RelationshipResponse)
@limiter.limit(follow_limit)
def mute_user(
    request: Request,
    user_id: int,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> schemas.RelationshipResponse:
    return RelationshipService.mute(db, current_user, user_id)
