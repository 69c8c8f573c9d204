"""Group read, membership and permission endpoints."""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimit, PaginationPage
from helpers.rate_limiter import content_limit, limiter
from repositories.database import get_db
from services.group_service import GroupService

router = APIRouter(prefix="/groups", tags=["groups"])


@router.get("", response_model=schemas.GroupList)
def list_groups(
    page: PaginationPage = 1,
    limit: PaginationLimit = 20,
    current_user: db_models.User | None = Depends(auth.get_current_user_optional),
    db: Session = Depends(get_db),
) -> schemas.GroupList:
    """Public groups, plus the private ones the caller belongs to."""
    return GroupService.list_groups(db, current_user, page=page, limit=limit)


@router.get("/{group_id}", response_model=schemas.Group)
def get_group(
    group_id: int,
    current_user: db_models.User | None = Depends(auth.get_current_user_optional),
    db: Session = Depends(get_db),
) -> db_models.Group:
    return GroupService.get_group(db, current_user, group_id)


@router.post("", response_model=schemas.Group, status_code=status.HTTP_201_CREATED)
@limiter.limit(content_limit)
def create_group(
    request: Request,
    group: schemas.GroupCreate,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> db_models.Group:
    """Create a group; the creator becomes its first member."""
    return GroupService.create_group(db, current_user, group)


@router.post("/{group_id}/join", response_model=schemas.GroupMembership)
def join_group(
    group_id: int,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> schemas.GroupMembership:
    """
    Join a group.

    Public groups activate the membership immediately; other groups record a
    pending request for a moderator to approve.
    """
    return GroupService.join_group(db, current_user, group_id)


@router.post("/{group_id}/leave")
def leave_group(
    group_id: int,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict:
    GroupService.leave_group(db, current_user, group_id)
    return {"message": "Left group successfully"}


@router.post(
    "/{group_id}/members/{user_id}/approve", response_model=schemas.GroupMembership
)
def approve_member(
    group_id: int,
    user_id: int,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> schemas.GroupMembership:
    """Approve a pending join request. Requires CAN_MODERATE."""
    return GroupService.approve_member(db, current_user, group_id, user_id)


@router.put(
    "/{group_id}/members/{user_id}/permissions",
    response_model=schemas.GroupMembership,
)
def set_member_permissions(
    group_id: int,
    user_id: int,
    update: schemas.MemberPermissionsUpdate,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> schemas.GroupMembership:
    """
    Replace a member's permission set. Group admins and the creator only.

    Domain exceptions are caught by centralized exception handlers.
    """
    return GroupService.set_member_permissions(
        db, current_user, group_id, user_id, update.permissions
    )
