"""Engagement ledger endpoints: likes, saves, shares and views."""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimit, PaginationPage
from helpers.rate_limiter import interaction_limit, limiter
from repositories.database import get_db
from services.engagement_service import EngagementService

router = APIRouter(prefix="/engagement", tags=["engagement"])


@router.get("/stats/{content_type}/{content_id}", response_model=schemas.EngagementStats)
def get_engagement_stats(
    content_type: str,
    content_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User | None = Depends(auth.get_current_user_optional),
) -> schemas.EngagementStats:
    """Stored counters for an item, with ledger-derived totals."""
    return EngagementService.get_engagement_stats(
        db, current_user, content_type, content_id
    )


# Listing routes are declared before /user/{content_type}/{content_id} so
# that "liked" and "saved" are not taken for a content type.
@router.get("/user/liked/{content_type}", response_model=schemas.UserContentList)
def list_liked_content(
    content_type: str,
    page: PaginationPage = 1,
    limit: PaginationLimit = 20,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> schemas.UserContentList:
    """Items the current user likes, most recent first."""
    return EngagementService.list_user_content(
        db,
        current_user,
        content_type,
        db_models.EngagementAction.LIKE.value,
        page=page,
        limit=limit,
    )


@router.get("/user/saved/{content_type}", response_model=schemas.UserContentList)
def list_saved_content(
    content_type: str,
    page: PaginationPage = 1,
    limit: PaginationLimit = 20,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> schemas.UserContentList:
    """Items the current user has saved, most recent first."""
    return EngagementService.list_user_content(
        db,
        current_user,
        content_type,
        db_models.EngagementAction.SAVE.value,
        page=page,
        limit=limit,
    )


@router.get(
    "/user/{content_type}/{content_id}", response_model=schemas.UserEngagement
)
def get_user_engagement(
    content_type: str,
    content_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> schemas.UserEngagement:
    """The current user's flags on one item."""
    return EngagementService.get_user_engagement(
        db, current_user, content_type, content_id
    )


@router.post(
    "/batch/{content_type}", response_model=schemas.BatchEngagementResponse
)
def get_user_engagements(
    content_type: str,
    body: schemas.BatchEngagementRequest,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> schemas.BatchEngagementResponse:
    """The current user's flags on many items of one type, for feed rendering."""
    return EngagementService.get_user_engagements(
        db, current_user, content_type, body.content_ids
    )


@router.post(
    "/{action}/{content_type}/{content_id}", response_model=schemas.EngagementResult
)
@limiter.limit(interaction_limit)
def engage(
    request: Request,
    action: str,
    content_type: str,
    content_id: int,
    body: Optional[schemas.EngagementRequest] = None,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> schemas.EngagementResult:
    """
    Like, save, share or view an item.

    Without a body, likes and saves toggle. Sending `{"active": true}` or
    `{"active": false}` drives the flag to that state instead, which makes
    retries safe. Shares and views are recorded once per user. On a
    `Comment` target only `like` is accepted.

    Domain exceptions are caught by centralized exception handlers.
    """
    desired = body.active if body else None
    return EngagementService.engage(
        db, current_user, action, content_type, content_id, desired=desired
    )
