"""Content store endpoints for News, Event, Resource and SocialPost."""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimit, PaginationSkip
from helpers.rate_limiter import content_limit, limiter
from repositories.database import get_db
from services.content_service import ContentService

router = APIRouter(prefix="/content", tags=["content"])


@router.get("/{content_type}", response_model=schemas.ContentFeed)
def list_content(
    content_type: str,
    skip: PaginationSkip = 0,
    limit: PaginationLimit = 20,
    db: Session = Depends(get_db),
    current_user: db_models.User | None = Depends(auth.get_current_user_optional),
) -> schemas.ContentFeed:
    """
    Feed of active items of one type, newest first.

    Items the caller may not see are left out, so a page can be short.
    """
    return ContentService.list_visible(db, current_user, content_type, skip, limit)


@router.get("/{content_type}/{content_id}", response_model=schemas.Content)
def get_content(
    content_type: str,
    content_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User | None = Depends(auth.get_current_user_optional),
) -> schemas.Content:
    """
    Get one content item.

    401 for anonymous callers on non-public items, 403 with a `reason` when
    the visibility rules deny access, 404 when the item does not exist.
    """
    return ContentService.get_content(db, current_user, content_type, content_id)


@router.post(
    "/{content_type}",
    response_model=schemas.Content,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(content_limit)
def create_content(
    request: Request,
    content_type: str,
    payload: schemas.ContentCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> schemas.Content:
    """
    Create a content item.

    Domain exceptions are caught by centralized exception handlers.
    """
    return ContentService.create_content(db, current_user, content_type, payload)


@router.delete("/{content_type}/{content_id}")
def delete_content(
    content_type: str,
    content_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict:
    """Soft-delete a content item. Author only."""
    ContentService.delete_content(db, current_user, content_type, content_id)
    return {"message": "Content deleted successfully"}
