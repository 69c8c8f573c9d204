from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimitComments, PaginationPage
from helpers.rate_limiter import comment_limit, limiter
from models.config import settings
from repositories.database import get_db
from services.comment_service import CommentService

router = APIRouter(prefix="/comments", tags=["comments"])


# Declared before /{content_type}/{content_id} so "replies" is not read as an ID
@router.get("/{comment_id}/replies", response_model=schemas.CommentListResponse)
def get_replies(
    comment_id: int,
    page: PaginationPage = 1,
    limit: PaginationLimitComments = settings.COMMENT_PAGE_SIZE,
    db: Session = Depends(get_db),
    current_user: db_models.User | None = Depends(auth.get_current_user_optional),
) -> schemas.CommentListResponse:
    """Direct replies of a comment, oldest first."""
    return CommentService.get_replies(
        db, current_user, comment_id, page=page, limit=limit
    )


@router.get("/{content_type}/{content_id}", response_model=schemas.CommentListResponse)
def get_comments(
    content_type: str,
    content_id: int,
    page: PaginationPage = 1,
    limit: PaginationLimitComments = settings.COMMENT_PAGE_SIZE,
    sort: schemas.CommentSortOrder = schemas.CommentSortOrder.NEWEST,
    db: Session = Depends(get_db),
    current_user: db_models.User | None = Depends(auth.get_current_user_optional),
) -> schemas.CommentListResponse:
    """
    Get top-level comments for a content item with optional sorting.

    Includes user_has_liked when authenticated.
    Domain exceptions are caught by centralized exception handlers.
    """
    return CommentService.get_comments(
        db,
        current_user,
        content_type,
        content_id,
        page=page,
        limit=limit,
        sort_by=sort,
    )


@router.get("/{content_type}/{content_id}/count", response_model=schemas.CommentCount)
def count_comments(
    content_type: str,
    content_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User | None = Depends(auth.get_current_user_optional),
) -> schemas.CommentCount:
    return schemas.CommentCount(
        count=CommentService.count_comments(db, current_user, content_type, content_id)
    )


@router.post(
    "/{content_type}/{content_id}",
    response_model=schemas.Comment,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(comment_limit)
def create_comment(
    request: Request,
    content_type: str,
    content_id: int,
    comment: schemas.CommentCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> schemas.Comment:
    """
    Create a comment, or a reply when parent_comment_id is set.

    Domain exceptions are caught by centralized exception handlers.
    """
    return CommentService.create_comment(
        db,
        current_user,
        content_type,
        content_id,
        comment.text,
        parent_comment_id=comment.parent_comment_id,
    )


@router.put("/{comment_id}", response_model=schemas.Comment)
@limiter.limit(comment_limit)
def update_comment(
    request: Request,
    comment_id: int,
    comment: schemas.CommentUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> schemas.Comment:
    """Edit a comment. Author only."""
    return CommentService.update_comment(db, current_user, comment_id, comment.text)


@router.delete("/{comment_id}", response_model=schemas.CommentDeleteResponse)
def delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> schemas.CommentDeleteResponse:
    """
    Delete a comment and all of its replies.

    Domain exceptions are caught by centralized exception handlers.
    """
    removed = CommentService.delete_comment(db, comment_id, current_user.id)
    return schemas.CommentDeleteResponse(deleted=removed)
