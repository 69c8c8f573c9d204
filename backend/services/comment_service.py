"""
Comment service for business logic.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional

from loguru import logger
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import build_pagination
from models.config import ContentLimits, settings
from models.exceptions import (
    BusinessRuleException,
    CommentNotFoundException,
    ContentNotFoundException,
    ContentValidationException,
    InsufficientPermissionsException,
    UnavailableException,
)
from repositories.comment_repository import CommentRepository
from repositories.content_repository import ContentRepository
from services.content_service import ContentService
from services.content_validation import ContentValidationService
from services.visibility_service import VisibilityService


class CommentService:
    """Service for comment-related business logic."""

    @staticmethod
    def _to_schema(
        comment: db_models.Comment,
        author_unique_id: str,
        author_name: str,
        reply_count: int = 0,
        user_has_liked: Optional[bool] = None,
    ) -> schemas.Comment:
        return schemas.Comment(
            id=comment.id,
            content_type=comment.content_type,
            content_id=comment.content_id,
            user_id=comment.user_id,
            text=comment.text,
            parent_comment_id=comment.parent_comment_id,
            depth=comment.depth,
            like_count=comment.like_count,
            is_edited=comment.is_edited,
            edited_at=comment.edited_at,
            created_at=comment.created_at,
            author_unique_id=author_unique_id,
            author_name=author_name,
            reply_count=reply_count,
            user_has_liked=user_has_liked,
        )

    @staticmethod
    def _format_rows(
        db: Session, rows: list[Any], viewer_id: Optional[int]
    ) -> List[schemas.Comment]:
        from services.comment_like_service import CommentLikeService

        comment_ids = [comment.id for comment, _, _ in rows]
        reply_counts = CommentRepository(db).get_reply_counts(comment_ids)
        like_status = CommentLikeService.get_user_liked_status(
            db, comment_ids, viewer_id
        )

        result = []
        for comment, unique_id, name in rows:
            user_has_liked = (
                like_status.get(comment.id, False) if viewer_id is not None else None
            )
            result.append(
                CommentService._to_schema(
                    comment,
                    unique_id,
                    name,
                    reply_count=reply_counts.get(comment.id, 0),
                    user_has_liked=user_has_liked,
                )
            )
        return result

    @staticmethod
    def get_comments(
        db: Session,
        viewer: Optional[db_models.User],
        content_type: str,
        content_id: int,
        page: int = 1,
        limit: int = 20,
        sort_by: schemas.CommentSortOrder = schemas.CommentSortOrder.NEWEST,
    ) -> schemas.CommentListResponse:
        """
        Get top-level comments for a content item.

        Args:
            db: Database session
            viewer: Current user (for like status), None if not logged in
            content_type: Content type tag
            content_id: Content ID
            page: Page number (1-based)
            limit: Page size
            sort_by: Sorting order (newest, oldest, most_liked)

        Returns:
            Comments with reply counts, like status and a pagination block

        Raises:
            ContentNotFoundException: Content missing
            VisibilityDeniedException: Viewer may not see the content
        """
        ContentService.get_visible_item(db, viewer, content_type, content_id)

        comment_repo = CommentRepository(db)
        rows = comment_repo.get_top_level_for_content(
            content_type,
            content_id,
            skip=(page - 1) * limit,
            limit=limit,
            sort_by=sort_by,
        )
        total = comment_repo.count_top_level_for_content(content_type, content_id)

        return schemas.CommentListResponse(
            comments=CommentService._format_rows(
                db, rows, viewer.id if viewer else None
            ),
            pagination=build_pagination(page, limit, total),
        )

    @staticmethod
    def get_replies(
        db: Session,
        viewer: Optional[db_models.User],
        comment_id: int,
        page: int = 1,
        limit: int = 20,
    ) -> schemas.CommentListResponse:
        """
        Get direct replies of a comment, oldest first.

        Raises:
            CommentNotFoundException: Parent comment missing or not active
            VisibilityDeniedException: Viewer may not see the content
        """
        comment_repo = CommentRepository(db)
        parent = comment_repo.get_by_id(comment_id)
        if not parent or parent.status != db_models.CommentStatus.ACTIVE:
            raise CommentNotFoundException(f"Comment {comment_id} not found")

        ContentService.get_visible_item(
            db, viewer, parent.content_type, parent.content_id
        )

        rows = comment_repo.get_replies(
            comment_id, skip=(page - 1) * limit, limit=limit
        )
        total = comment_repo.count_replies(comment_id)

        return schemas.CommentListResponse(
            comments=CommentService._format_rows(
                db, rows, viewer.id if viewer else None
            ),
            pagination=build_pagination(page, limit, total),
        )

    @staticmethod
    def count_comments(
        db: Session,
        viewer: Optional[db_models.User],
        content_type: str,
        content_id: int,
    ) -> int:
        """Number of active comments on a content item, replies included."""
        ContentService.get_visible_item(db, viewer, content_type, content_id)
        return CommentRepository(db).count_active_for_content(content_type, content_id)

    @staticmethod
    def create_comment(
        db: Session,
        user: db_models.User,
        content_type: str,
        content_id: int,
        text: str,
        parent_comment_id: Optional[int] = None,
        limits: ContentLimits | None = None,
    ) -> schemas.Comment:
        """
        Create a comment or reply on a content item.

        All validation happens before anything is written.

        Args:
            db: Database session
            user: Author
            content_type: Content type tag
            content_id: Content ID
            text: Raw comment text
            parent_comment_id: Comment being replied to, if any
            limits: Validation thresholds (defaults to settings)

        Returns:
            Created comment

        Raises:
            ContentValidationException: Text rules or nesting depth violated
            ContentNotFoundException: Content missing
            CommentNotFoundException: Parent missing, inactive or elsewhere
            VisibilityDeniedException: Author may not see the content
            BusinessRuleException: Comments disabled on the post
            GroupPermissionDeniedException: Author lacks CAN_COMMENT
        """
        limits = limits or settings.content_limits
        cleaned = ContentValidationService.clean_comment_text(text, limits)

        item = ContentService.get_visible_item(db, user, content_type, content_id)
        if not item.allow_comments:
            raise BusinessRuleException("Comments are disabled for this post")

        group_id = getattr(item, "group_id", None)
        if group_id is not None:
            VisibilityService.ensure_group_permission(
                db, user, group_id, db_models.GroupPermission.CAN_COMMENT
            )

        comment_repo = CommentRepository(db)
        depth = 0
        if parent_comment_id is not None:
            parent = comment_repo.get_by_id(parent_comment_id)
            if (
                not parent
                or parent.status != db_models.CommentStatus.ACTIVE
                or parent.content_type != content_type
                or parent.content_id != content_id
            ):
                raise CommentNotFoundException(
                    f"Parent comment {parent_comment_id} not found"
                )
            depth = parent.depth + 1
            if depth > limits.max_nesting_depth:
                raise ContentValidationException(
                    f"Replies cannot be nested deeper than {limits.max_nesting_depth} levels"
                )

        db_comment = db_models.Comment(
            content_type=content_type,
            content_id=content_id,
            user_id=user.id,
            text=cleaned,
            parent_comment_id=parent_comment_id,
            depth=depth,
        )
        try:
            comment_repo.add(db_comment)
            ContentService.adjust_counter(db, content_type, content_id, "comments", 1)
            comment_repo.commit()
        except ContentNotFoundException:
            comment_repo.rollback()
            raise
        except OperationalError:
            comment_repo.rollback()
            raise UnavailableException()
        comment_repo.refresh(db_comment)

        logger.info(
            "Comment created",
            comment_id=db_comment.id,
            content_type=content_type,
            content_id=content_id,
            user_id=user.id,
            depth=depth,
        )
        return CommentService._to_schema(
            db_comment, user.unique_id, user.name, user_has_liked=False
        )

    @staticmethod
    def update_comment(
        db: Session,
        user: db_models.User,
        comment_id: int,
        text: str,
        limits: ContentLimits | None = None,
    ) -> schemas.Comment:
        """
        Edit a comment's text. Only the author may edit.

        Raises:
            CommentNotFoundException: Comment missing or not active
            InsufficientPermissionsException: Not the author
            ContentValidationException: Text rules violated
        """
        limits = limits or settings.content_limits
        comment_repo = CommentRepository(db)
        comment = comment_repo.get_by_id(comment_id)
        if not comment or comment.status != db_models.CommentStatus.ACTIVE:
            raise CommentNotFoundException(f"Comment {comment_id} not found")
        if comment.user_id != user.id:
            raise InsufficientPermissionsException("You can only edit your own comments")

        comment.text = ContentValidationService.clean_comment_text(text, limits)
        comment.is_edited = True
        comment.edited_at = datetime.now(timezone.utc)
        comment_repo.update(comment)

        return CommentService._to_schema(
            comment,
            user.unique_id,
            user.name,
            reply_count=comment_repo.count_replies(comment.id),
            user_has_liked=None,
        )

    @staticmethod
    def delete_comment(db: Session, comment_id: int, user_id: int) -> int:
        """
        Delete a comment together with its whole reply subtree.

        The content's comment counter is decremented by the number of active
        comments removed.

        Args:
            db: Database session
            comment_id: Comment ID
            user_id: User requesting deletion

        Returns:
            Number of comments removed

        Raises:
            CommentNotFoundException: If comment not found
            InsufficientPermissionsException: If user doesn't own the comment
        """
        comment_repo = CommentRepository(db)

        comment = comment_repo.get_by_id(comment_id)
        if not comment:
            raise CommentNotFoundException(f"Comment with ID {comment_id} not found")

        if comment.user_id != user_id:
            raise InsufficientPermissionsException(
                "You can only delete your own comments"
            )

        content_type = comment.content_type
        content_id = comment.content_id

        subtree = comment_repo.get_subtree_ids(comment_id)
        active_removed = comment_repo.count_active_in(subtree)
        try:
            removed = comment_repo.delete_many(subtree)
            if active_removed:
                parsed = ContentService.resolve_type(content_type)
                # The item may be soft-deleted; its counter is still kept
                ContentRepository(db, parsed).adjust_counter(
                    content_id, "comments", -active_removed
                )
            comment_repo.commit()
        except OperationalError:
            comment_repo.rollback()
            raise UnavailableException()

        logger.info(
            "Comment deleted",
            comment_id=comment_id,
            user_id=user_id,
            removed=removed,
        )
        return removed
