"""Service for comment like operations."""

from loguru import logger
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from models.exceptions import (
    BusinessRuleException,
    CommentNotFoundException,
    UnavailableException,
)
from repositories.comment_like_repository import CommentLikeRepository
from repositories.comment_repository import CommentRepository
from repositories.engagement_repository import EngagementEventRepository
from services.content_service import ContentService
from services.visibility_service import VisibilityService


class CommentLikeService:
    """Service for comment like business logic."""

    @staticmethod
    def _get_likeable_comment(
        db: Session, comment_id: int, user: db_models.User
    ) -> db_models.Comment:
        comment = CommentRepository(db).get_by_id(comment_id)
        if not comment:
            raise CommentNotFoundException(f"Comment {comment_id} not found")

        if comment.status == db_models.CommentStatus.DELETED:
            raise BusinessRuleException("Cannot like deleted comments")
        if comment.status == db_models.CommentStatus.HIDDEN:
            raise BusinessRuleException("Cannot like hidden comments")

        item = ContentService.get_item(db, comment.content_type, comment.content_id)
        VisibilityService.ensure_can_view(db, user, item)
        return comment

    @staticmethod
    def set_like(
        db: Session, comment_id: int, user: db_models.User, liked: bool
    ) -> dict[str, bool | int]:
        """
        Drive a comment like to the desired state.

        Args:
            db: Database session
            comment_id: Comment ID to like/unlike
            user: User performing the action
            liked: Desired end state

        Returns:
            Dict with 'liked' (bool), 'like_count' (int) and 'changed' (bool).

        Raises:
            CommentNotFoundException: Comment not found
            BusinessRuleException: Hidden or deleted comment
            UnavailableException: Storage failure, nothing committed
        """
        CommentLikeService._get_likeable_comment(db, comment_id, user)

        comment_repo = CommentRepository(db)
        like_repo = CommentLikeRepository(db)

        try:
            like_repo.ensure_row(comment_id, user.id)
            changed = like_repo.set_active(comment_id, user.id, liked)
            if changed:
                delta = 1 if liked else -1
                if comment_repo.adjust_like_count(comment_id, delta) == 0:
                    raise CommentNotFoundException(f"Comment {comment_id} not found")
                EngagementEventRepository(db).record(
                    user.id,
                    db_models.COMMENT_TARGET,
                    comment_id,
                    db_models.EngagementAction.LIKE.value,
                    delta,
                )
            comment_repo.commit()
        except CommentNotFoundException:
            comment_repo.rollback()
            raise
        except OperationalError:
            comment_repo.rollback()
            logger.exception(
                "Comment like write failed", comment_id=comment_id, user_id=user.id
            )
            raise UnavailableException()

        if changed:
            logger.info(
                "Comment like changed",
                comment_id=comment_id,
                user_id=user.id,
                liked=liked,
            )

        return {
            "liked": liked,
            "like_count": comment_repo.get_like_count(comment_id),
            "changed": changed,
        }

    @staticmethod
    def toggle_like(
        db: Session, comment_id: int, user: db_models.User
    ) -> dict[str, bool | int]:
        """
        Toggle like on a comment.

        Liking your own comment is allowed.

        Args:
            db: Database session
            comment_id: Comment ID to like/unlike
            user: User performing the action

        Returns:
            Dict with 'liked' (bool), 'like_count' (int) and 'changed' (bool).
        """
        current = CommentLikeRepository(db).is_liked(comment_id, user.id)
        return CommentLikeService.set_like(db, comment_id, user, not current)

    @staticmethod
    def get_user_liked_status(
        db: Session, comment_ids: list[int], user_id: int | None
    ) -> dict[int, bool]:
        """
        Batch get like status for multiple comments.

        Args:
            db: Database session
            comment_ids: List of comment IDs to check
            user_id: User ID to check likes for (None if not authenticated)

        Returns:
            Dict mapping comment_id -> user_has_liked.
            Returns empty dict if user_id is None.
        """
        if user_id is None or not comment_ids:
            return {}

        like_repo = CommentLikeRepository(db)
        liked_ids = like_repo.get_user_liked_comment_ids(user_id, comment_ids)

        return {cid: cid in liked_ids for cid in comment_ids}
