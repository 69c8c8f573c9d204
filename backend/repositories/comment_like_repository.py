"""Repository for comment like operations."""

from datetime import datetime, timezone

from sqlalchemy import func, update
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from repositories.base import BaseRepository


class CommentLikeRepository(BaseRepository[db_models.CommentLike]):
    """Repository for CommentLike CRUD operations."""

    def __init__(self, db: Session):
        """
        Initialize comment like repository.

        Args:
            db: Database session
        """
        super().__init__(db_models.CommentLike, db)

    def get_by_comment_and_user(
        self, comment_id: int, user_id: int
    ) -> db_models.CommentLike | None:
        """
        Get a like row by comment and user IDs.

        Args:
            comment_id: Comment ID
            user_id: User ID

        Returns:
            CommentLike if found, None otherwise
        """
        return (
            self.db.query(db_models.CommentLike)
            .filter(
                db_models.CommentLike.comment_id == comment_id,
                db_models.CommentLike.user_id == user_id,
            )
            .first()
        )

    def is_liked(self, comment_id: int, user_id: int) -> bool:
        """Whether the user currently likes the comment."""
        like = self.get_by_comment_and_user(comment_id, user_id)
        return bool(like and like.active)

    def ensure_row(self, comment_id: int, user_id: int) -> bool:
        """
        Create an inactive like row if none exists. Does not commit.

        Returns:
            True if this call created the row
        """
        return self.insert_if_absent(
            {
                "comment_id": comment_id,
                "user_id": user_id,
                "active": False,
                "created_at": datetime.now(timezone.utc),
            },
            index_elements=["comment_id", "user_id"],
        )

    def set_active(self, comment_id: int, user_id: int, active: bool) -> bool:
        """
        Conditionally flip a like to the target state. Does not commit.

        Returns:
            True if this call changed the state
        """
        result = self.db.execute(
            update(db_models.CommentLike)
            .where(
                db_models.CommentLike.comment_id == comment_id,
                db_models.CommentLike.user_id == user_id,
                db_models.CommentLike.active == (not active),
            )
            .values(active=active, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def get_user_liked_comment_ids(
        self, user_id: int, comment_ids: list[int]
    ) -> set[int]:
        """
        Get set of comment IDs that user has liked (for batch loading).

        Args:
            user_id: User ID
            comment_ids: List of comment IDs to check

        Returns:
            Set of comment IDs that the user has liked
        """
        if not comment_ids:
            return set()
        likes = (
            self.db.query(db_models.CommentLike.comment_id)
            .filter(
                db_models.CommentLike.user_id == user_id,
                db_models.CommentLike.comment_id.in_(comment_ids),
                db_models.CommentLike.active == True,  # noqa: E712
            )
            .all()
        )
        return {like.comment_id for like in likes}

    def count_by_comment(self, comment_id: int) -> int:
        """
        Count active likes for a comment.

        Args:
            comment_id: Comment ID

        Returns:
            Number of likes on the comment
        """
        return (
            self.db.query(func.count(db_models.CommentLike.id))
            .filter(
                db_models.CommentLike.comment_id == comment_id,
                db_models.CommentLike.active == True,  # noqa: E712
            )
            .scalar()
            or 0
        )
