"""
Comment repository for database operations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import func, update
from sqlalchemy.orm import Session

import repositories.db_models as db_models

from .base import BaseRepository

if TYPE_CHECKING:
    from models.schemas import CommentSortOrder


class CommentRepository(BaseRepository[db_models.Comment]):
    """Repository for Comment entity database operations."""

    def __init__(self, db: Session):
        """
        Initialize comment repository.

        Args:
            db: Database session
        """
        super().__init__(db_models.Comment, db)

    def get_top_level_for_content(
        self,
        content_type: str,
        content_id: int,
        skip: int = 0,
        limit: int = 20,
        sort_by: CommentSortOrder | None = None,
    ) -> list[Any]:
        """
        Get active top-level comments for a content item with author info.

        Args:
            content_type: Content type tag
            content_id: Content ID
            skip: Number of records to skip
            limit: Maximum number of records to return
            sort_by: Sorting order (newest, oldest, most_liked)

        Returns:
            List of tuples (comment, author_unique_id, author_name)
        """
        # Import at runtime to avoid circular import
        from models.schemas import CommentSortOrder as SortOrder

        if sort_by is None:
            sort_by = SortOrder.NEWEST

        query = (
            self.db.query(
                db_models.Comment,
                db_models.User.unique_id.label("author_unique_id"),
                db_models.User.name.label("author_name"),
            )
            .join(db_models.User, db_models.Comment.user_id == db_models.User.id)
            .filter(
                db_models.Comment.content_type == content_type,
                db_models.Comment.content_id == content_id,
                db_models.Comment.parent_comment_id.is_(None),
                db_models.Comment.status == db_models.CommentStatus.ACTIVE,
            )
        )

        if sort_by == SortOrder.OLDEST:
            query = query.order_by(
                db_models.Comment.created_at.asc(), db_models.Comment.id.asc()
            )
        elif sort_by == SortOrder.MOST_LIKED:
            query = query.order_by(
                db_models.Comment.like_count.desc(),
                db_models.Comment.created_at.desc(),
                db_models.Comment.id.desc(),
            )
        else:  # NEWEST - default
            query = query.order_by(
                db_models.Comment.created_at.desc(), db_models.Comment.id.desc()
            )

        return query.offset(skip).limit(limit).all()

    def count_top_level_for_content(self, content_type: str, content_id: int) -> int:
        """Count active top-level comments on a content item."""
        return (
            self.db.query(func.count(db_models.Comment.id))
            .filter(
                db_models.Comment.content_type == content_type,
                db_models.Comment.content_id == content_id,
                db_models.Comment.parent_comment_id.is_(None),
                db_models.Comment.status == db_models.CommentStatus.ACTIVE,
            )
            .scalar()
            or 0
        )

    def count_active_for_content(self, content_type: str, content_id: int) -> int:
        """Count every active comment on a content item, replies included."""
        return (
            self.db.query(func.count(db_models.Comment.id))
            .filter(
                db_models.Comment.content_type == content_type,
                db_models.Comment.content_id == content_id,
                db_models.Comment.status == db_models.CommentStatus.ACTIVE,
            )
            .scalar()
            or 0
        )

    def get_replies(
        self, parent_comment_id: int, skip: int = 0, limit: int = 20
    ) -> list[Any]:
        """
        Get active direct replies, oldest first, with author info.

        Args:
            parent_comment_id: Parent comment ID
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            List of tuples (comment, author_unique_id, author_name)
        """
        return (
            self.db.query(
                db_models.Comment,
                db_models.User.unique_id.label("author_unique_id"),
                db_models.User.name.label("author_name"),
            )
            .join(db_models.User, db_models.Comment.user_id == db_models.User.id)
            .filter(
                db_models.Comment.parent_comment_id == parent_comment_id,
                db_models.Comment.status == db_models.CommentStatus.ACTIVE,
            )
            .order_by(db_models.Comment.created_at.asc(), db_models.Comment.id.asc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_replies(self, parent_comment_id: int) -> int:
        """Count active direct replies of a comment."""
        return (
            self.db.query(func.count(db_models.Comment.id))
            .filter(
                db_models.Comment.parent_comment_id == parent_comment_id,
                db_models.Comment.status == db_models.CommentStatus.ACTIVE,
            )
            .scalar()
            or 0
        )

    def get_reply_counts(self, comment_ids: list[int]) -> dict[int, int]:
        """
        Batch count of active direct replies.

        Args:
            comment_ids: Parent comment IDs

        Returns:
            Mapping parent ID -> reply count (missing means zero)
        """
        if not comment_ids:
            return {}
        rows = (
            self.db.query(
                db_models.Comment.parent_comment_id,
                func.count(db_models.Comment.id).label("total"),
            )
            .filter(
                db_models.Comment.parent_comment_id.in_(comment_ids),
                db_models.Comment.status == db_models.CommentStatus.ACTIVE,
            )
            .group_by(db_models.Comment.parent_comment_id)
            .all()
        )
        return {row.parent_comment_id: row.total for row in rows}

    def get_subtree_ids(self, root_id: int) -> list[int]:
        """
        Collect a comment and all of its descendants.

        Walks the tree level by level; depth is bounded by the nesting limit.

        Args:
            root_id: Root comment ID

        Returns:
            IDs of the root and every descendant
        """
        collected = [root_id]
        frontier = [root_id]
        while frontier:
            rows = (
                self.db.query(db_models.Comment.id)
                .filter(db_models.Comment.parent_comment_id.in_(frontier))
                .all()
            )
            frontier = [row.id for row in rows]
            collected.extend(frontier)
        return collected

    def count_active_in(self, comment_ids: list[int]) -> int:
        """Count active comments among the given IDs."""
        if not comment_ids:
            return 0
        return (
            self.db.query(func.count(db_models.Comment.id))
            .filter(
                db_models.Comment.id.in_(comment_ids),
                db_models.Comment.status == db_models.CommentStatus.ACTIVE,
            )
            .scalar()
            or 0
        )

    def delete_many(self, comment_ids: list[int]) -> int:
        """
        Hard delete comments and their likes. Does not commit.

        Args:
            comment_ids: Comment IDs to delete

        Returns:
            Number of comments deleted
        """
        if not comment_ids:
            return 0
        self.db.query(db_models.CommentLike).filter(
            db_models.CommentLike.comment_id.in_(comment_ids)
        ).delete(synchronize_session=False)
        # Children before parents so the self-referencing FK never dangles
        deleted = 0
        for comment_id in reversed(comment_ids):
            deleted += (
                self.db.query(db_models.Comment)
                .filter(db_models.Comment.id == comment_id)
                .delete(synchronize_session=False)
            )
        self.db.expire_all()
        return deleted

    def adjust_like_count(self, comment_id: int, delta: int) -> int:
        """
        Atomically add delta to a comment's like count. Does not commit.

        Returns:
            Number of rows updated
        """
        result = self.db.execute(
            update(db_models.Comment)
            .where(db_models.Comment.id == comment_id)
            .values(like_count=db_models.Comment.like_count + delta)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def get_like_count(self, comment_id: int) -> int:
        """Read a comment's like count straight from the table."""
        return (
            self.db.query(db_models.Comment.like_count)
            .filter(db_models.Comment.id == comment_id)
            .scalar()
            or 0
        )

    def set_like_count(self, comment_id: int, value: int) -> int:
        """Overwrite a comment's like count. Does not commit."""
        result = self.db.execute(
            update(db_models.Comment)
            .where(db_models.Comment.id == comment_id)
            .values(like_count=value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
