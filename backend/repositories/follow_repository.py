"""
Repository for follow/block/mute relationship edges.
"""

from typing import List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository


class FollowRepository(BaseRepository[db_models.Follow]):
    """Repository for directed relationship edges between users."""

    def __init__(self, db: Session):
        """
        Initialize follow repository.

        Args:
            db: Database session
        """
        super().__init__(db_models.Follow, db)

    def get_edge(
        self, follower_id: int, following_id: int
    ) -> Optional[db_models.Follow]:
        """
        Get the edge follower -> following, if any.

        Args:
            follower_id: User the edge starts from
            following_id: User the edge points to

        Returns:
            Follow edge if found, None otherwise
        """
        return (
            self.db.query(db_models.Follow)
            .filter(
                db_models.Follow.follower_id == follower_id,
                db_models.Follow.following_id == following_id,
            )
            .first()
        )

    def is_following(self, follower_id: int, following_id: int) -> bool:
        """
        Check for an accepted follow edge follower -> following.

        Args:
            follower_id: Viewer
            following_id: Author

        Returns:
            True if the edge exists and is accepted
        """
        return (
            self.db.query(db_models.Follow.id)
            .filter(
                db_models.Follow.follower_id == follower_id,
                db_models.Follow.following_id == following_id,
                db_models.Follow.status == db_models.FollowStatus.ACCEPTED,
            )
            .first()
            is not None
        )

    def is_blocked_between(self, user_a: int, user_b: int) -> bool:
        """
        Check for a block edge in either direction.

        Args:
            user_a: First user
            user_b: Second user

        Returns:
            True if either user has blocked the other
        """
        return (
            self.db.query(db_models.Follow.id)
            .filter(
                db_models.Follow.status == db_models.FollowStatus.BLOCKED,
                or_(
                    and_(
                        db_models.Follow.follower_id == user_a,
                        db_models.Follow.following_id == user_b,
                    ),
                    and_(
                        db_models.Follow.follower_id == user_b,
                        db_models.Follow.following_id == user_a,
                    ),
                ),
            )
            .first()
            is not None
        )

    def get_following_ids(
        self, follower_id: int, author_ids: List[int]
    ) -> set[int]:
        """
        Get the subset of authors the user follows with an accepted edge.

        Args:
            follower_id: Viewer
            author_ids: Candidate authors

        Returns:
            Set of followed author IDs
        """
        if not author_ids:
            return set()
        rows = (
            self.db.query(db_models.Follow.following_id)
            .filter(
                db_models.Follow.follower_id == follower_id,
                db_models.Follow.following_id.in_(author_ids),
                db_models.Follow.status == db_models.FollowStatus.ACCEPTED,
            )
            .all()
        )
        return {row.following_id for row in rows}

    def get_blocked_ids(self, user_id: int, other_ids: List[int]) -> set[int]:
        """
        Get the subset of users with a block edge towards or from user_id.

        Args:
            user_id: Viewer
            other_ids: Candidate users

        Returns:
            Set of user IDs separated from user_id by a block
        """
        if not other_ids:
            return set()
        rows = (
            self.db.query(db_models.Follow.follower_id, db_models.Follow.following_id)
            .filter(
                db_models.Follow.status == db_models.FollowStatus.BLOCKED,
                or_(
                    and_(
                        db_models.Follow.follower_id == user_id,
                        db_models.Follow.following_id.in_(other_ids),
                    ),
                    and_(
                        db_models.Follow.following_id == user_id,
                        db_models.Follow.follower_id.in_(other_ids),
                    ),
                ),
            )
            .all()
        )
        return {
            row.following_id if row.follower_id == user_id else row.follower_id
            for row in rows
        }

    def count_followers(self, user_id: int) -> int:
        """Count accepted followers of a user."""
        return (
            self.db.query(db_models.Follow)
            .filter(
                db_models.Follow.following_id == user_id,
                db_models.Follow.status == db_models.FollowStatus.ACCEPTED,
            )
            .count()
        )

    def count_following(self, user_id: int) -> int:
        """Count users the user follows with an accepted edge."""
        return (
            self.db.query(db_models.Follow)
            .filter(
                db_models.Follow.follower_id == user_id,
                db_models.Follow.status == db_models.FollowStatus.ACCEPTED,
            )
            .count()
        )
