"""
Repository for groups and group memberships.
"""

from typing import Optional

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository


class GroupRepository(BaseRepository[db_models.Group]):
    """Repository for Group entity database operations."""

    def __init__(self, db: Session):
        """
        Initialize group repository.

        Args:
            db: Database session
        """
        super().__init__(db_models.Group, db)

    def adjust_member_count(self, group_id: int, delta: int) -> None:
        """
        Atomically add delta to the denormalized member count.

        Does not commit.

        Args:
            group_id: Group ID
            delta: Signed change
        """
        self.db.execute(
            update(db_models.Group)
            .where(db_models.Group.id == group_id)
            .values(member_count=db_models.Group.member_count + delta)
        )


    def _readable_query(self, member_group_ids: set[int]):
        query = self.db.query(db_models.Group)
        if member_group_ids:
            return query.filter(
                or_(
                    db_models.Group.privacy == db_models.GroupPrivacy.PUBLIC,
                    db_models.Group.id.in_(member_group_ids),
                )
            )
        return query.filter(db_models.Group.privacy == db_models.GroupPrivacy.PUBLIC)

    def list_readable(
        self, member_group_ids: set[int], skip: int = 0, limit: int = 20
    ) -> list[db_models.Group]:
        """
        List public groups plus the given member groups, newest first.

        Args:
            member_group_ids: Groups the viewer may read regardless of privacy
            skip: Number of groups to skip
            limit: Maximum number of groups to return

        Returns:
            List of groups
        """
        return (
            self._readable_query(member_group_ids)
            .order_by(db_models.Group.created_at.desc(), db_models.Group.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_readable(self, member_group_ids: set[int]) -> int:
        return self._readable_query(member_group_ids).count()

class GroupMembershipRepository(BaseRepository[db_models.GroupMembership]):
    """Repository for GroupMembership entity database operations."""

    def __init__(self, db: Session):
        """
        Initialize membership repository.

        Args:
            db: Database session
        """
        super().__init__(db_models.GroupMembership, db)

    def get_membership(
        self, group_id: int, user_id: int
    ) -> Optional[db_models.GroupMembership]:
        """
        Get a user's membership in a group, whatever its status.

        Args:
            group_id: Group ID
            user_id: User ID

        Returns:
            Membership if found, None otherwise
        """
        return (
            self.db.query(db_models.GroupMembership)
            .filter(
                db_models.GroupMembership.group_id == group_id,
                db_models.GroupMembership.user_id == user_id,
            )
            .first()
        )

    def get_active_membership(
        self, group_id: int, user_id: int
    ) -> Optional[db_models.GroupMembership]:
        """
        Get a user's membership only when it is active.

        Args:
            group_id: Group ID
            user_id: User ID

        Returns:
            Active membership if found, None otherwise
        """
        return (
            self.db.query(db_models.GroupMembership)
            .filter(
                db_models.GroupMembership.group_id == group_id,
                db_models.GroupMembership.user_id == user_id,
                db_models.GroupMembership.status
                == db_models.MembershipStatus.ACTIVE,
            )
            .first()
        )

    def get_active_group_ids(self, user_id: int) -> set[int]:
        """
        Get IDs of every group the user is an active member of.

        Args:
            user_id: User ID

        Returns:
            Set of group IDs
        """
        rows = (
            self.db.query(db_models.GroupMembership.group_id)
            .filter(
                db_models.GroupMembership.user_id == user_id,
                db_models.GroupMembership.status
                == db_models.MembershipStatus.ACTIVE,
            )
            .all()
        )
        return {row.group_id for row in rows}

