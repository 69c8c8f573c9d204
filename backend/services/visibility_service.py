"""
Visibility service: loads relationship facts and applies the visibility rules.
"""

from typing import Any, Optional

from loguru import logger
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from helpers.visibility_rules import (
    DenialReason,
    RelationshipSnapshot,
    VisibilityDecision,
    can_view,
    can_view_group,
    can_view_profile,
    check_group_permission,
)
from models.exceptions import (
    AuthenticationException,
    GroupPermissionDeniedException,
    VisibilityDeniedException,
)
from repositories.follow_repository import FollowRepository
from repositories.group_repository import GroupMembershipRepository


class VisibilityService:
    """Service wrapping the pure visibility rules with repository lookups."""

    @staticmethod
    def build_snapshot(
        db: Session, viewer: Optional[db_models.User], author_id: int
    ) -> RelationshipSnapshot:
        """
        Collect the relationship facts between a viewer and an author.

        Args:
            db: Database session
            viewer: Viewing user, None when anonymous
            author_id: Content author or profile owner

        Returns:
            RelationshipSnapshot (empty for anonymous viewers)
        """
        if viewer is None:
            return RelationshipSnapshot()

        follow_repo = FollowRepository(db)
        return RelationshipSnapshot(
            follows_author=follow_repo.is_following(viewer.id, author_id),
            blocked=follow_repo.is_blocked_between(viewer.id, author_id),
            active_group_ids=frozenset(
                GroupMembershipRepository(db).get_active_group_ids(viewer.id)
            ),
        )

    @staticmethod
    def evaluate(
        db: Session, viewer: Optional[db_models.User], content: Any
    ) -> VisibilityDecision:
        """Evaluate read visibility of a content item without raising."""
        snapshot = VisibilityService.build_snapshot(db, viewer, content.author_id)
        return can_view(viewer, content, snapshot)

    @staticmethod
    def ensure_can_view(
        db: Session, viewer: Optional[db_models.User], content: Any
    ) -> None:
        """
        Raise unless the viewer may see the content item.

        Raises:
            AuthenticationException: Anonymous viewer on non-public content
            VisibilityDeniedException: Denied, with a stable reason code
        """
        decision = VisibilityService.evaluate(db, viewer, content)
        VisibilityService._raise_if_denied(decision)

    @staticmethod
    def ensure_can_view_profile(
        db: Session, viewer: Optional[db_models.User], target: db_models.User
    ) -> None:
        """
        Raise unless the viewer may see the target's profile.

        Raises:
            AuthenticationException: Anonymous viewer on non-public profile
            VisibilityDeniedException: Denied, with a stable reason code
        """
        snapshot = VisibilityService.build_snapshot(db, viewer, target.id)
        decision = can_view_profile(viewer, target, snapshot)
        VisibilityService._raise_if_denied(decision)

    @staticmethod
    def ensure_can_view_group(
        db: Session, viewer: Optional[db_models.User], group: db_models.Group
    ) -> None:
        """
        Raise unless the viewer may see the group's page.

        Raises:
            AuthenticationException: Anonymous viewer on a non-public group
            VisibilityDeniedException: Not a member or invitee
        """
        membership = (
            GroupMembershipRepository(db).get_membership(group.id, viewer.id)
            if viewer is not None
            else None
        )
        decision = can_view_group(
            viewer, group, membership.status if membership is not None else None
        )
        VisibilityService._raise_if_denied(decision)

    @staticmethod
    def filter_visible(
        db: Session, viewer: Optional[db_models.User], items: list[Any]
    ) -> list[Any]:
        """
        Keep only the items the viewer may see.

        Relationship facts are loaded once per page instead of once per item.
        """
        if not items:
            return []

        if viewer is None:
            return [
                item
                for item in items
                if can_view(None, item, RelationshipSnapshot()).allowed
            ]

        author_ids = list({item.author_id for item in items})
        follow_repo = FollowRepository(db)
        followed = follow_repo.get_following_ids(viewer.id, author_ids)
        blocked = follow_repo.get_blocked_ids(viewer.id, author_ids)
        groups = frozenset(GroupMembershipRepository(db).get_active_group_ids(viewer.id))

        visible = []
        for item in items:
            snapshot = RelationshipSnapshot(
                follows_author=item.author_id in followed,
                blocked=item.author_id in blocked,
                active_group_ids=groups,
            )
            if can_view(viewer, item, snapshot).allowed:
                visible.append(item)
        return visible

    @staticmethod
    def ensure_group_permission(
        db: Session,
        user: db_models.User,
        group_id: int,
        permission: db_models.GroupPermission,
    ) -> None:
        """
        Raise unless the user holds a group permission.

        Raises:
            GroupPermissionDeniedException: No active membership or missing bit
        """
        membership = GroupMembershipRepository(db).get_membership(group_id, user.id)
        if not check_group_permission(membership, permission):
            logger.info(
                "Group permission denied",
                user_id=user.id,
                group_id=group_id,
                permission=permission.name,
            )
            raise GroupPermissionDeniedException(str(permission.name))

    @staticmethod
    def _raise_if_denied(decision: VisibilityDecision) -> None:
        if decision.allowed:
            return
        if decision.reason == DenialReason.UNAUTHENTICATED:
            raise AuthenticationException(str(decision.message))
        raise VisibilityDeniedException(
            reason=decision.reason.value,  # type: ignore[union-attr]
            message=str(decision.message),
        )
