"""
Group service: creation, reads, membership lifecycle and member permissions.
"""

from datetime import datetime, timezone

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import build_pagination
from models.exceptions import (
    BusinessRuleException,
    GroupNotFoundException,
    InsufficientPermissionsException,
    MembershipBannedException,
    NotFoundException,
)
from repositories.group_repository import GroupMembershipRepository, GroupRepository

MANAGER_ROLES = (db_models.MembershipRole.ADMIN, db_models.MembershipRole.CREATOR)


def membership_to_schema(
    membership: db_models.GroupMembership,
) -> schemas.GroupMembership:
    granted = membership.permission_set
    return schemas.GroupMembership(
        group_id=membership.group_id,
        user_id=membership.user_id,
        status=membership.status,
        role=membership.role,
        permissions=[
            p.name
            for p in db_models.GroupPermission
            if p.name and p != db_models.GroupPermission.NONE and p in granted
        ],
        joined_at=membership.joined_at,
    )


class GroupService:
    """Service for group business logic."""

    @staticmethod
    def _get_group(db: Session, group_id: int) -> db_models.Group:
        group = GroupRepository(db).get_by_id(group_id)
        if group is None:
            raise GroupNotFoundException(f"Group with ID {group_id} not found")
        return group

    @staticmethod
    def create_group(
        db: Session, creator: db_models.User, data: schemas.GroupCreate
    ) -> db_models.Group:
        """
        Create a group with the creator as its first active member.

        Args:
            db: Database session
            creator: Authenticated user
            data: Group data

        Returns:
            Created group
        """
        group_repo = GroupRepository(db)
        group = db_models.Group(
            name=data.name.strip(),
            description=data.description,
            privacy=data.privacy,
            created_by=creator.id,
            member_count=1,
        )
        group_repo.add(group)
        group_repo.flush()

        GroupMembershipRepository(db).add(
            db_models.GroupMembership(
                group_id=group.id,
                user_id=creator.id,
                status=db_models.MembershipStatus.ACTIVE,
                role=db_models.MembershipRole.CREATOR,
                permissions=int(
                    db_models.GroupPermission.for_role(db_models.MembershipRole.CREATOR)
                ),
            )
        )
        group_repo.commit()
        group_repo.refresh(group)

        logger.info("Group created", group_id=group.id, creator_id=creator.id)
        return group

    @staticmethod
    def get_group(
        db: Session, viewer: db_models.User | None, group_id: int
    ) -> db_models.Group:
        """
        Get a group the viewer may read.

        Raises:
            GroupNotFoundException: Group missing
            AuthenticationException: Anonymous viewer on a non-public group
            VisibilityDeniedException: Viewer is neither member nor invitee
        """
        from services.visibility_service import VisibilityService

        group = GroupService._get_group(db, group_id)
        VisibilityService.ensure_can_view_group(db, viewer, group)
        return group

    @staticmethod
    def list_groups(
        db: Session, viewer: db_models.User | None, page: int = 1, limit: int = 20
    ) -> schemas.GroupList:
        """
        List the groups a viewer may read: every public group, plus the
        non-public groups the viewer is an active member of.
        """
        member_group_ids = (
            GroupMembershipRepository(db).get_active_group_ids(viewer.id)
            if viewer is not None
            else set()
        )
        group_repo = GroupRepository(db)
        groups = group_repo.list_readable(
            member_group_ids, skip=(page - 1) * limit, limit=limit
        )
        total = group_repo.count_readable(member_group_ids)
        return schemas.GroupList(
            items=[schemas.Group.model_validate(group) for group in groups],
            pagination=build_pagination(page, limit, total),
        )

    @staticmethod
    def join_group(
        db: Session, user: db_models.User, group_id: int
    ) -> schemas.GroupMembership:
        """
        Join a group.

        Public groups activate immediately; other groups create a pending
        request. Accepting an invitation or rejoining after leaving goes
        through the same path.

        Raises:
            GroupNotFoundException: Group missing
            MembershipBannedException: User is banned from the group
        """
        group = GroupService._get_group(db, group_id)
        member_repo = GroupMembershipRepository(db)
        group_repo = GroupRepository(db)

        membership = member_repo.get_membership(group_id, user.id)
        if membership is not None:
            if membership.status == db_models.MembershipStatus.BANNED:
                raise MembershipBannedException()
            if membership.status in (
                db_models.MembershipStatus.ACTIVE,
                db_models.MembershipStatus.PENDING,
            ):
                return membership_to_schema(membership)

        if (
            group.privacy == db_models.GroupPrivacy.PUBLIC
            or (
                membership is not None
                and membership.status == db_models.MembershipStatus.INVITED
            )
        ):
            new_status = db_models.MembershipStatus.ACTIVE
        else:
            new_status = db_models.MembershipStatus.PENDING

        now = datetime.now(timezone.utc)
        if membership is None:
            membership = db_models.GroupMembership(
                group_id=group_id,
                user_id=user.id,
                status=new_status,
                role=db_models.MembershipRole.MEMBER,
                permissions=int(
                    db_models.GroupPermission.for_role(db_models.MembershipRole.MEMBER)
                ),
                joined_at=now,
            )
            member_repo.add(membership)
        else:
            membership.status = new_status
            membership.role = db_models.MembershipRole.MEMBER
            membership.permissions = int(
                db_models.GroupPermission.for_role(db_models.MembershipRole.MEMBER)
            )
            membership.joined_at = now
            membership.left_at = None

        if new_status == db_models.MembershipStatus.ACTIVE:
            group_repo.adjust_member_count(group_id, 1)

        try:
            member_repo.commit()
        except IntegrityError:
            member_repo.rollback()
            return membership_to_schema(
                member_repo.get_membership(group_id, user.id)  # type: ignore[arg-type]
            )

        member_repo.refresh(membership)
        logger.info(
            "Group joined",
            group_id=group_id,
            user_id=user.id,
            status=new_status.value,
        )
        return membership_to_schema(membership)

    @staticmethod
    def leave_group(db: Session, user: db_models.User, group_id: int) -> None:
        """
        Leave a group.

        Raises:
            GroupNotFoundException: Group missing
            NotFoundException: User is not an active member
            BusinessRuleException: The creator cannot leave
        """
        GroupService._get_group(db, group_id)
        member_repo = GroupMembershipRepository(db)

        membership = member_repo.get_active_membership(group_id, user.id)
        if membership is None:
            raise NotFoundException("You are not a member of this group")
        if membership.role == db_models.MembershipRole.CREATOR:
            raise BusinessRuleException("The group creator cannot leave the group")

        membership.status = db_models.MembershipStatus.LEFT
        membership.left_at = datetime.now(timezone.utc)
        GroupRepository(db).adjust_member_count(group_id, -1)
        member_repo.commit()
        logger.info("Group left", group_id=group_id, user_id=user.id)

    @staticmethod
    def approve_member(
        db: Session, actor: db_models.User, group_id: int, user_id: int
    ) -> schemas.GroupMembership:
        """
        Approve a pending join request. Requires CAN_MODERATE.

        Raises:
            GroupNotFoundException: Group missing
            GroupPermissionDeniedException: Actor cannot moderate
            NotFoundException: No pending request
        """
        from services.visibility_service import VisibilityService

        GroupService._get_group(db, group_id)
        VisibilityService.ensure_group_permission(
            db, actor, group_id, db_models.GroupPermission.CAN_MODERATE
        )

        member_repo = GroupMembershipRepository(db)
        membership = member_repo.get_membership(group_id, user_id)
        if (
            membership is None
            or membership.status != db_models.MembershipStatus.PENDING
        ):
            raise NotFoundException("No pending join request for this user")

        membership.status = db_models.MembershipStatus.ACTIVE
        membership.joined_at = datetime.now(timezone.utc)
        GroupRepository(db).adjust_member_count(group_id, 1)
        member_repo.commit()
        member_repo.refresh(membership)
        return membership_to_schema(membership)

    @staticmethod
    def set_member_permissions(
        db: Session,
        actor: db_models.User,
        group_id: int,
        user_id: int,
        permission_names: list[str],
    ) -> schemas.GroupMembership:
        """
        Replace a member's permission set. Admins and the creator only.

        Raises:
            GroupNotFoundException: Group missing
            InsufficientPermissionsException: Actor is not an admin, or
                targets the creator
            NotFoundException: Target is not an active member
        """
        GroupService._get_group(db, group_id)
        member_repo = GroupMembershipRepository(db)

        actor_membership = member_repo.get_active_membership(group_id, actor.id)
        if actor_membership is None or actor_membership.role not in MANAGER_ROLES:
            raise InsufficientPermissionsException(
                "Only group admins can change permissions"
            )

        membership = member_repo.get_active_membership(group_id, user_id)
        if membership is None:
            raise NotFoundException("User is not an active member of this group")
        if (
            membership.role == db_models.MembershipRole.CREATOR
            and actor_membership.role != db_models.MembershipRole.CREATOR
        ):
            raise InsufficientPermissionsException(
                "The creator's permissions cannot be changed"
            )

        granted = db_models.GroupPermission.NONE
        for name in permission_names:
            granted |= db_models.GroupPermission[name]
        membership.permissions = int(granted)
        member_repo.update(membership)

        logger.info(
            "Member permissions updated",
            group_id=group_id,
            user_id=user_id,
            actor_id=actor.id,
            permissions=permission_names,
        )
        return membership_to_schema(membership)
