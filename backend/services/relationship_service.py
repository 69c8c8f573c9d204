"""
Relationship service: follows, blocks and mutes between users.

At most one edge exists per ordered (follower, following) pair; the unique
constraint resolves concurrent inserts and the loser treats the existing
edge as the outcome.
"""

from datetime import datetime, timezone
from typing import Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import (
    BusinessRuleException,
    NotFoundException,
    SelfFollowException,
    UserBlockedException,
    UserNotFoundException,
)
from repositories.follow_repository import FollowRepository
from repositories.user_repository import UserRepository
from services.visibility_service import VisibilityService


def _response(
    user_id: int,
    target_id: int,
    edge: Optional[db_models.Follow],
    changed: bool,
) -> schemas.RelationshipResponse:
    return schemas.RelationshipResponse(
        user_id=user_id,
        target_id=target_id,
        status=edge.status if edge else None,
        changed=changed,
    )


class RelationshipService:
    """Service for user relationship business logic."""

    @staticmethod
    def _get_target(db: Session, target_id: int) -> db_models.User:
        target = UserRepository(db).get_active_by_id(target_id)
        if target is None:
            raise UserNotFoundException(f"User with ID {target_id} not found")
        return target

    @staticmethod
    def follow(
        db: Session, follower: db_models.User, target_id: int
    ) -> schemas.RelationshipResponse:
        """
        Follow a user.

        Following someone you already follow (or have requested, or muted)
        is a successful no-op. Private profiles get a pending request.

        Raises:
            SelfFollowException: Target is the follower
            UserNotFoundException: Target missing or inactive
            UserBlockedException: Target has blocked the follower
            BusinessRuleException: Follower has blocked the target
        """
        if follower.id == target_id:
            raise SelfFollowException()

        target = RelationshipService._get_target(db, target_id)
        repo = FollowRepository(db)

        reverse = repo.get_edge(target_id, follower.id)
        if reverse is not None and reverse.status == db_models.FollowStatus.BLOCKED:
            raise UserBlockedException()

        existing = repo.get_edge(follower.id, target_id)
        if existing is not None:
            if existing.status == db_models.FollowStatus.BLOCKED:
                raise BusinessRuleException("Unblock this user before following")
            return _response(follower.id, target_id, existing, changed=False)

        now = datetime.now(timezone.utc)
        if target.profile_visibility == db_models.ProfileVisibility.PRIVATE.value:
            edge = db_models.Follow(
                follower_id=follower.id,
                following_id=target_id,
                status=db_models.FollowStatus.PENDING,
            )
        else:
            edge = db_models.Follow(
                follower_id=follower.id,
                following_id=target_id,
                status=db_models.FollowStatus.ACCEPTED,
                accepted_at=now,
            )

        try:
            repo.create(edge)
        except IntegrityError:
            # A concurrent request created the edge first
            repo.rollback()
            return _response(
                follower.id, target_id, repo.get_edge(follower.id, target_id), False
            )

        logger.info(
            "Follow created",
            follower_id=follower.id,
            following_id=target_id,
            status=edge.status.value,
        )
        return _response(follower.id, target_id, edge, changed=True)

    @staticmethod
    def unfollow(
        db: Session, follower: db_models.User, target_id: int
    ) -> schemas.RelationshipResponse:
        """
        Remove a follow, follow request or mute. Blocks are left untouched.
        """
        if follower.id == target_id:
            raise SelfFollowException()

        repo = FollowRepository(db)
        existing = repo.get_edge(follower.id, target_id)
        if existing is None or existing.status == db_models.FollowStatus.BLOCKED:
            return _response(follower.id, target_id, existing, changed=False)

        repo.delete(existing)
        logger.info("Follow removed", follower_id=follower.id, following_id=target_id)
        return _response(follower.id, target_id, None, changed=True)

    @staticmethod
    def accept_follow(
        db: Session, target: db_models.User, follower_id: int
    ) -> schemas.RelationshipResponse:
        """
        Accept a pending follow request addressed to `target`.

        Raises:
            NotFoundException: No pending request from follower_id
        """
        repo = FollowRepository(db)
        edge = repo.get_edge(follower_id, target.id)
        if edge is None or edge.status not in (
            db_models.FollowStatus.PENDING,
            db_models.FollowStatus.ACCEPTED,
        ):
            raise NotFoundException("No pending follow request from this user")
        if edge.status == db_models.FollowStatus.ACCEPTED:
            return _response(follower_id, target.id, edge, changed=False)

        edge.status = db_models.FollowStatus.ACCEPTED
        edge.accepted_at = datetime.now(timezone.utc)
        repo.update(edge)
        logger.info("Follow accepted", follower_id=follower_id, following_id=target.id)
        return _response(follower_id, target.id, edge, changed=True)

    @staticmethod
    def block(
        db: Session, blocker: db_models.User, target_id: int
    ) -> schemas.RelationshipResponse:
        """
        Block a user.

        Turns the blocker's edge into a block and removes the target's
        follow towards the blocker (a block the target placed stays).

        Raises:
            SelfFollowException: Target is the blocker
            UserNotFoundException: Target missing or inactive
        """
        if blocker.id == target_id:
            raise SelfFollowException("Users cannot block themselves")
        RelationshipService._get_target(db, target_id)

        repo = FollowRepository(db)
        now = datetime.now(timezone.utc)

        edge = repo.get_edge(blocker.id, target_id)
        changed = edge is None or edge.status != db_models.FollowStatus.BLOCKED
        if edge is None:
            edge = db_models.Follow(
                follower_id=blocker.id,
                following_id=target_id,
                status=db_models.FollowStatus.BLOCKED,
                blocked_at=now,
            )
            repo.add(edge)
        elif changed:
            edge.status = db_models.FollowStatus.BLOCKED
            edge.blocked_at = now

        reverse = repo.get_edge(target_id, blocker.id)
        if reverse is not None and reverse.status != db_models.FollowStatus.BLOCKED:
            repo.db.delete(reverse)

        try:
            repo.commit()
        except IntegrityError:
            # A concurrent request inserted the edge; converge on it
            repo.rollback()
            return RelationshipService.block(db, blocker, target_id)

        if changed:
            logger.info("User blocked", blocker_id=blocker.id, blocked_id=target_id)
        return _response(blocker.id, target_id, edge, changed=changed)

    @staticmethod
    def unblock(
        db: Session, blocker: db_models.User, target_id: int
    ) -> schemas.RelationshipResponse:
        """Remove a block; no-op when there is none."""
        repo = FollowRepository(db)
        edge = repo.get_edge(blocker.id, target_id)
        if edge is None or edge.status != db_models.FollowStatus.BLOCKED:
            return _response(blocker.id, target_id, edge, changed=False)

        repo.delete(edge)
        logger.info("User unblocked", blocker_id=blocker.id, blocked_id=target_id)
        return _response(blocker.id, target_id, None, changed=True)

    @staticmethod
    def mute(
        db: Session, muter: db_models.User, target_id: int
    ) -> schemas.RelationshipResponse:
        """
        Mute a user, keeping at most one edge for the pair.

        Raises:
            SelfFollowException: Target is the muter
            UserNotFoundException: Target missing or inactive
            BusinessRuleException: The muter has blocked the target
        """
        if muter.id == target_id:
            raise SelfFollowException("Users cannot mute themselves")
        RelationshipService._get_target(db, target_id)

        repo = FollowRepository(db)
        edge = repo.get_edge(muter.id, target_id)
        now = datetime.now(timezone.utc)

        if edge is not None:
            if edge.status == db_models.FollowStatus.BLOCKED:
                raise BusinessRuleException("Unblock this user before muting")
            if edge.status == db_models.FollowStatus.MUTED:
                return _response(muter.id, target_id, edge, changed=False)
            edge.status = db_models.FollowStatus.MUTED
            edge.muted_at = now
            repo.update(edge)
        else:
            edge = db_models.Follow(
                follower_id=muter.id,
                following_id=target_id,
                status=db_models.FollowStatus.MUTED,
                muted_at=now,
            )
            try:
                repo.create(edge)
            except IntegrityError:
                repo.rollback()
                return RelationshipService.mute(db, muter, target_id)

        logger.info("User muted", muter_id=muter.id, muted_id=target_id)
        return _response(muter.id, target_id, edge, changed=True)

    @staticmethod
    def get_profile(
        db: Session, viewer: Optional[db_models.User], target_id: int
    ) -> schemas.UserProfile:
        """
        Another user's profile, subject to their profile visibility.

        Raises:
            UserNotFoundException: Target missing or inactive
            AuthenticationException: Anonymous viewer on non-public profile
            VisibilityDeniedException: Denied by the profile rules
        """
        target = RelationshipService._get_target(db, target_id)
        VisibilityService.ensure_can_view_profile(db, viewer, target)

        repo = FollowRepository(db)
        return schemas.UserProfile(
            id=target.id,
            unique_id=target.unique_id,
            name=target.name,
            bio=target.bio,
            is_enrolled=target.is_enrolled,
            followers_count=repo.count_followers(target.id),
            following_count=repo.count_following(target.id),
            created_at=target.created_at,
        )
