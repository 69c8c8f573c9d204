"""Tests for RelationshipService."""

import pytest

import repositories.db_models as db_models
from models.exceptions import (
    AuthenticationException,
    BusinessRuleException,
    NotFoundException,
    SelfFollowException,
    UserBlockedException,
    UserNotFoundException,
    VisibilityDeniedException,
)
from repositories.follow_repository import FollowRepository
from services.relationship_service import RelationshipService


class TestFollow:
    """Tests for follow and unfollow."""

    def test_follow_club_profile_is_accepted(
        self, db_session, test_user, other_user
    ) -> None:
        result = RelationshipService.follow(db_session, test_user, other_user.id)

        assert result.changed is True
        assert result.status == db_models.FollowStatus.ACCEPTED
        assert FollowRepository(db_session).is_following(test_user.id, other_user.id)

    def test_follow_private_profile_is_pending(
        self, db_session, make_user, test_user
    ) -> None:
        target = make_user("private_person", profile_visibility="private")

        result = RelationshipService.follow(db_session, test_user, target.id)

        assert result.status == db_models.FollowStatus.PENDING
        assert not FollowRepository(db_session).is_following(test_user.id, target.id)

    def test_no_self_follow(self, db_session, test_user) -> None:
        with pytest.raises(SelfFollowException):
            RelationshipService.follow(db_session, test_user, test_user.id)

    def test_follow_twice_keeps_one_edge(
        self, db_session, test_user, other_user
    ) -> None:
        RelationshipService.follow(db_session, test_user, other_user.id)
        again = RelationshipService.follow(db_session, test_user, other_user.id)

        assert again.changed is False
        assert db_session.query(db_models.Follow).count() == 1

    def test_follow_unknown_user(self, db_session, test_user) -> None:
        with pytest.raises(UserNotFoundException):
            RelationshipService.follow(db_session, test_user, 4040)

    def test_follow_inactive_user(self, db_session, make_user, test_user) -> None:
        gone = make_user("gone_user", is_active=False)
        with pytest.raises(UserNotFoundException):
            RelationshipService.follow(db_session, test_user, gone.id)

    def test_blocked_follower_is_refused(
        self, db_session, make_follow, test_user, other_user
    ) -> None:
        make_follow(other_user, test_user, db_models.FollowStatus.BLOCKED)
        with pytest.raises(UserBlockedException):
            RelationshipService.follow(db_session, test_user, other_user.id)

    def test_cannot_follow_someone_you_blocked(
        self, db_session, make_follow, test_user, other_user
    ) -> None:
        make_follow(test_user, other_user, db_models.FollowStatus.BLOCKED)
        with pytest.raises(BusinessRuleException):
            RelationshipService.follow(db_session, test_user, other_user.id)

    def test_unfollow(self, db_session, make_follow, test_user, other_user) -> None:
        make_follow(test_user, other_user)

        result = RelationshipService.unfollow(db_session, test_user, other_user.id)

        assert result.changed is True
        assert result.status is None
        assert FollowRepository(db_session).get_edge(test_user.id, other_user.id) is None

    def test_unfollow_leaves_block(
        self, db_session, make_follow, test_user, other_user
    ) -> None:
        make_follow(test_user, other_user, db_models.FollowStatus.BLOCKED)

        result = RelationshipService.unfollow(db_session, test_user, other_user.id)

        assert result.changed is False
        assert result.status == db_models.FollowStatus.BLOCKED


class TestAcceptFollow:
    def test_accept_pending(self, db_session, make_follow, test_user, other_user) -> None:
        make_follow(other_user, test_user, db_models.FollowStatus.PENDING)

        result = RelationshipService.accept_follow(db_session, test_user, other_user.id)

        assert result.status == db_models.FollowStatus.ACCEPTED
        assert FollowRepository(db_session).is_following(other_user.id, test_user.id)

    def test_accept_without_request(self, db_session, test_user, other_user) -> None:
        with pytest.raises(NotFoundException):
            RelationshipService.accept_follow(db_session, test_user, other_user.id)


class TestBlockAndMute:
    def test_block_removes_reverse_follow(
        self, db_session, make_follow, test_user, other_user
    ) -> None:
        make_follow(other_user, test_user)

        result = RelationshipService.block(db_session, test_user, other_user.id)

        repo = FollowRepository(db_session)
        assert result.status == db_models.FollowStatus.BLOCKED
        assert repo.get_edge(other_user.id, test_user.id) is None
        assert repo.is_blocked_between(other_user.id, test_user.id)

    def test_block_turns_follow_into_block(
        self, db_session, make_follow, test_user, other_user
    ) -> None:
        make_follow(test_user, other_user)

        RelationshipService.block(db_session, test_user, other_user.id)

        assert db_session.query(db_models.Follow).count() == 1

    def test_mutual_blocks_are_kept(
        self, db_session, make_follow, test_user, other_user
    ) -> None:
        make_follow(other_user, test_user, db_models.FollowStatus.BLOCKED)

        RelationshipService.block(db_session, test_user, other_user.id)

        assert db_session.query(db_models.Follow).count() == 2

    def test_block_is_idempotent(self, db_session, test_user, other_user) -> None:
        RelationshipService.block(db_session, test_user, other_user.id)
        again = RelationshipService.block(db_session, test_user, other_user.id)
        assert again.changed is False

    def test_unblock(self, db_session, test_user, other_user) -> None:
        RelationshipService.block(db_session, test_user, other_user.id)
        result = RelationshipService.unblock(db_session, test_user, other_user.id)
        assert result.changed is True
        assert not FollowRepository(db_session).is_blocked_between(
            test_user.id, other_user.id
        )

    def test_mute_replaces_follow(
        self, db_session, make_follow, test_user, other_user
    ) -> None:
        """A muted author no longer counts as followed."""
        make_follow(test_user, other_user)

        result = RelationshipService.mute(db_session, test_user, other_user.id)

        assert result.status == db_models.FollowStatus.MUTED
        assert not FollowRepository(db_session).is_following(test_user.id, other_user.id)

    def test_cannot_mute_self(self, db_session, test_user) -> None:
        with pytest.raises(SelfFollowException):
            RelationshipService.mute(db_session, test_user, test_user.id)


class TestGetProfile:
    def test_profile_counts(self, db_session, make_follow, test_user, other_user) -> None:
        make_follow(other_user, test_user)

        profile = RelationshipService.get_profile(db_session, other_user, test_user.id)

        assert profile.unique_id == "test_user"
        assert profile.followers_count == 1
        assert profile.following_count == 0

    def test_guest_denied_club_profile(
        self, db_session, test_user, guest_user
    ) -> None:
        with pytest.raises(VisibilityDeniedException) as exc_info:
            RelationshipService.get_profile(db_session, guest_user, test_user.id)
        assert exc_info.value.reason == "club-members-only"

    def test_anonymous_denied_club_profile(self, db_session, test_user) -> None:
        with pytest.raises(AuthenticationException):
            RelationshipService.get_profile(db_session, None, test_user.id)
