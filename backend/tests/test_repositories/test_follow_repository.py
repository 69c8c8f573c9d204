"""Tests for FollowRepository."""

import pytest
from sqlalchemy.exc import IntegrityError

import repositories.db_models as db_models
from repositories.follow_repository import FollowRepository


class TestFollowRepository:
    """Test cases for FollowRepository."""

    def test_unique_edge_per_pair(self, db_session, make_follow, test_user, other_user):
        make_follow(test_user, other_user)

        with pytest.raises(IntegrityError):
            make_follow(test_user, other_user, db_models.FollowStatus.MUTED)
        db_session.rollback()

    def test_self_edge_rejected(self, db_session, test_user):
        """The table refuses an edge from a user to themselves."""
        db_session.add(
            db_models.Follow(
                follower_id=test_user.id,
                following_id=test_user.id,
                status=db_models.FollowStatus.ACCEPTED,
            )
        )
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_is_following_only_when_accepted(
        self, db_session, make_follow, make_user, test_user, other_user
    ):
        pending_target = make_user("pending_target")
        make_follow(test_user, other_user)
        make_follow(test_user, pending_target, db_models.FollowStatus.PENDING)
        repo = FollowRepository(db_session)

        assert repo.is_following(test_user.id, other_user.id)
        assert not repo.is_following(test_user.id, pending_target.id)
        assert not repo.is_following(other_user.id, test_user.id)

    def test_blocks_are_symmetric(self, db_session, make_follow, test_user, other_user):
        make_follow(other_user, test_user, db_models.FollowStatus.BLOCKED)
        repo = FollowRepository(db_session)

        assert repo.is_blocked_between(test_user.id, other_user.id)
        assert repo.is_blocked_between(other_user.id, test_user.id)
        assert repo.get_blocked_ids(test_user.id, [other_user.id]) == {other_user.id}

    def test_batch_following_ids(
        self, db_session, make_follow, make_user, test_user, other_user
    ):
        muted = make_user("muted_author")
        make_follow(test_user, other_user)
        make_follow(test_user, muted, db_models.FollowStatus.MUTED)

        ids = FollowRepository(db_session).get_following_ids(
            test_user.id, [other_user.id, muted.id]
        )

        assert ids == {other_user.id}

    def test_counts_ignore_non_accepted(
        self, db_session, make_follow, make_user, test_user, other_user
    ):
        requester = make_user("requester")
        make_follow(other_user, test_user)
        make_follow(requester, test_user, db_models.FollowStatus.PENDING)
        repo = FollowRepository(db_session)

        assert repo.count_followers(test_user.id) == 1
        assert repo.count_following(other_user.id) == 1

