"""Tests for EngagementService."""

import random
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

import repositories.db_models as db_models
from models.exceptions import (
    AuthenticationException,
    ContentNotFoundException,
    InvalidActionTypeException,
    InvalidContentTypeException,
    UnavailableException,
    VisibilityDeniedException,
)
from repositories.engagement_repository import (
    EngagementEventRepository,
    EngagementRepository,
)
from services.engagement_service import EngagementService


def _likes(db_session, item) -> int:
    db_session.refresh(item)
    return item.likes


class TestToggle:
    """Tests for toggling likes and saves."""

    def test_first_toggle_likes(self, db_session, other_user, public_news) -> None:
        """Toggling an absent key activates it and bumps the counter."""
        result = EngagementService.toggle(
            db_session, other_user, "News", public_news.id, "like"
        )

        assert result.active is True
        assert result.changed is True
        assert result.count == 1
        assert _likes(db_session, public_news) == 1

    def test_toggle_round_trip_restores_state(
        self, db_session, other_user, public_news
    ) -> None:
        """Two toggles leave state and counter where they started."""
        EngagementService.toggle(db_session, other_user, "News", public_news.id, "like")
        result = EngagementService.toggle(
            db_session, other_user, "News", public_news.id, "like"
        )

        assert result.active is False
        assert result.count == 0
        assert _likes(db_session, public_news) == 0
        assert not EngagementRepository(db_session).is_active(
            other_user.id, "News", public_news.id, "like"
        )

    def test_save_toggles_saves_counter(
        self, db_session, other_user, public_news
    ) -> None:
        result = EngagementService.toggle(
            db_session, other_user, "News", public_news.id, "save"
        )

        db_session.refresh(public_news)
        assert result.active is True
        assert public_news.saves == 1
        assert public_news.likes == 0

    def test_share_cannot_toggle(self, db_session, other_user, public_news) -> None:
        with pytest.raises(InvalidActionTypeException):
            EngagementService.toggle(
                db_session, other_user, "News", public_news.id, "share"
            )

    def test_counter_matches_ledger_after_random_toggles(
        self, db_session, make_user, test_user, public_news
    ) -> None:
        """Any sequence of toggles keeps the counter equal to active rows."""
        users = [make_user(f"member_{i}") for i in range(4)]
        rng = random.Random(7)

        for _ in range(30):
            user = rng.choice(users)
            EngagementService.toggle(db_session, user, "News", public_news.id, "like")

        active = EngagementRepository(db_session).count_active_by_action(
            "News", public_news.id
        )
        assert _likes(db_session, public_news) == active.get("like", 0)


class TestSetEngagement:
    """Tests for explicit target states."""

    def test_same_target_twice_changes_once(
        self, db_session, other_user, public_news
    ) -> None:
        """A retried request with the same target is a no-op."""
        first = EngagementService.set_engagement(
            db_session, other_user, "News", public_news.id, "like", True
        )
        second = EngagementService.set_engagement(
            db_session, other_user, "News", public_news.id, "like", True
        )

        assert first.changed is True
        assert second.changed is False
        assert second.count == 1
        assert EngagementEventRepository(db_session).count_unprocessed() == 1

    def test_unset_absent_key_is_noop(
        self, db_session, other_user, public_news
    ) -> None:
        result = EngagementService.set_engagement(
            db_session, other_user, "News", public_news.id, "like", False
        )

        assert result.changed is False
        assert result.count == 0
        assert _likes(db_session, public_news) == 0

    def test_racing_toggles_converge(
        self, db_session, other_user, public_news
    ) -> None:
        """
        Two toggles that both read the key as inactive both target active;
        only the first one changes state.
        """
        with patch.object(EngagementRepository, "is_active", return_value=False):
            first = EngagementService.toggle(
                db_session, other_user, "News", public_news.id, "like"
            )
            second = EngagementService.toggle(
                db_session, other_user, "News", public_news.id, "like"
            )

        assert first.changed is True
        assert second.changed is False
        assert second.active is True
        assert _likes(db_session, public_news) == 1
        assert EngagementEventRepository(db_session).count_unprocessed() == 1

    def test_unknown_content_type(self, db_session, other_user) -> None:
        with pytest.raises(InvalidContentTypeException):
            EngagementService.set_engagement(
                db_session, other_user, "Poll", 1, "like", True
            )

    def test_unknown_action(self, db_session, other_user, public_news) -> None:
        with pytest.raises(InvalidActionTypeException):
            EngagementService.set_engagement(
                db_session, other_user, "News", public_news.id, "upvote", True
            )

    def test_missing_content(self, db_session, other_user) -> None:
        with pytest.raises(ContentNotFoundException):
            EngagementService.set_engagement(
                db_session, other_user, "News", 9999, "like", True
            )

    def test_deleted_content(self, db_session, other_user, public_news) -> None:
        public_news.status = db_models.ContentStatus.DELETED
        db_session.commit()

        with pytest.raises(ContentNotFoundException):
            EngagementService.set_engagement(
                db_session, other_user, "News", public_news.id, "like", True
            )

    def test_invisible_content_is_denied(
        self, db_session, make_content, test_user, guest_user
    ) -> None:
        """A guest cannot engage with club-members content."""
        item = make_content(test_user, visibility="club-members")

        with pytest.raises(VisibilityDeniedException) as exc_info:
            EngagementService.set_engagement(
                db_session, guest_user, "News", item.id, "like", True
            )

        assert exc_info.value.reason == "club-members-only"
        assert EngagementRepository(db_session).count() == 0

    def test_storage_failure_rolls_back(
        self, db_session, other_user, public_news
    ) -> None:
        """A failed write surfaces as unavailable and leaves nothing behind."""
        with patch.object(
            EngagementRepository,
            "set_active",
            side_effect=OperationalError("UPDATE", {}, Exception("locked")),
        ):
            with pytest.raises(UnavailableException):
                EngagementService.set_engagement(
                    db_session, other_user, "News", public_news.id, "like", True
                )

        assert _likes(db_session, public_news) == 0
        assert EngagementEventRepository(db_session).count_unprocessed() == 0


class TestShareAndView:
    """Shares and views are recorded once per user."""

    def test_share_counts_once(self, db_session, other_user, public_news) -> None:
        EngagementService.record_share(db_session, other_user, "News", public_news.id)
        result = EngagementService.record_share(
            db_session, other_user, "News", public_news.id
        )

        db_session.refresh(public_news)
        assert result.changed is False
        assert public_news.shares == 1

    def test_resource_view_bumps_views(
        self, db_session, make_content, test_user, other_user
    ) -> None:
        resource = make_content(test_user, db_models.ContentType.RESOURCE)

        result = EngagementService.record_view(
            db_session, other_user, "Resource", resource.id
        )

        db_session.refresh(resource)
        assert result.count == 1
        assert resource.views == 1

    def test_news_view_counts_from_ledger(
        self, db_session, other_user, public_news
    ) -> None:
        """Types without a views column report the ledger count."""
        result = EngagementService.record_view(
            db_session, other_user, "News", public_news.id
        )

        assert result.changed is True
        assert result.count == 1

    def test_engage_rejects_undoing_share(
        self, db_session, other_user, public_news
    ) -> None:
        with pytest.raises(InvalidActionTypeException):
            EngagementService.engage(
                db_session, other_user, "share", "News", public_news.id, desired=False
            )


class TestEngage:
    """Tests for the single engagement entry point."""

    def test_no_desired_state_toggles(
        self, db_session, other_user, public_news
    ) -> None:
        first = EngagementService.engage(
            db_session, other_user, "like", "News", public_news.id
        )
        second = EngagementService.engage(
            db_session, other_user, "like", "News", public_news.id
        )

        assert first.active is True
        assert second.active is False

    def test_comment_like_is_routed(
        self, db_session, test_user, other_user, public_news
    ) -> None:
        comment = db_models.Comment(
            content_type="News",
            content_id=public_news.id,
            user_id=test_user.id,
            text="Nice write-up",
        )
        db_session.add(comment)
        db_session.commit()

        result = EngagementService.engage(
            db_session, other_user, "like", "Comment", comment.id
        )

        assert result.active is True
        assert result.count == 1

    def test_comment_save_rejected(self, db_session, other_user) -> None:
        with pytest.raises(InvalidActionTypeException):
            EngagementService.engage(db_session, other_user, "save", "Comment", 1)


class TestReads:
    """Tests for engagement reads."""

    def test_absent_flags_read_false(
        self, db_session, other_user, public_news
    ) -> None:
        flags = EngagementService.get_user_engagement(
            db_session, other_user, "News", public_news.id
        )

        assert flags.liked is False
        assert flags.saved is False

    def test_batch_flags(
        self, db_session, make_content, test_user, other_user
    ) -> None:
        first = make_content(test_user, title="First")
        second = make_content(test_user, title="Second")
        EngagementService.toggle(db_session, other_user, "News", first.id, "save")

        result = EngagementService.get_user_engagements(
            db_session, other_user, "News", [first.id, second.id]
        )

        assert result.engagements[first.id].saved is True
        assert result.engagements[second.id].saved is False

    def test_stats_include_ledger(
        self, db_session, other_user, public_news
    ) -> None:
        EngagementService.toggle(db_session, other_user, "News", public_news.id, "like")

        stats = EngagementService.get_engagement_stats(
            db_session, None, "News", public_news.id
        )

        assert stats.likes == 1
        assert stats.ledger["like"] == 1

    def test_stats_anonymous_on_private_content(
        self, db_session, make_content, test_user
    ) -> None:
        item = make_content(test_user, visibility="club-members")

        with pytest.raises(AuthenticationException):
            EngagementService.get_engagement_stats(db_session, None, "News", item.id)

    def test_list_liked_content_skips_hidden_items(
        self, db_session, make_content, test_user, other_user
    ) -> None:
        visible = make_content(test_user, title="Visible")
        hidden = make_content(test_user, title="Hidden")
        EngagementService.toggle(db_session, other_user, "News", visible.id, "like")
        EngagementService.toggle(db_session, other_user, "News", hidden.id, "like")
        hidden.visibility = "private"
        db_session.commit()

        result = EngagementService.list_user_content(
            db_session, other_user, "News", "like"
        )

        assert [item.id for item in result.items] == [visible.id]
        assert result.pagination.total == 2

    def test_list_rejects_views(self, db_session, other_user) -> None:
        with pytest.raises(InvalidActionTypeException):
            EngagementService.list_user_content(db_session, other_user, "News", "view")
