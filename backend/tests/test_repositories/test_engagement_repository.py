"""Tests for EngagementRepository and EngagementEventRepository."""

import pytest

from repositories.engagement_repository import (
    EngagementEventRepository,
    EngagementRepository,
)


@pytest.fixture
def ledger(db_session) -> EngagementRepository:
    return EngagementRepository(db_session)


class TestEnsureRow:
    def test_inserts_once(self, ledger, test_user, public_news) -> None:
        first = ledger.ensure_row(test_user.id, "News", public_news.id, "like")
        second = ledger.ensure_row(test_user.id, "News", public_news.id, "like")
        ledger.commit()

        assert first is True
        assert second is False
        assert ledger.count() == 1
        assert ledger.is_active(test_user.id, "News", public_news.id, "like") is False

    def test_actions_are_separate_keys(self, ledger, test_user, public_news) -> None:
        ledger.ensure_row(test_user.id, "News", public_news.id, "like")
        ledger.ensure_row(test_user.id, "News", public_news.id, "save")
        ledger.commit()

        assert ledger.count() == 2


class TestSetActive:
    def test_only_opposite_state_matches(
        self, ledger, test_user, public_news
    ) -> None:
        ledger.ensure_row(test_user.id, "News", public_news.id, "like")

        assert ledger.set_active(test_user.id, "News", public_news.id, "like", True)
        assert not ledger.set_active(test_user.id, "News", public_news.id, "like", True)
        assert ledger.set_active(test_user.id, "News", public_news.id, "like", False)
        ledger.commit()

    def test_missing_row_changes_nothing(self, ledger, test_user) -> None:
        assert ledger.set_active(test_user.id, "News", 1, "like", True) is False

    def test_activation_timestamp(self, ledger, test_user, public_news) -> None:
        ledger.ensure_row(test_user.id, "News", public_news.id, "save")
        ledger.set_active(test_user.id, "News", public_news.id, "save", True)
        ledger.commit()

        row = ledger.get_by_key(test_user.id, "News", public_news.id, "save")
        assert row.active is True
        assert row.activated_at is not None


class TestCounts:
    def test_count_active_by_action(
        self, ledger, test_user, other_user, public_news
    ) -> None:
        for user in (test_user, other_user):
            ledger.ensure_row(user.id, "News", public_news.id, "like")
            ledger.set_active(user.id, "News", public_news.id, "like", True)
        ledger.ensure_row(test_user.id, "News", public_news.id, "save")
        ledger.commit()

        counts = ledger.count_active_by_action("News", public_news.id)

        assert counts == {"like": 2}

    def test_user_flags(self, ledger, test_user, public_news) -> None:
        ledger.ensure_row(test_user.id, "News", public_news.id, "like")
        ledger.set_active(test_user.id, "News", public_news.id, "like", True)
        ledger.ensure_row(test_user.id, "News", public_news.id, "save")
        ledger.commit()

        assert ledger.get_user_flags(test_user.id, "News", public_news.id) == {
            "like": True,
            "save": False,
        }
        assert ledger.get_user_flags_batch(test_user.id, "News", []) == {}


class TestOutbox:
    def test_record_and_mark_processed(self, db_session, test_user) -> None:
        repo = EngagementEventRepository(db_session)
        repo.record(test_user.id, "News", 1, "like", 1)
        repo.record(test_user.id, "News", 1, "like", -1)
        repo.commit()

        events = repo.get_unprocessed()
        assert [e.delta for e in events] == [1, -1]

        assert repo.mark_processed([events[0].id]) == 1
        repo.commit()
        assert repo.count_unprocessed() == 1
        assert repo.mark_processed([]) == 0
