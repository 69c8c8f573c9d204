"""Tests for ReconciliationService."""

import repositories.db_models as db_models
from repositories.engagement_repository import EngagementEventRepository
from services.comment_like_service import CommentLikeService
from services.comment_service import CommentService
from services.engagement_service import EngagementService
from services.reconciliation_service import ReconciliationService


def _corrupt(db_session, item, **counters) -> None:
    for name, value in counters.items():
        setattr(item, name, value)
    db_session.commit()


class TestReconcileContent:
    def test_consistent_item_is_untouched(
        self, db_session, other_user, public_news
    ) -> None:
        EngagementService.toggle(db_session, other_user, "News", public_news.id, "like")

        drift = ReconciliationService.reconcile_content(
            db_session, "News", public_news.id
        )

        assert drift == {}

    def test_drift_is_corrected(self, db_session, other_user, public_news) -> None:
        EngagementService.toggle(db_session, other_user, "News", public_news.id, "like")
        CommentService.create_comment(
            db_session, other_user, "News", public_news.id, "Counted"
        )
        _corrupt(db_session, public_news, likes=7, comments=0)

        drift = ReconciliationService.reconcile_content(
            db_session, "News", public_news.id
        )
        db_session.commit()

        db_session.refresh(public_news)
        assert drift == {"likes": (7, 1), "comments": (0, 1)}
        assert public_news.likes == 1
        assert public_news.comments == 1

    def test_resource_views_are_reconciled(
        self, db_session, make_content, test_user, other_user
    ) -> None:
        resource = make_content(test_user, db_models.ContentType.RESOURCE)
        EngagementService.record_view(db_session, other_user, "Resource", resource.id)
        _corrupt(db_session, resource, views=0)

        drift = ReconciliationService.reconcile_content(
            db_session, "Resource", resource.id
        )

        assert drift == {"views": (0, 1)}

    def test_unknown_type_and_missing_item(self, db_session) -> None:
        assert ReconciliationService.reconcile_content(db_session, "Poll", 1) == {}
        assert ReconciliationService.reconcile_content(db_session, "News", 999) == {}


class TestProcessOutbox:
    def test_consumes_events(self, db_session, other_user, public_news) -> None:
        EngagementService.toggle(db_session, other_user, "News", public_news.id, "like")
        EngagementService.toggle(db_session, other_user, "News", public_news.id, "save")
        _corrupt(db_session, public_news, saves=3)

        report = ReconciliationService.process_outbox(db_session)

        db_session.refresh(public_news)
        assert report.events_processed == 2
        assert report.items_checked == 1
        assert report.items_corrected == 1
        assert public_news.saves == 1
        assert EngagementEventRepository(db_session).count_unprocessed() == 0

    def test_empty_outbox(self, db_session) -> None:
        report = ReconciliationService.process_outbox(db_session)
        assert report.events_processed == 0
        assert report.items_checked == 0

    def test_comment_like_drift(
        self, db_session, test_user, other_user, public_news
    ) -> None:
        comment = CommentService.create_comment(
            db_session, other_user, "News", public_news.id, "Likeable"
        )
        CommentLikeService.toggle_like(db_session, comment.id, test_user)
        stored = db_session.get(db_models.Comment, comment.id)
        stored.like_count = 5
        db_session.commit()

        report = ReconciliationService.process_outbox(db_session)

        db_session.refresh(stored)
        assert report.items_corrected == 1
        assert stored.like_count == 1

    def test_batch_size_limits_consumption(
        self, db_session, make_user, public_news
    ) -> None:
        for i in range(3):
            user = make_user(f"fan_{i}")
            EngagementService.toggle(db_session, user, "News", public_news.id, "like")

        report = ReconciliationService.process_outbox(db_session, batch_size=2)

        assert report.events_processed == 2
        assert EngagementEventRepository(db_session).count_unprocessed() == 1


class TestReconcileAll:
    def test_scans_every_type(
        self, db_session, make_content, test_user, public_news
    ) -> None:
        post = make_content(test_user, db_models.ContentType.SOCIAL_POST)
        _corrupt(db_session, public_news, likes=2)
        _corrupt(db_session, post, shares=4)

        report = ReconciliationService.reconcile_all(db_session, batch_size=1)

        db_session.refresh(public_news)
        db_session.refresh(post)
        assert report.items_checked == 2
        assert report.items_corrected == 2
        assert public_news.likes == 0
        assert post.shares == 0
