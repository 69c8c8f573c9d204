"""Tests for the counter reconciliation task."""

from sqlalchemy.orm import Session

import repositories.db_models as db_models
from repositories.engagement_repository import EngagementEventRepository
from services.engagement_service import EngagementService
from tasks.reconcile_counters import reconcile_counters


class TestDrainOutbox:
    """Tests for the default outbox-draining mode."""

    def test_drains_all_batches(
        self,
        db_session: Session,
        other_user: db_models.User,
        public_news: db_models.News,
    ) -> None:
        """Events are consumed across batches until the outbox is empty."""
        for action in ("like", "save"):
            EngagementService.toggle(
                db_session, other_user, "News", public_news.id, action
            )
        EngagementService.record_share(db_session, other_user, "News", public_news.id)

        result = reconcile_counters(db=db_session, batch_size=1)

        assert result["events_processed"] == 3
        assert result["items_corrected"] == 0
        assert EngagementEventRepository(db_session).count_unprocessed() == 0

    def test_repairs_drift_found_through_events(
        self,
        db_session: Session,
        other_user: db_models.User,
        public_news: db_models.News,
    ) -> None:
        EngagementService.toggle(db_session, other_user, "News", public_news.id, "like")
        public_news.likes = 12
        db_session.commit()

        result = reconcile_counters(db=db_session)

        db_session.refresh(public_news)
        assert result["items_corrected"] == 1
        assert public_news.likes == 1

    def test_empty_outbox(self, db_session: Session) -> None:
        assert reconcile_counters(db=db_session) == {
            "events_processed": 0,
            "items_checked": 0,
            "items_corrected": 0,
        }


class TestFullReconciliation:
    """Tests for --full mode."""

    def test_checks_items_without_events(
        self,
        db_session: Session,
        make_content,
        test_user: db_models.User,
    ) -> None:
        """Drift with no outbox event is only found by a full pass."""
        first = make_content(test_user)
        second = make_content(test_user, db_models.ContentType.EVENT)
        second.likes = 4
        db_session.commit()

        result = reconcile_counters(db=db_session, full=True)

        db_session.refresh(second)
        assert result["events_processed"] == 0
        assert result["items_checked"] == 2
        assert result["items_corrected"] == 1
        assert second.likes == 0
        assert first.likes == 0
