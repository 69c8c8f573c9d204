"""
Counter reconciliation.

Recomputes denormalized counters from the ledger and comment tables and
corrects any drift. Driven by the engagement outbox: each pass consumes a
batch of unprocessed events and reconciles every item they touched.
"""

from dataclasses import dataclass, field

from loguru import logger
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from repositories.comment_like_repository import CommentLikeRepository
from repositories.comment_repository import CommentRepository
from repositories.content_repository import (
    COUNTER_FIELDS,
    ContentRepository,
    parse_content_type,
)
from repositories.engagement_repository import (
    EngagementEventRepository,
    EngagementRepository,
)
from services.engagement_service import COUNTER_FOR_ACTION


@dataclass
class ReconciliationReport:
    """Outcome of one reconciliation pass."""

    events_processed: int = 0
    items_checked: int = 0
    items_corrected: int = 0
    corrections: list[dict] = field(default_factory=list)


class ReconciliationService:
    """Service that repairs counter drift."""

    @staticmethod
    def expected_counters(
        db: Session, content_type: db_models.ContentType, content_id: int
    ) -> dict[str, int]:
        """
        Counter values implied by the ledger and comment tables.

        Args:
            db: Database session
            content_type: Content type
            content_id: Content ID

        Returns:
            Mapping counter name -> expected value
        """
        active = EngagementRepository(db).count_active_by_action(
            content_type.value, content_id
        )
        expected = {
            counter: active.get(action.value, 0)
            for action, counter in COUNTER_FOR_ACTION.items()
            if counter in COUNTER_FIELDS[content_type]
        }
        expected["comments"] = CommentRepository(db).count_active_for_content(
            content_type.value, content_id
        )
        return expected

    @staticmethod
    def reconcile_content(db: Session, content_type: str, content_id: int) -> dict:
        """
        Correct one item's counters. Does not commit.

        Args:
            db: Database session
            content_type: Content type tag
            content_id: Content ID

        Returns:
            Mapping counter -> (stored, expected) for every corrected counter;
            empty when nothing drifted or the item no longer exists
        """
        parsed = parse_content_type(content_type)
        if parsed is None:
            logger.warning("Skipping unknown content type", content_type=content_type)
            return {}

        repo = ContentRepository(db, parsed)
        stored = repo.get_counters(content_id)
        if stored is None:
            return {}

        expected = ReconciliationService.expected_counters(db, parsed, content_id)
        drift = {
            name: (stored[name], value)
            for name, value in expected.items()
            if stored.get(name) != value
        }
        if drift:
            repo.set_counters(content_id, {name: v[1] for name, v in drift.items()})
            logger.warning(
                "Counter drift corrected",
                content_type=parsed.value,
                content_id=content_id,
                drift=drift,
            )
        return drift

    @staticmethod
    def reconcile_comment_likes(db: Session, comment_id: int) -> dict:
        """Correct one comment's like count. Does not commit."""
        comment_repo = CommentRepository(db)
        comment = comment_repo.get_by_id(comment_id)
        if comment is None:
            return {}
        expected = CommentLikeRepository(db).count_by_comment(comment_id)
        stored = comment_repo.get_like_count(comment_id)
        if stored == expected:
            return {}
        comment_repo.set_like_count(comment_id, expected)
        logger.warning(
            "Comment like drift corrected",
            comment_id=comment_id,
            stored=stored,
            expected=expected,
        )
        return {"like_count": (stored, expected)}

    @staticmethod
    def process_outbox(db: Session, batch_size: int = 500) -> ReconciliationReport:
        """
        Consume a batch of outbox events and reconcile what they touched.

        Args:
            db: Database session
            batch_size: Maximum number of events to consume

        Returns:
            ReconciliationReport
        """
        event_repo = EngagementEventRepository(db)
        events = event_repo.get_unprocessed(limit=batch_size)
        report = ReconciliationReport(events_processed=len(events))
        if not events:
            return report

        keys = sorted({(e.content_type, e.content_id) for e in events})
        for content_type, content_id in keys:
            if content_type == db_models.COMMENT_TARGET:
                drift = ReconciliationService.reconcile_comment_likes(db, content_id)
            else:
                drift = ReconciliationService.reconcile_content(
                    db, content_type, content_id
                )
            report.items_checked += 1
            if drift:
                report.items_corrected += 1
                report.corrections.append(
                    {
                        "content_type": content_type,
                        "content_id": content_id,
                        "drift": drift,
                    }
                )

        event_repo.mark_processed([e.id for e in events])
        event_repo.commit()

        logger.info(
            "Reconciliation pass complete",
            events=report.events_processed,
            checked=report.items_checked,
            corrected=report.items_corrected,
        )
        return report

    @staticmethod
    def reconcile_all(db: Session, batch_size: int = 500) -> ReconciliationReport:
        """
        Reconcile every item of every content type, ignoring the outbox.

        Commits after each batch so a long scan does not hold one transaction.

        Args:
            db: Database session
            batch_size: Items per batch

        Returns:
            ReconciliationReport (events_processed stays 0)
        """
        report = ReconciliationReport()
        for content_type in db_models.ContentType:
            repo = ContentRepository(db, content_type)
            last_id = 0
            while True:
                ids = repo.get_ids_after(last_id, limit=batch_size)
                if not ids:
                    break
                for content_id in ids:
                    drift = ReconciliationService.reconcile_content(
                        db, content_type.value, content_id
                    )
                    report.items_checked += 1
                    if drift:
                        report.items_corrected += 1
                        report.corrections.append(
                            {
                                "content_type": content_type.value,
                                "content_id": content_id,
                                "drift": drift,
                            }
                        )
                repo.commit()
                last_id = ids[-1]

        logger.info(
            "Full reconciliation complete",
            checked=report.items_checked,
            corrected=report.items_corrected,
        )
        return report
