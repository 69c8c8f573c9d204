#!/usr/bin/env python3
"""
Counter reconciliation task.

Recomputes likes, saves, shares, views and comment counts from the
engagement ledger and the comments table, and repairs any drift.

By default drains the engagement outbox (the same work the background
scheduler does). With --full every content item is checked, which is the
way to repair counters after a restore or a manual data fix.

This script can be run:
- Via cron: */10 * * * * cd /path/to/backend && python -m tasks.reconcile_counters
- Manually: python -m tasks.reconcile_counters --full
"""

import argparse
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

# Add backend to path for imports
backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

from loguru import logger  # noqa: E402

from models.config import settings  # noqa: E402
from repositories.database import SessionLocal  # noqa: E402
from repositories.engagement_repository import EngagementEventRepository  # noqa: E402
from services.reconciliation_service import ReconciliationService  # noqa: E402

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def reconcile_counters(
    db: "Session | None" = None,
    full: bool = False,
    batch_size: int | None = None,
) -> dict[str, int]:
    """
    Run counter reconciliation.

    Args:
        db: Optional database session. If not provided, creates a new session.
            Useful for testing to inject a test database session.
        full: Check every content item instead of draining the outbox
        batch_size: Events (or items) per batch; defaults to settings

    Returns:
        Dictionary with processed, checked and corrected counts
    """
    batch_size = batch_size or settings.RECONCILIATION_BATCH_SIZE

    should_close = db is None
    if db is None:
        db = SessionLocal()

    try:
        logger.info(f"Starting counter reconciliation (full={full})")
        start_time = datetime.now(timezone.utc)

        events_processed = items_checked = items_corrected = 0
        if full:
            report = ReconciliationService.reconcile_all(db, batch_size=batch_size)
            items_checked = report.items_checked
            items_corrected = report.items_corrected
        else:
            # Drain the outbox batch by batch
            while EngagementEventRepository(db).count_unprocessed():
                report = ReconciliationService.process_outbox(
                    db, batch_size=batch_size
                )
                events_processed += report.events_processed
                items_checked += report.items_checked
                items_corrected += report.items_corrected

        elapsed = (datetime.now(timezone.utc) - start_time).total_seconds()
        logger.info(
            f"Counter reconciliation completed in {elapsed:.2f}s - "
            f"events: {events_processed}, checked: {items_checked}, "
            f"corrected: {items_corrected}"
        )

        return {
            "events_processed": events_processed,
            "items_checked": items_checked,
            "items_corrected": items_corrected,
        }

    except Exception as e:
        db.rollback()
        logger.error(f"Counter reconciliation failed: {e!r}")
        raise
    finally:
        if should_close:
            db.close()


def main() -> int:
    parser = argparse.ArgumentParser(description="Repair denormalized counters")
    parser.add_argument(
        "--full",
        action="store_true",
        help="Check every content item instead of draining the outbox",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help=f"Batch size (default: {settings.RECONCILIATION_BATCH_SIZE})",
    )
    args = parser.parse_args()

    # Configure logging for standalone execution
    logger.remove()
    logger.add(
        sys.stderr,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
        level="INFO",
    )

    try:
        result = reconcile_counters(full=args.full, batch_size=args.batch_size)
        print(f"Reconciliation completed: {result}")
        return 0
    except Exception as e:
        print(f"Reconciliation failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
