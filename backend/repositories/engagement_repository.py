"""
Engagement ledger repository.

One row per (user, content, action). State changes go through a conditional
UPDATE so only a caller that actually flips `active` observes a change.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository

ENGAGEMENT_KEY = ["user_id", "content_type", "content_id", "action"]


class EngagementRepository(BaseRepository[db_models.Engagement]):
    """Repository for Engagement ledger rows."""

    def __init__(self, db: Session):
        """
        Initialize engagement repository.

        Args:
            db: Database session
        """
        super().__init__(db_models.Engagement, db)

    def _key_filter(
        self, user_id: int, content_type: str, content_id: int, action: str
    ) -> tuple:
        return (
            db_models.Engagement.user_id == user_id,
            db_models.Engagement.content_type == content_type,
            db_models.Engagement.content_id == content_id,
            db_models.Engagement.action == action,
        )

    def get_by_key(
        self, user_id: int, content_type: str, content_id: int, action: str
    ) -> Optional[db_models.Engagement]:
        """
        Get a ledger row by its unique key.

        Args:
            user_id: User ID
            content_type: Content type tag
            content_id: Content ID
            action: Engagement action

        Returns:
            Engagement if found, None otherwise
        """
        return (
            self.db.query(db_models.Engagement)
            .filter(*self._key_filter(user_id, content_type, content_id, action))
            .first()
        )

    def is_active(
        self, user_id: int, content_type: str, content_id: int, action: str
    ) -> bool:
        """Current state of a key; an absent row counts as inactive."""
        active = (
            self.db.query(db_models.Engagement.active)
            .filter(*self._key_filter(user_id, content_type, content_id, action))
            .scalar()
        )
        return bool(active)

    def ensure_row(
        self, user_id: int, content_type: str, content_id: int, action: str
    ) -> bool:
        """
        Create an inactive row for the key if none exists. Does not commit.

        Returns:
            True if this call created the row
        """
        return self.insert_if_absent(
            {
                "user_id": user_id,
                "content_type": content_type,
                "content_id": content_id,
                "action": action,
                "active": False,
                "created_at": datetime.now(timezone.utc),
            },
            index_elements=ENGAGEMENT_KEY,
        )

    def set_active(
        self,
        user_id: int,
        content_type: str,
        content_id: int,
        action: str,
        active: bool,
    ) -> bool:
        """
        Conditionally flip a row to the target state. Does not commit.

        The WHERE clause only matches rows currently in the opposite state,
        so of several concurrent callers wanting the same end state exactly
        one sees a change.

        Args:
            user_id: User ID
            content_type: Content type tag
            content_id: Content ID
            action: Engagement action
            active: Desired end state

        Returns:
            True if this call changed the state
        """
        now = datetime.now(timezone.utc)
        values: dict = {"active": active, "updated_at": now}
        if active:
            values["activated_at"] = now
        result = self.db.execute(
            update(db_models.Engagement)
            .where(
                *self._key_filter(user_id, content_type, content_id, action),
                db_models.Engagement.active == (not active),
            )
            .values(values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def get_user_flags(
        self, user_id: int, content_type: str, content_id: int
    ) -> dict[str, bool]:
        """
        Get the user's active state per action on one item.

        Args:
            user_id: User ID
            content_type: Content type tag
            content_id: Content ID

        Returns:
            Mapping action -> active for rows that exist
        """
        rows = (
            self.db.query(db_models.Engagement.action, db_models.Engagement.active)
            .filter(
                db_models.Engagement.user_id == user_id,
                db_models.Engagement.content_type == content_type,
                db_models.Engagement.content_id == content_id,
            )
            .all()
        )
        return {row.action: bool(row.active) for row in rows}

    def get_user_flags_batch(
        self, user_id: int, content_type: str, content_ids: list[int]
    ) -> dict[int, dict[str, bool]]:
        """
        Batch version of get_user_flags.

        Args:
            user_id: User ID
            content_type: Content type tag
            content_ids: Content IDs

        Returns:
            Mapping content_id -> (action -> active)
        """
        if not content_ids:
            return {}
        rows = (
            self.db.query(
                db_models.Engagement.content_id,
                db_models.Engagement.action,
                db_models.Engagement.active,
            )
            .filter(
                db_models.Engagement.user_id == user_id,
                db_models.Engagement.content_type == content_type,
                db_models.Engagement.content_id.in_(content_ids),
            )
            .all()
        )
        flags: dict[int, dict[str, bool]] = {}
        for row in rows:
            flags.setdefault(row.content_id, {})[row.action] = bool(row.active)
        return flags

    def count_active_by_action(
        self, content_type: str, content_id: int
    ) -> dict[str, int]:
        """
        Count active ledger rows per action for one item.

        Args:
            content_type: Content type tag
            content_id: Content ID

        Returns:
            Mapping action -> number of active rows
        """
        rows = (
            self.db.query(
                db_models.Engagement.action,
                func.count(db_models.Engagement.id).label("total"),
            )
            .filter(
                db_models.Engagement.content_type == content_type,
                db_models.Engagement.content_id == content_id,
                db_models.Engagement.active == True,  # noqa: E712
            )
            .group_by(db_models.Engagement.action)
            .all()
        )
        return {row.action: row.total for row in rows}

    def get_user_active_content_ids(
        self,
        user_id: int,
        content_type: str,
        action: str,
        skip: int = 0,
        limit: int = 20,
    ) -> list[int]:
        """
        Content IDs the user currently has an active action on, newest first.

        Args:
            user_id: User ID
            content_type: Content type tag
            action: Engagement action (like, save)
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            List of content IDs
        """
        rows = (
            self.db.query(db_models.Engagement.content_id)
            .filter(
                db_models.Engagement.user_id == user_id,
                db_models.Engagement.content_type == content_type,
                db_models.Engagement.action == action,
                db_models.Engagement.active == True,  # noqa: E712
            )
            .order_by(
                db_models.Engagement.activated_at.desc(),
                db_models.Engagement.id.desc(),
            )
            .offset(skip)
            .limit(limit)
            .all()
        )
        return [row.content_id for row in rows]

    def count_user_active(self, user_id: int, content_type: str, action: str) -> int:
        """Count the user's active rows for one action and content type."""
        return (
            self.db.query(db_models.Engagement)
            .filter(
                db_models.Engagement.user_id == user_id,
                db_models.Engagement.content_type == content_type,
                db_models.Engagement.action == action,
                db_models.Engagement.active == True,  # noqa: E712
            )
            .count()
        )


class EngagementEventRepository(BaseRepository[db_models.EngagementEvent]):
    """Outbox of engagement state changes."""

    def __init__(self, db: Session):
        """
        Initialize outbox repository.

        Args:
            db: Database session
        """
        super().__init__(db_models.EngagementEvent, db)

    def record(
        self,
        user_id: int,
        content_type: str,
        content_id: int,
        action: str,
        delta: int,
    ) -> db_models.EngagementEvent:
        """
        Append an event to the current transaction without committing.

        Args:
            user_id: Acting user
            content_type: Content type tag (or "Comment")
            content_id: Content ID
            action: Engagement action
            delta: +1 or -1

        Returns:
            The pending event
        """
        event = db_models.EngagementEvent(
            user_id=user_id,
            content_type=content_type,
            content_id=content_id,
            action=action,
            delta=delta,
        )
        self.add(event)
        return event

    def get_unprocessed(self, limit: int = 500) -> list[db_models.EngagementEvent]:
        """
        Oldest unprocessed events first.

        Args:
            limit: Maximum number of events

        Returns:
            List of events
        """
        return (
            self.db.query(db_models.EngagementEvent)
            .filter(db_models.EngagementEvent.processed_at.is_(None))
            .order_by(db_models.EngagementEvent.id.asc())
            .limit(limit)
            .all()
        )

    def count_unprocessed(self) -> int:
        """Count events still waiting for reconciliation."""
        return (
            self.db.query(db_models.EngagementEvent)
            .filter(db_models.EngagementEvent.processed_at.is_(None))
            .count()
        )

    def mark_processed(self, event_ids: list[int]) -> int:
        """
        Stamp events as processed. Does not commit.

        Args:
            event_ids: Event IDs

        Returns:
            Number of events updated
        """
        if not event_ids:
            return 0
        result = self.db.execute(
            update(db_models.EngagementEvent)
            .where(db_models.EngagementEvent.id.in_(event_ids))
            .values(processed_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
