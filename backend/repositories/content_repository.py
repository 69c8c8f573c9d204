"""
Content repository shared by every content table.

A lookup table maps the ContentType tag to its model so callers never
dispatch on untyped rows.
"""

from typing import Any, Optional, Union

from sqlalchemy import update
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository

ContentModel = Union[
    db_models.News, db_models.Event, db_models.Resource, db_models.SocialPost
]

CONTENT_MODELS: dict[db_models.ContentType, type] = {
    db_models.ContentType.NEWS: db_models.News,
    db_models.ContentType.EVENT: db_models.Event,
    db_models.ContentType.RESOURCE: db_models.Resource,
    db_models.ContentType.SOCIAL_POST: db_models.SocialPost,
}

BASE_COUNTERS = ("likes", "saves", "shares", "comments")

# Resource is the only type that tracks views
COUNTER_FIELDS: dict[db_models.ContentType, tuple[str, ...]] = {
    db_models.ContentType.NEWS: BASE_COUNTERS,
    db_models.ContentType.EVENT: BASE_COUNTERS,
    db_models.ContentType.RESOURCE: BASE_COUNTERS + ("views",),
    db_models.ContentType.SOCIAL_POST: BASE_COUNTERS,
}


def parse_content_type(tag: str) -> Optional[db_models.ContentType]:
    """Return the ContentType for a tag, or None when the tag is unknown."""
    try:
        return db_models.ContentType(tag)
    except ValueError:
        return None


class ContentRepository(BaseRepository[Any]):
    """Repository for one content table, selected by its ContentType tag."""

    def __init__(self, db: Session, content_type: db_models.ContentType):
        """
        Initialize content repository.

        Args:
            db: Database session
            content_type: Which content table to operate on
        """
        super().__init__(CONTENT_MODELS[content_type], db)
        self.content_type = content_type

    @property
    def counter_fields(self) -> tuple[str, ...]:
        return COUNTER_FIELDS[self.content_type]

    def get_live(self, content_id: int) -> Optional[ContentModel]:
        """
        Get a content item unless it was soft-deleted.

        Args:
            content_id: Content ID

        Returns:
            Content item if found and not deleted, None otherwise
        """
        return (
            self.db.query(self.model)
            .filter(
                self.model.id == content_id,
                self.model.status != db_models.ContentStatus.DELETED,
            )
            .first()
        )

    def list_active(self, skip: int = 0, limit: int = 20) -> list[ContentModel]:
        """
        List active items, newest first.

        Args:
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            List of content items
        """
        return (
            self.db.query(self.model)
            .filter(self.model.status == db_models.ContentStatus.ACTIVE)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_live_by_ids(self, content_ids: list[int]) -> list[ContentModel]:
        """
        Batch-load items that are not soft-deleted.

        Args:
            content_ids: Content IDs

        Returns:
            Items found (order not guaranteed)
        """
        if not content_ids:
            return []
        return (
            self.db.query(self.model)
            .filter(
                self.model.id.in_(content_ids),
                self.model.status != db_models.ContentStatus.DELETED,
            )
            .all()
        )

    def adjust_counter(self, content_id: int, field: str, delta: int) -> int:
        """
        Add delta to a counter with a single UPDATE.

        Concurrent calls compose additively. Does not commit.

        Args:
            content_id: Content ID
            field: Counter column name
            delta: Signed change

        Returns:
            Number of rows updated (0 when the item does not exist)

        Raises:
            ValueError: If field is not a counter of this content type
        """
        if field not in self.counter_fields:
            raise ValueError(f"{self.content_type.value} has no counter '{field}'")
        column = getattr(self.model, field)
        result = self.db.execute(
            update(self.model)
            .where(self.model.id == content_id)
            .values({field: column + delta})
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def get_counter(self, content_id: int, field: str) -> Optional[int]:
        """
        Read a counter straight from the table.

        Args:
            content_id: Content ID
            field: Counter column name

        Returns:
            Counter value, or None if the item does not exist
        """
        if field not in self.counter_fields:
            raise ValueError(f"{self.content_type.value} has no counter '{field}'")
        return (
            self.db.query(getattr(self.model, field))
            .filter(self.model.id == content_id)
            .scalar()
        )

    def get_counters(self, content_id: int) -> Optional[dict[str, int]]:
        """
        Read every counter of an item.

        Args:
            content_id: Content ID

        Returns:
            Mapping of counter name to value, or None if the item does not exist
        """
        columns = [getattr(self.model, f) for f in self.counter_fields]
        row = self.db.query(*columns).filter(self.model.id == content_id).first()
        if row is None:
            return None
        return dict(zip(self.counter_fields, row))

    def set_counters(self, content_id: int, values: dict[str, int]) -> int:
        """
        Overwrite counters with recomputed values. Does not commit.

        Args:
            content_id: Content ID
            values: Counter name to value

        Returns:
            Number of rows updated
        """
        unknown = set(values) - set(self.counter_fields)
        if unknown:
            raise ValueError(f"Unknown counters: {sorted(unknown)}")
        result = self.db.execute(
            update(self.model)
            .where(self.model.id == content_id)
            .values(values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def soft_delete(self, item: ContentModel) -> ContentModel:
        """
        Mark an item deleted.

        Args:
            item: Content item

        Returns:
            Updated item
        """
        item.status = db_models.ContentStatus.DELETED
        return self.update(item)

    def get_ids_after(self, last_id: int = 0, limit: int = 500) -> list[int]:
        """
        Keyset scan over every item, deleted ones included.

        Args:
            last_id: Return IDs strictly greater than this
            limit: Maximum number of IDs

        Returns:
            Ascending list of IDs
        """
        rows = (
            self.db.query(self.model.id)
            .filter(self.model.id > last_id)
            .order_by(self.model.id.asc())
            .limit(limit)
            .all()
        )
        return [row[0] for row in rows]
