"""
Base repository shared by every table-backed repository.
"""

from typing import Generic, TypeVar

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from repositories.database import Base

T = TypeVar("T", bound=Base)  # type: ignore[type-arg]

# Dialects with INSERT ... ON CONFLICT DO NOTHING
_UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class BaseRepository(Generic[T]):
    """
    Session wrapper for one SQLAlchemy model.

    Methods named ``create``, ``update`` and ``delete`` commit; ``add`` and
    ``insert_if_absent`` leave the transaction open so a service can group
    several writes into one commit.
    """

    def __init__(self, model: type[T], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    def get_by_id(self, id: int) -> T | None:
        """
        Get entity by ID.

        Args:
            id: Entity ID

        Returns:
            Entity if found, None otherwise
        """
        return self.db.query(self.model).filter(self.model.id == id).first()

    def count(self) -> int:
        """
        Count all rows of the model.

        Returns:
            Number of rows
        """
        return self.db.query(self.model).count()

    def add(self, entity: T) -> None:
        """
        Stage an entity without committing.

        Use this when several writes should land in a single commit.

        Args:
            entity: Entity to add
        """
        self.db.add(entity)

    def create(self, entity: T) -> T:
        """
        Insert an entity and commit.

        Args:
            entity: Entity to create

        Returns:
            Created entity, refreshed from the database
        """
        self.db.add(entity)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def update(self, entity: T) -> T:
        """
        Commit pending changes to an entity.

        Args:
            entity: Entity with modified attributes

        Returns:
            Updated entity, refreshed from the database
        """
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def delete(self, entity: T) -> None:
        """
        Delete an entity and commit.

        Args:
            entity: Entity to delete
        """
        self.db.delete(entity)
        self.db.commit()

    def commit(self) -> None:
        """Commit the current transaction."""
        self.db.commit()

    def flush(self) -> None:
        """Flush pending changes without committing."""
        self.db.flush()

    def rollback(self) -> None:
        """Roll back the current transaction."""
        self.db.rollback()

    def refresh(self, entity: T) -> None:
        """
        Reload an entity's attributes from the database.

        Args:
            entity: Entity to refresh
        """
        self.db.refresh(entity)

    def insert_if_absent(self, values: dict, index_elements: list[str]) -> bool:
        """
        Insert a row unless one with the same unique key already exists.

        Callers racing on the same key never raise: the loser's insert is a
        no-op. Does not commit.

        Args:
            values: Column values for the new row
            index_elements: Columns of the unique constraint to conflict on

        Returns:
            True if this call inserted the row
        """
        insert = _UPSERT_INSERTS.get(self.db.get_bind().dialect.name)
        if insert is None:
            return self._insert_in_savepoint(values)

        stmt = (
            insert(self.model)
            .values(**values)
            .on_conflict_do_nothing(index_elements=index_elements)
        )
        return self.db.execute(stmt).rowcount == 1

    def _insert_in_savepoint(self, values: dict) -> bool:
        """
        Fallback for dialects without ON CONFLICT support.

        Args:
            values: Column values for the new row

        Returns:
            True if the row was inserted, False on a unique violation
        """
        try:
            with self.db.begin_nested():
                self.db.add(self.model(**values))
        except IntegrityError:
            return False
        return True
