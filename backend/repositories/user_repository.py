"""
User and club roster queries.
"""

from typing import Optional

from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository


class UserRepository(BaseRepository[db_models.User]):
    """Repository for members, guests and the enrollment roster."""

    def __init__(self, db: Session):
        super().__init__(db_models.User, db)

    def get_by_email(self, email: str) -> Optional[db_models.User]:
        """Emails are stored lowercased, so callers must lowercase first."""
        return (
            self.db.query(db_models.User).filter(db_models.User.email == email).first()
        )

    def get_active_by_id(self, user_id: int) -> Optional[db_models.User]:
        """
        Get a user who can still take part in relationships.

        Args:
            user_id: User ID

        Returns:
            User if found and active, None otherwise
        """
        return (
            self.db.query(db_models.User)
            .filter(
                db_models.User.id == user_id,
                db_models.User.is_active == True,  # noqa: E712
            )
            .first()
        )

    def get_by_unique_id(self, unique_id: str) -> Optional[db_models.User]:
        return (
            self.db.query(db_models.User)
            .filter(db_models.User.unique_id == unique_id)
            .first()
        )

    def email_exists(self, email: str) -> bool:
        return self.get_by_email(email) is not None

    def unique_id_exists(self, unique_id: str) -> bool:
        return self.get_by_unique_id(unique_id) is not None

    def update_profile_visibility(
        self, user: db_models.User, visibility: str
    ) -> db_models.User:
        user.profile_visibility = visibility
        return self.update(user)

    def get_roster_entry(
        self, email: str, unique_id: str
    ) -> Optional[db_models.EnrolledMember]:
        """
        Look up the club roster.

        Both the email and the handle must match the same roster row.

        Args:
            email: Registration email
            unique_id: Registration handle

        Returns:
            Roster entry if found, None otherwise
        """
        return (
            self.db.query(db_models.EnrolledMember)
            .filter(
                db_models.EnrolledMember.email == email,
                db_models.EnrolledMember.unique_id == unique_id,
            )
            .first()
        )
