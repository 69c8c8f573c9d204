"""
Privacy Settings Service.

Manages the profile visibility preference that the profile visibility rules
read. Unset or unrecognised stored values read back as club-members.
"""

from sqlalchemy.orm import Session

from models import schemas
from models.exceptions import NotFoundException
from repositories import db_models
from repositories.user_repository import UserRepository


def _effective_visibility(value: str | None) -> db_models.ProfileVisibility:
    try:
        return db_models.ProfileVisibility(value)
    except ValueError:
        return db_models.ProfileVisibility.CLUB_MEMBERS


class PrivacySettingsService:
    """Service for managing user privacy settings."""

    @staticmethod
    def get_privacy_settings(db: Session, user_id: int) -> schemas.PrivacySettings:
        """
        Get user's current privacy settings.

        Args:
            db: Database session
            user_id: User ID

        Returns:
            Current privacy settings

        Raises:
            NotFoundException: If user not found
        """
        user = UserRepository(db).get_by_id(user_id)
        if not user:
            raise NotFoundException("User not found")

        return schemas.PrivacySettings(
            profile_visibility=_effective_visibility(user.profile_visibility)
        )

    @staticmethod
    def update_privacy_settings(
        db: Session,
        user_id: int,
        settings_update: schemas.PrivacySettingsUpdate,
    ) -> schemas.PrivacySettings:
        """
        Update user's privacy settings.

        Args:
            db: Database session
            user_id: User ID
            settings_update: New settings values

        Returns:
            Updated privacy settings

        Raises:
            NotFoundException: If user not found
        """
        user_repo = UserRepository(db)
        user = user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundException("User not found")

        user_repo.update_profile_visibility(
            user, settings_update.profile_visibility.value
        )

        return schemas.PrivacySettings(
            profile_visibility=_effective_visibility(user.profile_visibility)
        )
