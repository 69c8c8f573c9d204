"""
Services layer for business logic.

This package contains service modules that encapsulate business logic
separate from the API routes.
"""

from .content_validation import ContentValidationService
from .visibility_service import VisibilityService
from .auth_service import AuthService
from .content_service import ContentService
from .engagement_service import EngagementService
from .comment_service import CommentService
from .comment_like_service import CommentLikeService
from .relationship_service import RelationshipService
from .group_service import GroupService
from .privacy_settings_service import PrivacySettingsService
from .reconciliation_service import ReconciliationService

__all__ = [
    "ContentValidationService",
    "VisibilityService",
    "AuthService",
    "ContentService",
    "EngagementService",
    "CommentService",
    "CommentLikeService",
    "RelationshipService",
    "GroupService",
    "PrivacySettingsService",
    "ReconciliationService",
]
