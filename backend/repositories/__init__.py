"""
Repository pattern implementation for data access layer.
"""

from .base import BaseRepository
from .comment_like_repository import CommentLikeRepository
from .comment_repository import CommentRepository
from .content_repository import ContentRepository
from .engagement_repository import EngagementEventRepository, EngagementRepository
from .follow_repository import FollowRepository
from .group_repository import GroupMembershipRepository, GroupRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "CommentLikeRepository",
    "CommentRepository",
    "ContentRepository",
    "EngagementEventRepository",
    "EngagementRepository",
    "FollowRepository",
    "GroupMembershipRepository",
    "GroupRepository",
    "UserRepository",
]
