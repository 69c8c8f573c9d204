"""
Database models using SQLAlchemy 2.0 style with Mapped type hints.

This module defines all database models with proper type annotations
for improved IDE support and type checking.
"""

import enum
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repositories.database import Base


class ContentType(str, enum.Enum):
    """Tag identifying which content table an item lives in."""

    NEWS = "News"
    EVENT = "Event"
    RESOURCE = "Resource"
    SOCIAL_POST = "SocialPost"


# Engagement targets also accept comments (like only).
COMMENT_TARGET = "Comment"


class EngagementAction(str, enum.Enum):
    LIKE = "like"
    SAVE = "save"
    SHARE = "share"
    VIEW = "view"


class Visibility(str, enum.Enum):
    """
    Known visibility policies.

    Columns store free text: values outside this set are representable and
    the evaluator denies them.
    """

    PUBLIC = "public"
    CLUB_MEMBERS = "club-members"
    FRIENDS = "friends"
    GROUP = "group"
    PRIVATE = "private"


class ProfileVisibility(str, enum.Enum):
    PUBLIC = "public"
    CLUB_MEMBERS = "club-members"
    PRIVATE = "private"


class ContentStatus(str, enum.Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    DELETED = "deleted"
    FLAGGED = "flagged"
    PENDING = "pending"


class CommentStatus(str, enum.Enum):
    ACTIVE = "active"
    FLAGGED = "flagged"
    HIDDEN = "hidden"
    DELETED = "deleted"


class FollowStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    BLOCKED = "blocked"
    MUTED = "muted"


class RelationshipType(str, enum.Enum):
    FOLLOW = "follow"
    FRIEND = "friend"
    COLLEAGUE = "colleague"
    MENTOR = "mentor"
    MENTEE = "mentee"


class GroupPrivacy(str, enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    INVITE_ONLY = "invite-only"
    RESTRICTED = "restricted"


class MembershipStatus(str, enum.Enum):
    ACTIVE = "active"
    PENDING = "pending"
    INVITED = "invited"
    BANNED = "banned"
    LEFT = "left"


class MembershipRole(str, enum.Enum):
    MEMBER = "member"
    MODERATOR = "moderator"
    ADMIN = "admin"
    CREATOR = "creator"


class GroupPermission(enum.IntFlag):
    """Write-side permissions stored as a bitset on GroupMembership."""

    NONE = 0
    CAN_POST = 1
    CAN_COMMENT = 2
    CAN_INVITE = 4
    CAN_MODERATE = 8
    CAN_MANAGE_EVENTS = 16

    @classmethod
    def all(cls) -> "GroupPermission":
        return (
            cls.CAN_POST
            | cls.CAN_COMMENT
            | cls.CAN_INVITE
            | cls.CAN_MODERATE
            | cls.CAN_MANAGE_EVENTS
        )

    @classmethod
    def for_role(cls, role: MembershipRole) -> "GroupPermission":
        """Default permission set granted with a role."""
        if role in (MembershipRole.ADMIN, MembershipRole.CREATOR):
            return cls.all()
        if role == MembershipRole.MODERATOR:
            return cls.CAN_POST | cls.CAN_COMMENT | cls.CAN_MODERATE
        return cls.CAN_POST | cls.CAN_COMMENT


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    unique_id: Mapped[str] = mapped_column(
        String(50), unique=True, index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String, nullable=False)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Club membership gate for club-members content
    is_enrolled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # Users are deactivated, never hard-deleted
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    profile_visibility: Mapped[Optional[str]] = mapped_column(
        String(30),
        nullable=True,
        default=ProfileVisibility.CLUB_MEMBERS.value,
        doc="Profile visibility policy (public/club-members/private)",
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, default=_utc_now, onupdate=_utc_now
    )

    # Relationships
    comments: Mapped[List["Comment"]] = relationship("Comment", back_populates="user")
    memberships: Mapped[List["GroupMembership"]] = relationship(
        "GroupMembership", back_populates="user"
    )


class EnrolledMember(Base):
    """Club roster imported by officers; registration checks against it."""

    __tablename__ = "enrolled_members"
    __table_args__ = (
        UniqueConstraint("email", "unique_id", name="uq_enrolled_member"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String, index=True, nullable=False)
    unique_id: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)


class Follow(Base):
    """Directed relationship edge; at most one per ordered pair."""

    __tablename__ = "follows"
    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follow_pair"),
        CheckConstraint("follower_id != following_id", name="ck_follow_not_self"),
        Index("ix_follows_following_status", "following_id", "status"),
        Index("ix_follows_follower_status", "follower_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    follower_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    following_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[FollowStatus] = mapped_column(
        Enum(FollowStatus), nullable=False, default=FollowStatus.ACCEPTED
    )
    relationship_type: Mapped[RelationshipType] = mapped_column(
        Enum(RelationshipType), nullable=False, default=RelationshipType.FOLLOW
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    blocked_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    muted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    follower: Mapped["User"] = relationship("User", foreign_keys=[follower_id])
    following: Mapped["User"] = relationship("User", foreign_keys=[following_id])


class Group(Base):
    __tablename__ = "groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    privacy: Mapped[GroupPrivacy] = mapped_column(
        Enum(GroupPrivacy), nullable=False, default=GroupPrivacy.PUBLIC
    )
    created_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    # Denormalized count of active memberships
    member_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    memberships: Mapped[List["GroupMembership"]] = relationship(
        "GroupMembership", back_populates="group", cascade="all, delete-orphan"
    )


class GroupMembership(Base):
    __tablename__ = "group_memberships"
    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_group_membership"),
        Index("ix_group_memberships_user_status", "user_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    group_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[MembershipStatus] = mapped_column(
        Enum(MembershipStatus), nullable=False, default=MembershipStatus.ACTIVE
    )
    role: Mapped[MembershipRole] = mapped_column(
        Enum(MembershipRole), nullable=False, default=MembershipRole.MEMBER
    )
    permissions: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=int(GroupPermission.CAN_POST | GroupPermission.CAN_COMMENT),
        doc="GroupPermission bitset",
    )
    joined_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    left_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    banned_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    group: Mapped["Group"] = relationship("Group", back_populates="memberships")
    user: Mapped["User"] = relationship("User", back_populates="memberships")

    @property
    def permission_set(self) -> GroupPermission:
        return GroupPermission(self.permissions or 0)


class ContentMixin:
    """Columns shared by every content table."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    author_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    visibility: Mapped[str] = mapped_column(
        String(30), nullable=False, default=Visibility.CLUB_MEMBERS.value
    )
    status: Mapped[ContentStatus] = mapped_column(
        Enum(ContentStatus), nullable=False, default=ContentStatus.ACTIVE
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, default=_utc_now, onupdate=_utc_now
    )

    # Denormalized counters, maintained by the engagement ledger
    likes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    saves: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    shares: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    comments: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Only SocialPost and Event can belong to a group
    group_id = None

    @property
    def allow_comments(self) -> bool:
        return True


class News(ContentMixin, Base):
    __tablename__ = "news"

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)


class Event(ContentMixin, Base):
    __tablename__ = "events"

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    starts_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    group_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("groups.id"), nullable=True, index=True
    )


class Resource(ContentMixin, Base):
    __tablename__ = "resources"

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class SocialPost(ContentMixin, Base):
    __tablename__ = "social_posts"

    content: Mapped[str] = mapped_column(Text, nullable=False)
    group_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("groups.id"), nullable=True, index=True
    )
    allow_comments: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )


class Engagement(Base):
    """
    One ledger record per (user, content, action).

    The `active` flag is the source of truth; content counters are a
    projection of the number of active rows.
    """

    __tablename__ = "engagements"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "content_type",
            "content_id",
            "action",
            name="uq_engagement_key",
        ),
        Index("ix_engagements_content", "content_type", "content_id", "action"),
        Index("ix_engagements_user_action", "user_id", "action", "active"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content_type: Mapped[str] = mapped_column(String(20), nullable=False)
    content_id: Mapped[int] = mapped_column(Integer, nullable=False)
    action: Mapped[str] = mapped_column(String(10), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    activated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class EngagementEvent(Base):
    """Outbox row appended in the same transaction as each state change."""

    __tablename__ = "engagement_events"
    __table_args__ = (
        Index("ix_engagement_events_unprocessed", "processed_at", "id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    content_type: Mapped[str] = mapped_column(String(20), nullable=False)
    content_id: Mapped[int] = mapped_column(Integer, nullable=False)
    action: Mapped[str] = mapped_column(String(10), nullable=False)
    delta: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class Comment(Base):
    __tablename__ = "comments"
    __table_args__ = (
        Index("ix_comments_content", "content_type", "content_id", "status"),
        Index("ix_comments_parent", "parent_comment_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    content_type: Mapped[str] = mapped_column(String(20), nullable=False)
    content_id: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    parent_comment_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True
    )
    depth: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[CommentStatus] = mapped_column(
        Enum(CommentStatus), nullable=False, default=CommentStatus.ACTIVE
    )
    is_edited: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    edited_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, default=_utc_now, onupdate=_utc_now
    )

    # Like count (denormalized for performance)
    like_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="comments")
    likes: Mapped[List["CommentLike"]] = relationship(
        "CommentLike", back_populates="comment", cascade="all, delete-orphan"
    )


class CommentLike(Base):
    """Tracks user likes on comments."""

    __tablename__ = "comment_likes"
    __table_args__ = (
        UniqueConstraint("comment_id", "user_id", name="uq_comment_like_comment_user"),
        Index("ix_comment_likes_comment", "comment_id"),
        Index("ix_comment_likes_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    comment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Relationships
    comment: Mapped["Comment"] = relationship("Comment", back_populates="likes")
