from enum import Enum

from pydantic import BaseModel, EmailStr, Field, ConfigDict, field_validator
from datetime import datetime
from typing import Optional, List
from repositories.db_models import (
    FollowStatus,
    GroupPermission,
    GroupPrivacy,
    MembershipRole,
    MembershipStatus,
    ProfileVisibility,
    Visibility,
)


# Comment Sort Order Enum (used by routers and services)
class CommentSortOrder(str, Enum):
    """Comment sorting options."""

    NEWEST = "newest"
    OLDEST = "oldest"
    MOST_LIKED = "most_liked"


# User Schemas
class UserBase(BaseModel):
    email: EmailStr
    unique_id: str = Field(
        ...,
        min_length=3,
        max_length=50,
        pattern=r"^[A-Za-z0-9_.-]+$",
        description="Public handle",
    )
    name: str = Field(..., min_length=1, max_length=100)


class UserCreate(UserBase):
    password: str = Field(..., min_length=8, max_length=128)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class User(UserBase):
    id: int
    bio: Optional[str] = None
    is_enrolled: bool
    is_active: bool
    profile_visibility: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    access_token: str
    token_type: str


class TokenData(BaseModel):
    email: Optional[str] = None


class UserProfile(BaseModel):
    """Profile as shown to another user once visibility allows it."""

    id: int
    unique_id: str
    name: str
    bio: Optional[str] = None
    is_enrolled: bool
    followers_count: int = 0
    following_count: int = 0
    created_at: datetime


# Relationship Schemas
class RelationshipResponse(BaseModel):
    """State of the edge from the current user to another user."""

    user_id: int
    target_id: int
    status: Optional[FollowStatus] = None  # None when no edge exists
    changed: bool


class PrivacySettings(BaseModel):
    profile_visibility: ProfileVisibility


class PrivacySettingsUpdate(BaseModel):
    profile_visibility: ProfileVisibility


# Group Schemas
class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    privacy: GroupPrivacy = GroupPrivacy.PUBLIC


class Group(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    privacy: GroupPrivacy
    created_by: int
    member_count: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GroupMembership(BaseModel):
    group_id: int
    user_id: int
    status: MembershipStatus
    role: MembershipRole
    permissions: List[str]
    joined_at: datetime


class MemberPermissionsUpdate(BaseModel):
    """Full replacement of a member's permission set."""

    permissions: List[str] = Field(
        ..., description="Permission names, e.g. ['CAN_POST', 'CAN_COMMENT']"
    )

    @field_validator("permissions")
    @classmethod
    def validate_permission_names(cls, v: List[str]) -> List[str]:
        valid = {p.name for p in GroupPermission if p.name and p.name != "NONE"}
        unknown = [name for name in v if name not in valid]
        if unknown:
            raise ValueError(f"Unknown permissions: {', '.join(unknown)}")
        return v


# Content Schemas
class ContentCreate(BaseModel):
    """
    Payload for any content type.

    Which fields are required depends on the type: News, Event and Resource
    need a title, SocialPost needs content.
    """

    visibility: Visibility = Visibility.CLUB_MEMBERS
    title: Optional[str] = Field(None, max_length=300)
    content: Optional[str] = Field(None, max_length=10000)
    summary: Optional[str] = Field(None, max_length=5000)
    description: Optional[str] = Field(None, max_length=10000)
    source_url: Optional[str] = Field(None, max_length=500)
    url: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=300)
    starts_at: Optional[datetime] = None
    group_id: Optional[int] = None
    allow_comments: bool = True


class Content(BaseModel):
    id: int
    content_type: str
    author_id: int
    visibility: str
    status: str
    created_at: datetime
    likes: int
    saves: int
    shares: int
    comments: int
    views: Optional[int] = None
    group_id: Optional[int] = None
    title: Optional[str] = None
    content: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    source_url: Optional[str] = None
    url: Optional[str] = None
    location: Optional[str] = None
    starts_at: Optional[datetime] = None
    allow_comments: bool = True


class PaginationInfo(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_more: bool


class ContentFeed(BaseModel):
    items: List[Content]
    skip: int
    limit: int


# Engagement Schemas
class EngagementRequest(BaseModel):
    """Optional desired end state; omitted means toggle."""

    active: Optional[bool] = None


class EngagementResult(BaseModel):
    active: bool
    count: int
    changed: bool


class UserEngagement(BaseModel):
    liked: bool = False
    saved: bool = False
    shared: bool = False
    viewed: bool = False


class EngagementStats(BaseModel):
    content_type: str
    content_id: int
    likes: int
    saves: int
    shares: int
    comments: int
    views: Optional[int] = None
    # Totals derived from active ledger rows, for drift inspection
    ledger: dict[str, int] = {}


class BatchEngagementRequest(BaseModel):
    content_ids: List[int] = Field(..., min_length=1, max_length=100)


class BatchEngagementResponse(BaseModel):
    engagements: dict[int, UserEngagement]


class UserContentList(BaseModel):
    items: List[Content]
    pagination: PaginationInfo


class GroupList(BaseModel):
    items: List[Group]
    pagination: PaginationInfo


# Comment Schemas
class CommentBase(BaseModel):
    text: str


class CommentCreate(CommentBase):
    parent_comment_id: Optional[int] = None


class CommentUpdate(CommentBase):
    pass


class Comment(CommentBase):
    id: int
    content_type: str
    content_id: int
    user_id: int
    parent_comment_id: Optional[int] = None
    depth: int = 0
    like_count: int = 0
    is_edited: bool = False
    edited_at: Optional[datetime] = None
    created_at: datetime
    author_unique_id: str
    author_name: str
    reply_count: int = 0
    # None when the viewer is anonymous
    user_has_liked: Optional[bool] = None


class CommentListResponse(BaseModel):
    comments: List[Comment]
    pagination: PaginationInfo


class CommentCount(BaseModel):
    count: int


class CommentLikeResponse(BaseModel):
    liked: bool
    like_count: int


class CommentDeleteResponse(BaseModel):
    deleted: int


# Health
class HealthStatus(BaseModel):
    status: str
    database: str
