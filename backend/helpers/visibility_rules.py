"""
Visibility rules for content, profiles and groups.

Pure functions: every relationship fact the rules need is passed in through
a RelationshipSnapshot, so evaluation never touches the database.

Evaluation order is fixed: authorship, then blocks, then the policy table.
Unknown policies are denied.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple, Optional

from repositories.db_models import (
    GroupPermission,
    GroupPrivacy,
    MembershipStatus,
    ProfileVisibility,
    Visibility,
)


class DenialReason(str, Enum):
    """Stable reason codes returned to clients on denial."""

    UNAUTHENTICATED = "unauthenticated"
    BLOCKED = "blocked"
    CLUB_MEMBERS_ONLY = "club-members-only"
    FRIENDS_ONLY = "friends-only"
    GROUP_MEMBERS_ONLY = "group-members-only"
    PRIVATE = "private"
    UNKNOWN_POLICY = "unknown-policy"


# Private, blocked and unknown share one message so denials don't leak existence
_UNAVAILABLE = "This content is not available"

DENIAL_MESSAGES: dict[DenialReason, str] = {
    DenialReason.UNAUTHENTICATED: "Authentication required",
    DenialReason.BLOCKED: _UNAVAILABLE,
    DenialReason.CLUB_MEMBERS_ONLY: "Club members only",
    DenialReason.FRIENDS_ONLY: "Friends only",
    DenialReason.GROUP_MEMBERS_ONLY: "Group members only",
    DenialReason.PRIVATE: _UNAVAILABLE,
    DenialReason.UNKNOWN_POLICY: _UNAVAILABLE,
}


class VisibilityDecision(NamedTuple):
    allowed: bool
    reason: Optional[DenialReason] = None

    @property
    def message(self) -> Optional[str]:
        return DENIAL_MESSAGES[self.reason] if self.reason else None


ALLOW = VisibilityDecision(True)


@dataclass(frozen=True)
class RelationshipSnapshot:
    """Relationship facts between a viewer and a content author."""

    follows_author: bool = False
    blocked: bool = False
    active_group_ids: frozenset[int] = field(default_factory=frozenset)


def _deny(reason: DenialReason) -> VisibilityDecision:
    return VisibilityDecision(False, reason)


def can_view(
    viewer: Optional[Any], content: Any, snapshot: RelationshipSnapshot
) -> VisibilityDecision:
    """
    Decide whether a viewer may see a content item.

    Args:
        viewer: User object (needs `id`, `is_enrolled`) or None when anonymous
        content: Content item (needs `author_id`, `visibility`, `group_id`)
        snapshot: Relationship facts between viewer and author

    Returns:
        VisibilityDecision; anonymous viewers get UNAUTHENTICATED for
        anything that is not public.
    """
    visibility = content.visibility

    if viewer is None:
        if visibility == Visibility.PUBLIC.value:
            return ALLOW
        return _deny(DenialReason.UNAUTHENTICATED)

    if viewer.id == content.author_id:
        return ALLOW

    if snapshot.blocked:
        return _deny(DenialReason.BLOCKED)

    if visibility == Visibility.PUBLIC.value:
        return ALLOW
    if visibility == Visibility.CLUB_MEMBERS.value:
        return ALLOW if viewer.is_enrolled else _deny(DenialReason.CLUB_MEMBERS_ONLY)
    if visibility == Visibility.FRIENDS.value:
        return ALLOW if snapshot.follows_author else _deny(DenialReason.FRIENDS_ONLY)
    if visibility == Visibility.GROUP.value:
        group_id = getattr(content, "group_id", None)
        if group_id is not None and group_id in snapshot.active_group_ids:
            return ALLOW
        return _deny(DenialReason.GROUP_MEMBERS_ONLY)
    if visibility == Visibility.PRIVATE.value:
        return _deny(DenialReason.PRIVATE)

    return _deny(DenialReason.UNKNOWN_POLICY)


def can_view_profile(
    viewer: Optional[Any], target: Any, snapshot: RelationshipSnapshot
) -> VisibilityDecision:
    """
    Decide whether a viewer may see another user's profile.

    Missing or unrecognised settings are treated as club-members.
    """
    try:
        visibility = ProfileVisibility(target.profile_visibility)
    except ValueError:
        visibility = ProfileVisibility.CLUB_MEMBERS

    if viewer is None:
        if visibility == ProfileVisibility.PUBLIC:
            return ALLOW
        return _deny(DenialReason.UNAUTHENTICATED)

    if viewer.id == target.id:
        return ALLOW

    if snapshot.blocked:
        return _deny(DenialReason.BLOCKED)

    if visibility == ProfileVisibility.PUBLIC:
        return ALLOW
    if visibility == ProfileVisibility.PRIVATE:
        return _deny(DenialReason.PRIVATE)
    return ALLOW if viewer.is_enrolled else _deny(DenialReason.CLUB_MEMBERS_ONLY)


# Memberships that may read a non-public group's page
_GROUP_READERS = (MembershipStatus.ACTIVE, MembershipStatus.INVITED)


def can_view_group(
    viewer: Optional[Any], group: Any, membership_status: Optional[Any]
) -> VisibilityDecision:
    """
    Decide whether a viewer may see a group's page.

    Public groups are readable by anyone. Private, invite-only and
    restricted groups are readable by active members and by users holding
    an invitation. An unrecognised privacy value is denied.

    Args:
        viewer: User object or None when anonymous
        group: Group (needs `privacy`)
        membership_status: Viewer's MembershipStatus in the group, or None

    Returns:
        VisibilityDecision
    """
    try:
        privacy = GroupPrivacy(group.privacy)
    except ValueError:
        return _deny(DenialReason.UNKNOWN_POLICY)

    if privacy == GroupPrivacy.PUBLIC:
        return ALLOW
    if viewer is None:
        return _deny(DenialReason.UNAUTHENTICATED)
    if membership_status in _GROUP_READERS:
        return ALLOW
    return _deny(DenialReason.GROUP_MEMBERS_ONLY)

def check_group_permission(
    membership: Optional[Any], permission: GroupPermission
) -> bool:
    """
    Write-side check layered on top of read visibility.

    Args:
        membership: GroupMembership or None
        permission: Permission the action needs

    Returns:
        True if the membership is active and grants the permission
    """
    if membership is None or membership.status != MembershipStatus.ACTIVE:
        return False
    return bool(GroupPermission(membership.permissions or 0) & permission)
