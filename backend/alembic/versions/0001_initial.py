"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

Users and the club roster, relationship edges, groups, the four content
tables, the engagement ledger with its outbox, comments and comment likes.
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

# Enum columns store member names
FOLLOW_STATUS = sa.Enum("PENDING", "ACCEPTED", "BLOCKED", "MUTED", name="followstatus")
RELATIONSHIP_TYPE = sa.Enum(
    "FOLLOW", "FRIEND", "COLLEAGUE", "MENTOR", "MENTEE", name="relationshiptype"
)
GROUP_PRIVACY = sa.Enum(
    "PUBLIC", "PRIVATE", "INVITE_ONLY", "RESTRICTED", name="groupprivacy"
)
MEMBERSHIP_STATUS = sa.Enum(
    "ACTIVE", "PENDING", "INVITED", "BANNED", "LEFT", name="membershipstatus"
)
MEMBERSHIP_ROLE = sa.Enum(
    "MEMBER", "MODERATOR", "ADMIN", "CREATOR", name="membershiprole"
)
CONTENT_STATUS_NAMES = ("ACTIVE", "ARCHIVED", "DELETED", "FLAGGED", "PENDING")
CONTENT_STATUS = sa.Enum(*CONTENT_STATUS_NAMES, name="contentstatus")
# Shared by four tables: the PostgreSQL type is created once in upgrade()
CONTENT_STATUS_COLUMN = CONTENT_STATUS.with_variant(
    postgresql.ENUM(*CONTENT_STATUS_NAMES, name="contentstatus", create_type=False),
    "postgresql",
)
COMMENT_STATUS = sa.Enum("ACTIVE", "FLAGGED", "HIDDEN", "DELETED", name="commentstatus")

CONTENT_TABLES = ("news", "events", "resources", "social_posts")


def _content_columns() -> list:
    return [
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=False),
        sa.Column("visibility", sa.String(length=30), nullable=False),
        sa.Column("status", CONTENT_STATUS_COLUMN, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("likes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("saves", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("shares", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("comments", sa.Integer(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    ]


def _content_indexes(table: str) -> None:
    op.create_index(f"ix_{table}_id", table, ["id"], unique=False)
    op.create_index(f"ix_{table}_author_id", table, ["author_id"], unique=False)


def upgrade() -> None:
    CONTENT_STATUS.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("unique_id", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("is_enrolled", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="1"),
        sa.Column("profile_visibility", sa.String(length=30), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_id", "users", ["id"], unique=False)
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_unique_id", "users", ["unique_id"], unique=True)

    op.create_table(
        "enrolled_members",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("unique_id", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", "unique_id", name="uq_enrolled_member"),
    )
    op.create_index("ix_enrolled_members_id", "enrolled_members", ["id"], unique=False)
    op.create_index(
        "ix_enrolled_members_email", "enrolled_members", ["email"], unique=False
    )

    op.create_table(
        "follows",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("follower_id", sa.Integer(), nullable=False),
        sa.Column("following_id", sa.Integer(), nullable=False),
        sa.Column("status", FOLLOW_STATUS, nullable=False),
        sa.Column("relationship_type", RELATIONSHIP_TYPE, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("accepted_at", sa.DateTime(), nullable=True),
        sa.Column("blocked_at", sa.DateTime(), nullable=True),
        sa.Column("muted_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("follower_id != following_id", name="ck_follow_not_self"),
        sa.ForeignKeyConstraint(["follower_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["following_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("follower_id", "following_id", name="uq_follow_pair"),
    )
    op.create_index("ix_follows_id", "follows", ["id"], unique=False)
    op.create_index(
        "ix_follows_following_status", "follows", ["following_id", "status"]
    )
    op.create_index("ix_follows_follower_status", "follows", ["follower_id", "status"])

    op.create_table(
        "groups",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("privacy", GROUP_PRIVACY, nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=False),
        sa.Column("member_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_groups_id", "groups", ["id"], unique=False)

    op.create_table(
        "group_memberships",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("status", MEMBERSHIP_STATUS, nullable=False),
        sa.Column("role", MEMBERSHIP_ROLE, nullable=False),
        sa.Column("permissions", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("joined_at", sa.DateTime(), nullable=True),
        sa.Column("left_at", sa.DateTime(), nullable=True),
        sa.Column("banned_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("group_id", "user_id", name="uq_group_membership"),
    )
    op.create_index("ix_group_memberships_id", "group_memberships", ["id"])
    op.create_index(
        "ix_group_memberships_user_status", "group_memberships", ["user_id", "status"]
    )

    op.create_table(
        "news",
        *_content_columns(),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("source_url", sa.String(length=500), nullable=True),
    )
    op.create_table(
        "events",
        *_content_columns(),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("location", sa.String(length=300), nullable=True),
        sa.Column("starts_at", sa.DateTime(), nullable=True),
        sa.Column("group_id", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"]),
    )
    op.create_table(
        "resources",
        *_content_columns(),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("url", sa.String(length=500), nullable=True),
        sa.Column("views", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_table(
        "social_posts",
        *_content_columns(),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("group_id", sa.Integer(), nullable=True),
        sa.Column("allow_comments", sa.Boolean(), nullable=False, server_default="1"),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"]),
    )
    for table in CONTENT_TABLES:
        _content_indexes(table)
    op.create_index("ix_events_group_id", "events", ["group_id"])
    op.create_index("ix_social_posts_group_id", "social_posts", ["group_id"])

    op.create_table(
        "engagements",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("content_type", sa.String(length=20), nullable=False),
        sa.Column("content_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=10), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("activated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id",
            "content_type",
            "content_id",
            "action",
            name="uq_engagement_key",
        ),
    )
    op.create_index("ix_engagements_id", "engagements", ["id"])
    op.create_index(
        "ix_engagements_content", "engagements", ["content_type", "content_id", "action"]
    )
    op.create_index(
        "ix_engagements_user_action", "engagements", ["user_id", "action", "active"]
    )

    op.create_table(
        "engagement_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("content_type", sa.String(length=20), nullable=False),
        sa.Column("content_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=10), nullable=False),
        sa.Column("delta", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("processed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_engagement_events_id", "engagement_events", ["id"])
    op.create_index(
        "ix_engagement_events_unprocessed", "engagement_events", ["processed_at", "id"]
    )

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("content_type", sa.String(length=20), nullable=False),
        sa.Column("content_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("parent_comment_id", sa.Integer(), nullable=True),
        sa.Column("depth", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", COMMENT_STATUS, nullable=False),
        sa.Column("is_edited", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("edited_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("like_count", sa.Integer(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(
            ["parent_comment_id"], ["comments.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comments_id", "comments", ["id"])
    op.create_index(
        "ix_comments_content", "comments", ["content_type", "content_id", "status"]
    )
    op.create_index("ix_comments_parent", "comments", ["parent_comment_id"])

    op.create_table(
        "comment_likes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("comment_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["comment_id"], ["comments.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "comment_id", "user_id", name="uq_comment_like_comment_user"
        ),
    )
    op.create_index("ix_comment_likes_id", "comment_likes", ["id"])
    op.create_index("ix_comment_likes_comment", "comment_likes", ["comment_id"])
    op.create_index("ix_comment_likes_user", "comment_likes", ["user_id"])


def downgrade() -> None:
    op.drop_table("comment_likes")
    op.drop_table("comments")
    op.drop_table("engagement_events")
    op.drop_table("engagements")
    for table in reversed(CONTENT_TABLES):
        op.drop_table(table)
    op.drop_table("group_memberships")
    op.drop_table("groups")
    op.drop_table("follows")
    op.drop_table("enrolled_members")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (
        COMMENT_STATUS,
        CONTENT_STATUS,
        MEMBERSHIP_ROLE,
        MEMBERSHIP_STATUS,
        GROUP_PRIVACY,
        RELATIONSHIP_TYPE,
        FOLLOW_STATUS,
    ):
        enum_type.drop(bind, checkfirst=True)
