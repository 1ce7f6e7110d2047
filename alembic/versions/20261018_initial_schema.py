"""Create the Talenta schema: profiles, posts, engagement, messaging, notifications, references.

Revision ID: 20261018_initial_schema
Revises:
Create Date: 2026-10-18
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _uuid(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), **kwargs)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    op.create_table(
        "profiles",
        _uuid("id", primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=150), nullable=True),
        sa.Column("username", sa.String(length=150), nullable=True),
        sa.Column("bio", sa.String(length=500), nullable=True),
        sa.Column("avatar_url", sa.String(length=1024), nullable=True),
        sa.Column("skill_tags", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("hireable", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("learning_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("password_reset_code", sa.String(length=12), nullable=True),
        sa.Column("password_reset_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("password_reset_attempts", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_active_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=True)
    op.create_index("ix_profiles_username", "profiles", ["username"], unique=True)

    op.create_table(
        "posts",
        _uuid("id", primary_key=True),
        _uuid("user_id", sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("media_url", sa.String(length=1024), nullable=True),
        sa.Column("media_type", sa.String(length=16), nullable=True),
        sa.Column("media_path", sa.String(length=1024), nullable=True),
        sa.Column("skill_category", sa.String(length=64), nullable=False),
        sa.Column("privacy_setting", sa.String(length=16), nullable=False, server_default="public"),
        sa.Column("shares_count", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_posts_user_id", "posts", ["user_id"])
    op.create_index("ix_posts_skill_category", "posts", ["skill_category"])
    op.create_index("ix_posts_privacy_setting", "posts", ["privacy_setting"])
    op.create_index("ix_posts_created_at", "posts", ["created_at"])

    op.create_table(
        "likes",
        _uuid("id", primary_key=True),
        _uuid("post_id", sa.ForeignKey("posts.id", ondelete="CASCADE"), nullable=False),
        _uuid("user_id", sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        _created_at(),
        sa.UniqueConstraint("post_id", "user_id", name="uq_likes_post_user"),
    )
    op.create_index("ix_likes_post_id", "likes", ["post_id"])
    op.create_index("ix_likes_user_id", "likes", ["user_id"])

    op.create_table(
        "comments",
        _uuid("id", primary_key=True),
        _uuid("post_id", sa.ForeignKey("posts.id", ondelete="CASCADE"), nullable=False),
        _uuid("user_id", sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_comments_post_id", "comments", ["post_id"])
    op.create_index("ix_comments_user_id", "comments", ["user_id"])

    op.create_table(
        "follows",
        _uuid("follower_id", sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        _uuid("following_id", sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("follower_id", "following_id", name="pk_follows"),
    )

    op.create_table(
        "messages",
        _uuid("id", primary_key=True),
        _uuid("sender_id", sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        _uuid("receiver_id", sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
    )
    op.create_index("ix_messages_sender_id", "messages", ["sender_id"])
    op.create_index("ix_messages_receiver_id", "messages", ["receiver_id"])
    op.create_index("ix_messages_created_at", "messages", ["created_at"])

    op.create_table(
        "notifications",
        _uuid("id", primary_key=True),
        _uuid("user_id", sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _uuid("related_user_id", sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        _uuid("related_post_id", sa.ForeignKey("posts.id", ondelete="SET NULL"), nullable=True),
        _created_at(),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])

    op.create_table(
        "references",
        _uuid("id", primary_key=True),
        _uuid("user_id", sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("url", sa.String(length=2048), nullable=True),
        sa.Column("file_path", sa.String(length=1024), nullable=True),
        sa.Column("file_name", sa.String(length=255), nullable=True),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_references_user_id", "references", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_references_user_id", table_name="references")
    op.drop_table("references")
    op.drop_index("ix_notifications_created_at", table_name="notifications")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_messages_created_at", table_name="messages")
    op.drop_index("ix_messages_receiver_id", table_name="messages")
    op.drop_index("ix_messages_sender_id", table_name="messages")
    op.drop_table("messages")
    op.drop_table("follows")
    op.drop_index("ix_comments_user_id", table_name="comments")
    op.drop_index("ix_comments_post_id", table_name="comments")
    op.drop_table("comments")
    op.drop_index("ix_likes_user_id", table_name="likes")
    op.drop_index("ix_likes_post_id", table_name="likes")
    op.drop_table("likes")
    op.drop_index("ix_posts_created_at", table_name="posts")
    op.drop_index("ix_posts_privacy_setting", table_name="posts")
    op.drop_index("ix_posts_skill_category", table_name="posts")
    op.drop_index("ix_posts_user_id", table_name="posts")
    op.drop_table("posts")
    op.drop_index("ix_profiles_username", table_name="profiles")
    op.drop_index("ix_profiles_email", table_name="profiles")
    op.drop_table("profiles")
