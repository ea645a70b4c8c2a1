"""initial schema: users, tasks, social media posts, comments, likes

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_deleted_at", "users", ["deleted_at"])

    op.create_table(
        "tasks",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    op.create_index("ix_tasks_user_id", "tasks", ["user_id"])
    op.create_index("ix_tasks_deleted_at", "tasks", ["deleted_at"])
    op.create_index("ix_tasks_user_id_created_at", "tasks", ["user_id", "created_at"])

    op.create_table(
        "social_media_posts",
        sa.Column("post_id", sa.String(75), primary_key=True),
        sa.Column("post_text", sa.Text(), nullable=False),
        sa.Column("post_image", sa.Text(), nullable=False, server_default=""),
        sa.Column("likes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_liked", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    op.create_index("ix_social_media_posts_user_id", "social_media_posts", ["user_id"])
    op.create_index("ix_social_media_posts_created_at", "social_media_posts", ["created_at"])

    if op.get_bind().dialect.name == "postgresql":
        op.execute(
            "CREATE INDEX ix_social_media_posts_post_text_fts ON social_media_posts "
            "USING gin (to_tsvector('simple'::regconfig, post_text))"
        )

    op.create_table(
        "social_media_comments",
        sa.Column("comment_id", sa.String(75), primary_key=True),
        sa.Column("comment_text", sa.Text(), nullable=False),
        *_timestamps(),
        sa.Column(
            "post_id",
            sa.String(75),
            sa.ForeignKey("social_media_posts.post_id", ondelete="CASCADE", onupdate="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    op.create_index("ix_social_media_comments_post_id", "social_media_comments", ["post_id"])
    op.create_index("ix_social_media_comments_user_id", "social_media_comments", ["user_id"])

    op.create_table(
        "social_media_likes",
        sa.Column("like_id", sa.String(75), primary_key=True),
        *_timestamps(),
        sa.Column(
            "post_id",
            sa.String(75),
            sa.ForeignKey("social_media_posts.post_id", ondelete="CASCADE", onupdate="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint("post_id", "user_id", name="uq_social_media_likes_post_user"),
    )
    op.create_index("ix_social_media_likes_post_id", "social_media_likes", ["post_id"])
    op.create_index("ix_social_media_likes_user_id", "social_media_likes", ["user_id"])


def downgrade() -> None:
    op.drop_table("social_media_likes")
    op.drop_table("social_media_comments")
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP INDEX IF EXISTS ix_social_media_posts_post_text_fts")
    op.drop_table("social_media_posts")
    op.drop_table("tasks")
    op.drop_table("users")
