"""Initial schema: users, posts, comments, subscribers, categories.

Revision ID: 20260301_01
Revises:
Create Date: 2026-03-01 00:00:00
"""

# pylint: disable=invalid-name,missing-module-docstring

from __future__ import annotations

import sqlalchemy as sa
from fastapi_users_db_sqlalchemy.generics import GUID

from alembic import op

# revision identifiers, used by Alembic.
revision = "20260301_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create every table, skipping ones a create_all already made."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", GUID(), nullable=False),
            sa.Column("email", sa.String(length=320), nullable=False),
            sa.Column("hashed_password", sa.String(length=1024), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False),
            sa.Column("is_superuser", sa.Boolean(), nullable=False),
            sa.Column("is_verified", sa.Boolean(), nullable=False),
            sa.Column("name", sa.String(length=50), nullable=False),
            sa.Column("avatar", sa.String(length=1024), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    if not inspector.has_table("posts"):
        op.create_table(
            "posts",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("title", sa.String(length=200), nullable=False),
            sa.Column("slug", sa.String(length=220), nullable=False),
            sa.Column("excerpt", sa.String(length=500), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("author_id", GUID(), nullable=True),
            sa.Column("author_name", sa.String(length=50), nullable=False),
            sa.Column("category", sa.String(length=100), nullable=False),
            sa.Column("tags", sa.Text(), nullable=False),
            sa.Column("featured_image_url", sa.String(length=1024), nullable=True),
            sa.Column("featured_image_public_id", sa.String(length=255), nullable=True),
            sa.Column("featured_image_alt", sa.String(length=200), nullable=True),
            sa.Column(
                "status", sa.String(length=20), nullable=False, server_default="draft"
            ),
            sa.Column("views", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("likes", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("read_time", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["author_id"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_posts_id"), "posts", ["id"], unique=False)
        op.create_index(op.f("ix_posts_slug"), "posts", ["slug"], unique=True)
        op.create_index(op.f("ix_posts_author_id"), "posts", ["author_id"], unique=False)
        op.create_index(op.f("ix_posts_category"), "posts", ["category"], unique=False)
        op.create_index(op.f("ix_posts_status"), "posts", ["status"], unique=False)
        op.create_index(
            op.f("ix_posts_published_at"), "posts", ["published_at"], unique=False
        )
        op.create_index(op.f("ix_posts_created_at"), "posts", ["created_at"], unique=False)
        op.create_index(
            "ix_posts_status_published_at",
            "posts",
            ["status", "published_at"],
            unique=False,
        )

    if not inspector.has_table("comments"):
        op.create_table(
            "comments",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("post_id", sa.Integer(), nullable=False),
            sa.Column("author_name", sa.String(length=100), nullable=False),
            sa.Column("author_email", sa.String(length=320), nullable=True),
            sa.Column("content", sa.String(length=1000), nullable=False),
            sa.Column("likes", sa.Integer(), nullable=False, server_default="0"),
            sa.Column(
                "is_approved", sa.Boolean(), nullable=False, server_default=sa.true()
            ),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["post_id"], ["posts.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(
            op.f("ix_comments_post_id"), "comments", ["post_id"], unique=False
        )

    if not inspector.has_table("subscribers"):
        op.create_table(
            "subscribers",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("email", sa.String(length=320), nullable=False),
            sa.Column(
                "is_active", sa.Boolean(), nullable=False, server_default=sa.true()
            ),
            sa.Column("subscribed_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("unsubscribed_at", sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_subscribers_id"), "subscribers", ["id"], unique=False)
        op.create_index(
            op.f("ix_subscribers_email"), "subscribers", ["email"], unique=True
        )
        op.create_index(
            op.f("ix_subscribers_subscribed_at"),
            "subscribers",
            ["subscribed_at"],
            unique=False,
        )

    if not inspector.has_table("categories"):
        op.create_table(
            "categories",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("description", sa.String(length=500), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_categories_id"), "categories", ["id"], unique=False)
        op.create_index(op.f("ix_categories_name"), "categories", ["name"], unique=True)


def downgrade():
    """Drop every table."""
    op.drop_table("categories")
    op.drop_table("subscribers")
    op.drop_table("comments")
    op.drop_table("posts")
    op.drop_table("users")
