"""Blog post and comment models."""

from __future__ import annotations

import json
import uuid
from datetime import datetime

from fastapi_users_db_sqlalchemy.generics import GUID
from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inkwell.database import Base, utcnow


class Post(Base):
    """Blog post.

    Status values:
    - draft: Not yet published
    - published: Live and visible
    - archived: No longer listed but kept for records

    ``slug``, ``read_time`` and ``published_at`` are derived on save by the
    listeners in ``inkwell.db_events``.
    """

    __tablename__ = "posts"
    __table_args__ = (Index("ix_posts_status_published_at", "status", "published_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(200))
    slug: Mapped[str] = mapped_column(String(220), unique=True, index=True)
    excerpt: Mapped[str] = mapped_column(String(500), default="")
    content: Mapped[str] = mapped_column(Text)
    author_id: Mapped[uuid.UUID | None] = mapped_column(
        GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    author_name: Mapped[str] = mapped_column(String(50), default="Anonymous")
    category: Mapped[str] = mapped_column(
        String(100), default="Uncategorized", index=True
    )
    tags: Mapped[str] = mapped_column(Text, default="[]")  # JSON array as text
    featured_image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    featured_image_public_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    featured_image_alt: Mapped[str | None] = mapped_column(String(200), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default="draft", server_default="draft", index=True
    )
    views: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    likes: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    read_time: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    published_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    comments: Mapped[list[Comment]] = relationship(
        back_populates="post",
        cascade="all, delete-orphan",
        order_by="Comment.created_at",
    )

    @property
    def tag_list(self) -> list[str]:
        if not self.tags:
            return []
        try:
            return json.loads(self.tags)
        except json.JSONDecodeError:
            return []

    @tag_list.setter
    def tag_list(self, values: list[str]) -> None:
        self.tags = json.dumps([v for v in values if v], ensure_ascii=False)

    def add_comment(self, name: str, content: str, email: str | None = None) -> Comment:
        """Append an auto-approved comment and return it."""
        comment = Comment(
            author_name=name,
            author_email=email,
            content=content,
            is_approved=True,
        )
        self.comments.append(comment)
        return comment


class Comment(Base):
    """Reader comment on a post. Append-only."""

    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), index=True
    )
    author_name: Mapped[str] = mapped_column(String(100))
    author_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    content: Mapped[str] = mapped_column(String(1000))
    likes: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    is_approved: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default="1"
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    post: Mapped[Post] = relationship(back_populates="comments")
