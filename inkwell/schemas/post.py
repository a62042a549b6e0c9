"""Pydantic schemas for posts and comments."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from pydantic import Field, field_validator

from inkwell.schemas.common import CamelModel
from inkwell.utils.text import split_tags

MAX_COMMENT_LENGTH = 1000


class PostStatus(str, Enum):
    """Blog post status."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class FeaturedImage(CamelModel):
    url: str
    public_id: str | None = None
    alt: str | None = None


def _strip_required(value: object) -> object:
    if not isinstance(value, str):
        return value
    if not value.strip():
        raise ValueError("must not be empty")
    return value.strip()


class PostCreate(CamelModel):
    """Payload for creating a post (JSON body or multipart form fields)."""

    title: str = Field(..., max_length=200)
    excerpt: str = Field(..., max_length=500)
    content: str
    category: str = Field(..., max_length=100)
    tags: list[str] = Field(default_factory=list)
    status: PostStatus = PostStatus.DRAFT
    featured_image: str | None = None

    @field_validator("title", "excerpt", "content", "category", mode="before")
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        return _strip_required(value)

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, value: str | list[str] | None) -> list[str]:
        return split_tags(value)


class PostUpdate(CamelModel):
    """Partial update; empty strings are treated as "leave unchanged"."""

    title: str | None = Field(None, max_length=200)
    excerpt: str | None = Field(None, max_length=500)
    content: str | None = None
    category: str | None = Field(None, max_length=100)
    tags: list[str] | None = None
    status: PostStatus | None = None
    featured_image: str | None = None

    @field_validator("title", "excerpt", "content", "category", mode="before")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        if value is None or not str(value).strip():
            return None
        return str(value).strip()

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, value: str | list[str] | None) -> list[str] | None:
        if value is None or value == "":
            return None
        return split_tags(value)

    @field_validator("status", mode="before")
    @classmethod
    def blank_status(cls, value: str | None) -> str | None:
        return value or None


class CommentCreate(CamelModel):
    name: str | None = None
    email: str | None = None
    content: str | None = None


class CommentOut(CamelModel):
    id: str
    author_name: str
    author_email: str | None = None
    content: str
    likes: int = 0
    is_approved: bool = True
    created_at: datetime
    updated_at: datetime | None = None


class PostOut(CamelModel):
    """Post as returned by list and admin endpoints."""

    id: int
    title: str
    slug: str
    excerpt: str
    content: str
    author_id: uuid.UUID | None = None
    author_name: str
    category: str
    tags: list[str]
    featured_image: FeaturedImage | None = None
    status: PostStatus
    views: int
    likes: int
    read_time: int
    comment_count: int = 0
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class PostDetail(PostOut):
    """Single post with rendered HTML and its comments."""

    content_html: str
    comments: list[CommentOut] = Field(default_factory=list)


class RelatedPost(CamelModel):
    id: int
    title: str
    slug: str
    category: str
    featured_image: FeaturedImage | None = None
    published_at: datetime | None = None
    read_time: int
    relevance_score: int


class PostStats(CamelModel):
    views: int
    likes: int
    comments: int
