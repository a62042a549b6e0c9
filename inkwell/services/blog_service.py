"""Blog service layer: queries, scoring and serialisation for posts."""

from __future__ import annotations

import json
import logging
import os
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

import frontmatter
import markdown
from markdown.extensions.codehilite import CodeHiliteExtension
from markdown.extensions.fenced_code import FencedCodeExtension
from markdown.extensions.tables import TableExtension
from markdown.extensions.toc import TocExtension
from sqlalchemy import asc, case, desc, func, or_

from inkwell.models.post import Post
from inkwell.models.subscriber import Subscriber
from inkwell.schemas.common import Pagination
from inkwell.schemas.post import (
    CommentOut,
    FeaturedImage,
    PostDetail,
    PostOut,
    PostStats,
    PostStatus,
    RelatedPost,
)
from inkwell.utils.text import calculate_reading_time, generate_slug, split_tags

if TYPE_CHECKING:
    from sqlalchemy.orm import Query, Session

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "publishedAt": Post.published_at,
    "createdAt": Post.created_at,
    "updatedAt": Post.updated_at,
    "views": Post.views,
    "likes": Post.likes,
    "title": Post.title,
}
CATEGORY_MATCH_WEIGHT = 2
RELATED_LIMIT = 3


class InvalidSortError(ValueError):
    """Raised for a ``sort`` query value naming an unknown field."""


class BlogService:
    """Service for blog operations."""

    def __init__(self):
        """Initialize markdown processor."""
        self.md = markdown.Markdown(
            extensions=[
                FencedCodeExtension(),
                CodeHiliteExtension(css_class="highlight", linenums=False),
                TableExtension(),
                TocExtension(toc_depth="2-3"),
                "sane_lists",
            ]
        )

    def render_markdown(self, content: str) -> str:
        """Render markdown to HTML. Inline HTML from the editor passes through."""
        self.md.reset()
        return self.md.convert(content)

    @staticmethod
    def generate_slug(title: str) -> str:
        return generate_slug(title)

    @staticmethod
    def calculate_reading_time(content: str) -> int:
        return calculate_reading_time(content)

    def unique_slug(
        self, db: Session, title: str, exclude_id: int | None = None
    ) -> str:
        """Slug for ``title``, suffixed with epoch millis if already taken.

        The suffixed slug is not checked again.
        """
        slug = self.generate_slug(title)
        query = db.query(Post.id).filter(Post.slug == slug)
        if exclude_id is not None:
            query = query.filter(Post.id != exclude_id)
        if query.first() is not None:
            slug = f"{slug}-{int(datetime.now(UTC).timestamp() * 1000)}"
        return slug

    @staticmethod
    def parse_sort(sort: str) -> tuple[str, bool]:
        """Split ``-field`` into ``(field, descending)``."""
        descending = sort.startswith("-")
        field = sort[1:] if descending else sort
        if field not in SORT_FIELDS:
            raise InvalidSortError(f"Cannot sort by '{field}'")
        return field, descending

    def find_post(
        self, db: Session, ref: str | int, *, published_only: bool = False
    ) -> Post | None:
        """Look a post up by slug, falling back to its numeric id."""
        query = db.query(Post)
        if published_only:
            query = query.filter(Post.status == PostStatus.PUBLISHED.value)
        post = None
        if isinstance(ref, str):
            post = query.filter(Post.slug == ref.lower()).first()
        if post is None and str(ref).isdigit():
            post = query.filter(Post.id == int(ref)).first()
        return post

    def list_posts(
        self,
        db: Session,
        *,
        page: int = 1,
        limit: int = 10,
        category: str | None = None,
        search: str | None = None,
        status: PostStatus | None = None,
        sort: str = "-publishedAt",
    ) -> tuple[list[Post], Pagination]:
        """Filter, sort and paginate posts.

        ``status=None`` means every status (admin listing).
        """
        field, descending = self.parse_sort(sort)
        query: Query = db.query(Post)
        if status is not None:
            query = query.filter(Post.status == status.value)
        if category:
            query = query.filter(Post.category == category)
        if search:
            query = query.filter(
                or_(
                    Post.title.icontains(search, autoescape=True),
                    Post.excerpt.icontains(search, autoescape=True),
                    Post.content.icontains(search, autoescape=True),
                    Post.tags.icontains(search, autoescape=True),
                )
            )

        total = query.count()
        order = desc if descending else asc
        posts = (
            query.order_by(order(SORT_FIELDS[field]), desc(Post.id))
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return posts, Pagination.build(page, limit, total)

    def related_posts(
        self, db: Session, post: Post, limit: int = RELATED_LIMIT
    ) -> list[RelatedPost]:
        """Published posts sharing the category or a tag, best match first.

        Score is ``2 * same_category + shared_tags``; ties go to the most
        recently published.
        """
        tags = post.tag_list
        matches = [Post.category == post.category]
        # Tags are stored as a JSON array, so match each one as a quoted element.
        matches.extend(
            Post.tags.contains(json.dumps(tag, ensure_ascii=False), autoescape=True)
            for tag in tags
        )
        candidates = (
            db.query(Post)
            .filter(
                Post.id != post.id,
                Post.status == PostStatus.PUBLISHED.value,
                or_(*matches),
            )
            .all()
        )

        own_tags = set(tags)
        scored: list[tuple[int, float, Post]] = []
        for candidate in candidates:
            shared = len(own_tags & set(candidate.tag_list))
            same_category = candidate.category == post.category
            if not shared and not same_category:
                continue
            score = CATEGORY_MATCH_WEIGHT * int(same_category) + shared
            published = (
                candidate.published_at.timestamp() if candidate.published_at else 0.0
            )
            scored.append((score, published, candidate))

        scored.sort(key=lambda item: (item[0], item[1]), reverse=True)
        return [
            RelatedPost(
                id=candidate.id,
                title=candidate.title,
                slug=candidate.slug,
                category=candidate.category,
                featured_image=self.featured_image(candidate),
                published_at=candidate.published_at,
                read_time=candidate.read_time,
                relevance_score=score,
            )
            for score, _, candidate in scored[:limit]
        ]

    @staticmethod
    def dashboard_stats(db: Session) -> dict:
        """Counts for the admin dashboard."""
        stats = db.query(
            func.count(Post.id).label("total"),
            func.sum(
                case((Post.status == PostStatus.PUBLISHED.value, 1), else_=0)
            ).label("published"),
            func.sum(case((Post.status == PostStatus.DRAFT.value, 1), else_=0)).label(
                "draft"
            ),
            func.sum(Post.views).label("views"),
            func.sum(Post.likes).label("likes"),
        ).first()
        subscribers = (
            db.query(func.count(Subscriber.id))
            .filter(Subscriber.is_active.is_(True))
            .scalar()
        )

        return {
            "blogs": {
                "total": stats.total or 0,
                "published": stats.published or 0,
                "draft": stats.draft or 0,
            },
            "subscribers": {"total": subscribers or 0},
            "engagement": {
                "views": stats.views or 0,
                "likes": stats.likes or 0,
            },
        }

    @staticmethod
    def post_stats(post: Post) -> PostStats:
        return PostStats(views=post.views, likes=post.likes, comments=len(post.comments))

    @staticmethod
    def featured_image(post: Post) -> FeaturedImage | None:
        if not post.featured_image_url:
            return None
        return FeaturedImage(
            url=post.featured_image_url,
            public_id=post.featured_image_public_id,
            alt=post.featured_image_alt,
        )

    def to_public(self, post: Post) -> PostOut:
        """Convert a Post to its list/admin representation."""
        return PostOut(
            id=post.id,
            title=post.title,
            slug=post.slug,
            excerpt=post.excerpt,
            content=post.content,
            author_id=post.author_id,
            author_name=post.author_name,
            category=post.category,
            tags=post.tag_list,
            featured_image=self.featured_image(post),
            status=PostStatus(post.status),
            views=post.views,
            likes=post.likes,
            read_time=post.read_time,
            comment_count=len(post.comments),
            published_at=post.published_at,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )

    def to_detail(self, post: Post) -> PostDetail:
        """Public view of a single post with rendered HTML and comments."""
        public = self.to_public(post)
        return PostDetail(
            **public.model_dump(),
            content_html=self.render_markdown(post.content),
            comments=[CommentOut.model_validate(c) for c in post.comments],
        )

    def create_post_from_markdown_file(
        self,
        filepath: str | Path,
        db: Session,
        author_id: uuid.UUID | None = None,
        author_name: str = "Anonymous",
    ) -> Post:
        """Create a post from a markdown file with front matter."""
        with open(filepath, encoding="utf-8") as f:
            document = frontmatter.load(f)

        title = document.get("title", os.path.basename(str(filepath)))
        status = PostStatus(document.get("status", PostStatus.DRAFT.value))
        post = Post(
            title=title,
            slug=document.get("slug") or self.unique_slug(db, title),
            excerpt=document.get("excerpt", document.get("summary", "")),
            content=document.content,
            category=document.get("category", "Uncategorized"),
            status=status.value,
            author_id=author_id,
            author_name=author_name,
            featured_image_url=document.get("featured_image"),
            featured_image_alt=title if document.get("featured_image") else None,
        )
        post.tag_list = split_tags(document.get("tags", []))

        db.add(post)
        db.commit()
        db.refresh(post)
        return post

    def load_markdown_files(
        self,
        db: Session,
        directory: str = "data/posts",
        author_id: uuid.UUID | None = None,
        author_name: str = "Anonymous",
    ) -> int:
        """Load every ``*.md`` file in ``directory``, skipping known slugs.

        Returns:
            Number of files loaded
        """
        posts_dir = Path(directory)
        if not posts_dir.exists():
            logger.warning("Post directory %s does not exist", posts_dir)
            return 0

        loaded_count = 0
        for filepath in sorted(posts_dir.glob("*.md")):
            document = frontmatter.load(filepath)
            title = document.get("title", filepath.name)
            slug = document.get("slug") or self.generate_slug(title)
            if db.query(Post.id).filter(Post.slug == slug).first():
                logger.info("Skipping %s - slug '%s' already exists", filepath.name, slug)
                continue
            self.create_post_from_markdown_file(filepath, db, author_id, author_name)
            loaded_count += 1
            logger.info("Loaded %s", filepath.name)

        return loaded_count


# Singleton instance
blog_service = BlogService()
