"""ORM lifecycle listeners for derived post fields."""

from __future__ import annotations

from typing import Any

from sqlalchemy import event

from inkwell.database import utcnow
from inkwell.models.post import Post
from inkwell.schemas.post import PostStatus
from inkwell.utils.text import calculate_reading_time, generate_slug


def _derive_post_fields(mapper: Any, connection: Any, target: Post) -> None:
    """Fill slug, read time and first-publish timestamp before a flush.

    ``published_at`` is only ever set when empty, so it survives later
    status changes.
    """
    if not target.slug and target.title:
        target.slug = generate_slug(target.title)
    if target.content:
        target.read_time = calculate_reading_time(target.content)
    if target.status == PostStatus.PUBLISHED.value and target.published_at is None:
        target.published_at = utcnow()


def attach_post_listeners() -> None:
    """Attach the post save hooks once per process."""
    for identifier in ("before_insert", "before_update"):
        if not event.contains(Post, identifier, _derive_post_fields):
            event.listen(Post, identifier, _derive_post_fields)


attach_post_listeners()
