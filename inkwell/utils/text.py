"""Slug, reading-time and email helpers shared by services and model hooks."""

from __future__ import annotations

import math

from pydantic import validate_email
from pydantic_core import PydanticCustomError
from slugify import slugify

WORDS_PER_MINUTE = 200
SLUG_MAX_LENGTH = 200


def generate_slug(title: str) -> str:
    """Generate a URL-safe slug from a title.

    Falls back to ``post`` when the title has no sluggable characters.
    """
    return slugify(title, max_length=SLUG_MAX_LENGTH) or "post"


def calculate_reading_time(content: str, words_per_minute: int = WORDS_PER_MINUTE) -> int:
    """Estimated reading time in whole minutes, never less than one."""
    word_count = len(content.split())
    return max(1, math.ceil(word_count / words_per_minute))


def normalize_email(value: str | None) -> str | None:
    """Return the lower-cased address, or None when it is not a valid email."""
    if not value or not value.strip():
        return None
    try:
        _, email = validate_email(value.strip())
    except PydanticCustomError:
        return None
    return email.lower()


def split_tags(value: str | list[str] | None) -> list[str]:
    """Accept a comma separated string or a list and return clean tags."""
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else value
    return [str(item).strip() for item in items if str(item).strip()]
