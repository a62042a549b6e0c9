#!/usr/bin/env python3
"""Import Markdown files with front matter as blog posts.

Usage: python tools/load_posts.py [DIRECTORY] [--author-email EMAIL]
"""

from __future__ import annotations

import argparse
import logging

import inkwell.db_events  # noqa: F401 - slug/read-time hooks
from inkwell.config import settings
from inkwell.database import Base, SessionLocal, engine
from inkwell.models.user import User
from inkwell.observability.logging import configure_logging
from inkwell.services.blog_service import blog_service

logger = logging.getLogger("inkwell.tools.load_posts")


def main() -> int:
    parser = argparse.ArgumentParser(description="Load Markdown posts")
    parser.add_argument("directory", nargs="?", default="data/posts")
    parser.add_argument("--author-email", default=settings.admin_email)
    args = parser.parse_args()

    configure_logging(settings.log_level.upper())
    Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        author = db.query(User).filter(User.email == args.author_email).first()
        if author is None:
            logger.warning("No user %s; posts will have no author", args.author_email)
        loaded = blog_service.load_markdown_files(
            db,
            args.directory,
            author_id=author.id if author else None,
            author_name=author.name if author else "Anonymous",
        )
    logger.info("Loaded %d post(s) from %s", loaded, args.directory)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
