"""Templated newsletter emails."""

from __future__ import annotations

import logging
import smtplib
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import quote

from jinja2 import Environment, FileSystemLoader, select_autoescape

from inkwell.config import settings
from inkwell.observability.metrics import EMAILS_SENT
from inkwell.schemas.newsletter import DeliveryResult
from inkwell.services.mailer import mailer

if TYPE_CHECKING:
    from inkwell.models.post import Post
    from inkwell.models.subscriber import Subscriber

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html"]),
)


def _links(email: str) -> dict[str, str]:
    site = settings.frontend_url.rstrip("/")
    return {
        "site_url": site,
        "unsubscribe_url": f"{site}/unsubscribe?email={quote(email)}",
        "subscribe_url": f"{site}/subscribe",
    }


def render(template: str, **context) -> tuple[str, str]:
    """Render the ``.txt`` and ``.html`` variants of an email template."""
    context.setdefault("site_name", settings.email_from_name)
    context.setdefault("year", datetime.now(UTC).year)
    text = env.get_template(f"{template}.txt").render(**context)
    html = env.get_template(f"{template}.html").render(**context)
    return text, html


def _deliver(template: str, subject: str, to_addr: str, **context) -> None:
    text, html = render(template, **context)
    try:
        mailer.send(subject, to_addr, text, html)
    except (smtplib.SMTPException, OSError):
        EMAILS_SENT.labels(template, "failed").inc()
        raise
    EMAILS_SENT.labels(template, "sent").inc()


def send_welcome_email(email: str) -> bool:
    """Background task: greet a new or returning subscriber."""
    try:
        _deliver(
            "welcome",
            f"Welcome to {settings.email_from_name} - Thanks for Subscribing!",
            email,
            **_links(email),
        )
    except (smtplib.SMTPException, OSError):
        logger.exception("Failed to send welcome email to %s", email)
        return False
    return True


def send_unsubscribe_confirmation(email: str) -> bool:
    """Background task: confirm an unsubscribe."""
    try:
        _deliver(
            "unsubscribed",
            f"You've been unsubscribed from {settings.email_from_name}",
            email,
            **_links(email),
        )
    except (smtplib.SMTPException, OSError):
        logger.exception("Failed to send unsubscribe confirmation to %s", email)
        return False
    return True


def send_new_post_notification(
    subscribers: list[Subscriber], post: Post
) -> list[DeliveryResult]:
    """Email ``post`` to each subscriber in turn, collecting per-address results."""
    site = settings.frontend_url.rstrip("/")
    results: list[DeliveryResult] = []
    for index, subscriber in enumerate(subscribers):
        if index and settings.notify_send_interval > 0:
            time.sleep(settings.notify_send_interval)
        try:
            _deliver(
                "new_post",
                f"New Post: {post.title}",
                subscriber.email,
                post=post,
                post_url=f"{site}/blog/{post.slug}",
                published=post.published_at or post.created_at,
                **_links(subscriber.email),
            )
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send new post email to %s: %s", subscriber.email, exc)
            results.append(
                DeliveryResult(email=subscriber.email, success=False, error=str(exc))
            )
            continue
        logger.info("New post notification sent to %s", subscriber.email)
        results.append(DeliveryResult(email=subscriber.email, success=True))
    return results
