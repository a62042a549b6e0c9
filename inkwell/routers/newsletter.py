"""Newsletter subscription endpoints and new-post notifications."""

from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Response
from sqlalchemy import desc, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette.background import BackgroundTask

from inkwell.auth import current_admin_user
from inkwell.database import get_db, utcnow
from inkwell.models.subscriber import Subscriber
from inkwell.models.user import User
from inkwell.schemas.newsletter import (
    NotificationReport,
    SubscriberCount,
    SubscriberOut,
    SubscriptionRequest,
)
from inkwell.schemas.post import PostStatus
from inkwell.services import notifications
from inkwell.services.blog_service import blog_service
from inkwell.utils.responses import envelope, error_response
from inkwell.utils.text import normalize_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/newsletter", tags=["newsletter"])


def _require_email(payload: SubscriptionRequest) -> str:
    if not payload.email or not payload.email.strip():
        raise HTTPException(status_code=400, detail="Email is required")
    email = normalize_email(payload.email)
    if email is None:
        raise HTTPException(
            status_code=400, detail="Please provide a valid email address"
        )
    return email


def _find_subscriber(db: Session, email: str) -> Subscriber | None:
    return db.query(Subscriber).filter(Subscriber.email == email).first()


@router.post("/subscribe")
async def subscribe(
    payload: SubscriptionRequest,
    response: Response,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """Subscribe, or reactivate a lapsed subscription.

    The welcome email goes out in every branch, including a repeat subscribe.
    """
    email = _require_email(payload)
    subscriber = _find_subscriber(db, email)

    if subscriber and subscriber.is_active:
        return error_response(
            400,
            "This email is already subscribed to our newsletter",
            background=BackgroundTask(notifications.send_welcome_email, email),
        )

    if subscriber:
        subscriber.is_active = True
        subscriber.subscribed_at = utcnow()
        subscriber.unsubscribed_at = None
        message = "Welcome back! Your subscription has been reactivated"
    else:
        subscriber = Subscriber(email=email)
        db.add(subscriber)
        response.status_code = 201
        message = (
            "Successfully subscribed to the newsletter! "
            "Check your email for confirmation"
        )

    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent subscribe for the same address.
        db.rollback()
        raise HTTPException(
            status_code=400,
            detail="This email is already subscribed to our newsletter",
        )
    db.refresh(subscriber)
    logger.info("Subscriber %s active", subscriber.id)
    background_tasks.add_task(notifications.send_welcome_email, email)
    return envelope(message, SubscriberOut.model_validate(subscriber))


@router.post("/unsubscribe")
async def unsubscribe(
    payload: SubscriptionRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    if not payload.email or not payload.email.strip():
        raise HTTPException(status_code=400, detail="Email is required")
    email = payload.email.strip().lower()

    subscriber = _find_subscriber(db, email)
    if not subscriber:
        raise HTTPException(
            status_code=404, detail="Email not found in our subscriber list"
        )
    if not subscriber.is_active:
        raise HTTPException(status_code=400, detail="This email is already unsubscribed")

    subscriber.is_active = False
    subscriber.unsubscribed_at = utcnow()
    db.commit()
    db.refresh(subscriber)

    background_tasks.add_task(notifications.send_unsubscribe_confirmation, email)
    return envelope(
        "Successfully unsubscribed from the newsletter. "
        "Check your email for confirmation.",
        SubscriberOut.model_validate(subscriber),
    )


@router.get("/count")
async def subscriber_count(
    db: Session = Depends(get_db),
    _: User = Depends(current_admin_user),
):
    active = (
        db.query(func.count(Subscriber.id))
        .filter(Subscriber.is_active.is_(True))
        .scalar()
    )
    total = db.query(func.count(Subscriber.id)).scalar()
    counts = SubscriberCount(
        active_subscribers=active or 0,
        unsubscribed=(total or 0) - (active or 0),
        total=total or 0,
    )
    return envelope("Subscriber count retrieved successfully", counts)


@router.get("/subscribers")
async def list_subscribers(
    status: Literal["active", "inactive"] | None = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(current_admin_user),
):
    query = db.query(Subscriber)
    if status == "active":
        query = query.filter(Subscriber.is_active.is_(True))
    elif status == "inactive":
        query = query.filter(Subscriber.is_active.is_(False))
    subscribers = query.order_by(desc(Subscriber.subscribed_at), desc(Subscriber.id))
    return envelope(
        "Subscribers retrieved successfully",
        [SubscriberOut.model_validate(s) for s in subscribers],
    )


@router.post("/notify/{blog_ref}")
def notify_subscribers(
    blog_ref: str,
    db: Session = Depends(get_db),
    _: User = Depends(current_admin_user),
):
    """Email a published post to every active subscriber.

    Sync so the paced sends run in the threadpool.
    """
    post = blog_service.find_post(db, blog_ref)
    if not post:
        raise HTTPException(status_code=404, detail="Blog not found")
    if post.status != PostStatus.PUBLISHED.value:
        raise HTTPException(
            status_code=400, detail="Can only notify for published blogs"
        )

    subscribers = (
        db.query(Subscriber).filter(Subscriber.is_active.is_(True)).all()
    )
    if not subscribers:
        return envelope("No active subscribers to notify", {"count": 0})

    results = notifications.send_new_post_notification(subscribers, post)
    successful = sum(1 for r in results if r.success)
    report = NotificationReport(
        total_subscribers=len(subscribers),
        successful=successful,
        failed=len(results) - successful,
        results=results,
    )
    logger.info(
        "Notified %d/%d subscribers about post %s",
        successful,
        len(subscribers),
        post.id,
    )
    return envelope("Notifications sent successfully", report)
