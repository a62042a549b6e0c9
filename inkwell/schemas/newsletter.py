from __future__ import annotations

from datetime import datetime

from inkwell.schemas.common import CamelModel


class SubscriptionRequest(CamelModel):
    email: str | None = None


class SubscriberOut(CamelModel):
    id: int
    email: str
    is_active: bool
    subscribed_at: datetime
    unsubscribed_at: datetime | None = None


class SubscriberCount(CamelModel):
    active_subscribers: int
    unsubscribed: int
    total: int


class DeliveryResult(CamelModel):
    email: str
    success: bool
    error: str | None = None


class NotificationReport(CamelModel):
    total_subscribers: int
    successful: int
    failed: int
    results: list[DeliveryResult]
