from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from inkwell.database import Base, utcnow


class Subscriber(Base):
    """Newsletter subscriber.

    Unsubscribing flips ``is_active`` and stamps ``unsubscribed_at``; the row
    is kept so a later subscribe reactivates it.
    """

    __tablename__ = "subscribers"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="1")
    subscribed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )
    unsubscribed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
