from datetime import datetime

from fastapi_users_db_sqlalchemy import SQLAlchemyBaseUserTableUUID
from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from inkwell.database import Base, utcnow


class User(SQLAlchemyBaseUserTableUUID, Base):
    """Blog account. Superusers carry the ``admin`` role."""

    __tablename__ = "users"
    name: Mapped[str] = mapped_column(String(50), default="")
    avatar: Mapped[str | None] = mapped_column(String(1024), default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    @property
    def role(self) -> str:
        return "admin" if self.is_superuser else "user"
