from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reminder_service.db.base import Base
from reminder_service.db.types import UTCDateTime, utcnow


class User(Base):
    """Notification-relevant projection of a user account."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    username: Mapped[str | None] = mapped_column(String(30), nullable=True)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    language: Mapped[str] = mapped_column(String(8), nullable=False, default="fa")  # en | fa
    # IANA name; weekly day sets and calendar steps are evaluated in this zone
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="Asia/Tehran")

    push_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # {"endpoint": ..., "keys": {"p256dh": ..., "auth": ...}} or NULL once the endpoint is gone
    push_subscription: Mapped[dict[str, Any] | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    email_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    email_fallback: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)

    reminders: Mapped[list["Reminder"]] = relationship(
        "Reminder", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def display_name(self) -> str:
        return self.first_name or self.username or self.email.split("@")[0]
