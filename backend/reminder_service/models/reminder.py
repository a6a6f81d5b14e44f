from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reminder_service.db.base import Base
from reminder_service.db.types import UTCDateTime, utcnow
from reminder_service.schemas.reminder import Priority, RecurrenceType, ReminderSource, ReminderStatus
from reminder_service.services.recurrence import RecurrenceRule


class Reminder(Base):
    __tablename__ = "reminders"
    __table_args__ = (
        Index("ix_reminders_status_scheduled_time", "status", "scheduled_time"),
        Index("ix_reminders_user_status", "user_id", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default=Priority.MEDIUM.value)

    scheduled_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    recurrence_type: Mapped[str] = mapped_column(String(16), nullable=False, default=RecurrenceType.NONE.value)
    recurrence_interval: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    recurrence_days_of_week: Mapped[list[int] | None] = mapped_column(JSON(none_as_null=True), nullable=True)  # 0 = Sunday
    recurrence_end_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    recurrence_max_occurrences: Mapped[int | None] = mapped_column(Integer, nullable=True)
    occurrence: Mapped[int] = mapped_column(Integer, nullable=False, default=1)  # 1-based position in the series
    parent_id: Mapped[int | None] = mapped_column(ForeignKey("reminders.id", ondelete="SET NULL"), nullable=True)
    source: Mapped[str] = mapped_column(String(16), nullable=False, default=ReminderSource.MANUAL.value)
    # Set on a completed recurring reminder once its successor exists; never re-spawned after that
    next_occurrence_created_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default=ReminderStatus.PENDING.value, index=True)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    snooze_until: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    snooze_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    push_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    push_sent_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    push_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    email_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    email_sent_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    email_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_shared: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    share_token: Mapped[str | None] = mapped_column(String(512), nullable=True, index=True)
    shared_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    share_expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)

    user: Mapped["User"] = relationship("User", back_populates="reminders")

    @property
    def recurrence(self) -> RecurrenceRule:
        return RecurrenceRule(
            type=RecurrenceType(self.recurrence_type or RecurrenceType.NONE.value),
            interval=self.recurrence_interval or 1,
            days_of_week=tuple(self.recurrence_days_of_week or ()),
            end_date=self.recurrence_end_date,
            max_occurrences=self.recurrence_max_occurrences,
        )

    @property
    def is_delivered(self) -> bool:
        """Some channel already delivered the current trigger (cross-cycle suppression)."""
        return bool(self.push_sent or self.email_sent)

    def is_due(self, now: datetime) -> bool:
        if self.status == ReminderStatus.PENDING.value:
            return self.scheduled_time <= now
        if self.status == ReminderStatus.SNOOZED.value:
            return self.snooze_until is not None and self.snooze_until <= now
        return False
