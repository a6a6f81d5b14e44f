"""Reminder enums and delivery result shapes."""

from enum import Enum

from pydantic import BaseModel, Field


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ReminderStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    SNOOZED = "snoozed"


class RecurrenceType(str, Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ReminderSource(str, Enum):
    MANUAL = "manual"
    RECURRING = "recurring"
    SHARED = "shared"
    CALENDAR = "calendar"
    IMPORT = "import"


class Channel(str, Enum):
    WEB_PUSH = "web_push"
    EMAIL = "email"


class ErrorKind(str, Enum):
    CHANNEL_NOT_CONFIGURED = "channel_not_configured"
    SUBSCRIPTION_INVALID = "subscription_invalid"
    TRANSPORT_FAILURE = "transport_failure"
    RECIPIENT_INVALID = "recipient_invalid"
    DUPLICATE_OCCURRENCE = "duplicate_occurrence"


class ChannelResult(BaseModel):
    """Outcome of one channel for one reminder in one cycle."""

    attempted: bool = False
    sent: bool = False
    error: ErrorKind | None = None
    detail: str | None = None

    @classmethod
    def ok(cls) -> "ChannelResult":
        return cls(attempted=True, sent=True)

    @classmethod
    def failed(cls, error: ErrorKind, detail: str | None = None) -> "ChannelResult":
        return cls(attempted=True, sent=False, error=error, detail=detail[:500] if detail else None)


class DeliveryOutcome(BaseModel):
    reminder_id: int | None = None
    web_push: ChannelResult = Field(default_factory=ChannelResult)
    email: ChannelResult = Field(default_factory=ChannelResult)

    @property
    def success(self) -> bool:
        """At least one channel reports the reminder as sent."""
        return self.web_push.sent or self.email.sent
