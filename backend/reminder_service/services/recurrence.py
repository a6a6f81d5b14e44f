"""
Recurrence engine: compute the next occurrence of a recurring reminder.

Pure and deterministic. Calendar steps and weekday checks are done on the
owner's local wall clock (``RecurrenceRule.timezone``, an IANA name, UTC when
unset or unknown); the result is returned as a UTC instant.

Rules:
- daily: +interval days.
- weekly without a day set: +7 * interval days.
- weekly with a day set (0 = Sunday .. 6 = Saturday, Sunday-started weeks):
  the next later qualifying day in the current week, otherwise the earliest
  qualifying day of the week ``interval`` weeks later. Local time of day is kept.
- monthly / yearly: calendar months / years via relativedelta; days past the
  end of the target month clamp to its last day (Jan 31 -> Feb 28/29).
- The series ends when the next instant is after ``end_date`` or the current
  occurrence already reached ``max_occurrences``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil.relativedelta import relativedelta

from reminder_service.schemas.reminder import RecurrenceType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecurrenceRule:
    type: RecurrenceType = RecurrenceType.NONE
    interval: int = 1
    days_of_week: tuple[int, ...] = ()
    end_date: datetime | None = None
    max_occurrences: int | None = None
    timezone: str = "UTC"

    @property
    def is_recurring(self) -> bool:
        return self.type != RecurrenceType.NONE


def _zone(name: str | None):
    if not name or name == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r; using UTC", name)
        return timezone.utc


def _sunday_based_weekday(dt: datetime) -> int:
    """0 = Sunday .. 6 = Saturday."""
    return (dt.weekday() + 1) % 7


def _next_weekly(scheduled_time: datetime, interval: int, days_of_week: tuple[int, ...]) -> datetime:
    days = sorted({d for d in days_of_week if isinstance(d, int) and 0 <= d <= 6})
    if not days:
        return scheduled_time + timedelta(days=7 * interval)
    current = _sunday_based_weekday(scheduled_time)
    for day in days:
        if day > current:
            return scheduled_time + timedelta(days=day - current)
    # Wrap to the first qualifying day of the week `interval` weeks on
    return scheduled_time + timedelta(days=7 * interval - current + days[0])


def next_occurrence(
    scheduled_time: datetime,
    rule: RecurrenceRule,
    occurrence: int = 1,
) -> datetime | None:
    """Return the UTC instant of the occurrence after ``scheduled_time``, or None if the series ended."""
    if not rule.is_recurring:
        return None
    if rule.max_occurrences is not None and occurrence >= rule.max_occurrences:
        return None
    interval = max(1, int(rule.interval or 1))
    if scheduled_time.tzinfo is None:
        scheduled_time = scheduled_time.replace(tzinfo=timezone.utc)
    # Aware arithmetic within one zone is wall-clock arithmetic
    local = scheduled_time.astimezone(_zone(rule.timezone))

    if rule.type == RecurrenceType.DAILY:
        nxt = local + timedelta(days=interval)
    elif rule.type == RecurrenceType.WEEKLY:
        nxt = _next_weekly(local, interval, rule.days_of_week)
    elif rule.type == RecurrenceType.MONTHLY:
        nxt = local + relativedelta(months=interval)
    elif rule.type == RecurrenceType.YEARLY:
        nxt = local + relativedelta(years=interval)
    else:
        return None
    nxt = nxt.astimezone(timezone.utc)

    if rule.end_date is not None and nxt > rule.end_date:
        return None
    return nxt


def next_occurrence_for(reminder, timezone_name: str | None = None) -> datetime | None:
    """next_occurrence() for a Reminder row, evaluated in the owner's timezone when given."""
    rule = reminder.recurrence
    if timezone_name:
        rule = replace(rule, timezone=timezone_name)
    return next_occurrence(reminder.scheduled_time, rule, reminder.occurrence or 1)
