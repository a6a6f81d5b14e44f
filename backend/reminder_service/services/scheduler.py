"""
Reminder scheduler: three independently clocked periodic jobs on one
APScheduler AsyncIOScheduler.

- due:       every minute. Scan due reminders, deliver each one (push, email
             fallback), release snoozed ones back to pending.
- recurring: hourly. Create the next occurrence of completed recurring reminders.
- cleanup:   daily. Expire share links, delete old completed/cancelled reminders.

Each job has a skip-if-busy lock, so an overrunning cycle is never doubled up
by the next tick, and catches its own errors so one failed cycle never stops
later ones. One instance is built at process start and handed to whatever
needs manual triggers or status.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reminder_service.config import settings
from reminder_service.core.exceptions import DuplicateOccurrence
from reminder_service.db.types import utcnow
from reminder_service.metrics import CLEANUP_REMOVED, DUE_REMINDERS, JOB_RUNS, OCCURRENCES_CREATED
from reminder_service.models.reminder import Reminder
from reminder_service.schemas.reminder import DeliveryOutcome, ReminderSource, ReminderStatus
from reminder_service.schemas.scheduler import JobReport, JobStatus, SchedulerStatus
from reminder_service.services import reminder_store
from reminder_service.services.delivery import EmailSender, PushSender, deliver_reminder, deliver_test_notification
from reminder_service.services.email_service import send_email
from reminder_service.services.push_notifications import send_web_push
from reminder_service.services.recurrence import next_occurrence_for
from reminder_service.services.reminder_store import ReleaseSnooze
from reminder_service.services.scanner import DueScanner

logger = logging.getLogger(__name__)

JOB_DUE = "due"
JOB_RECURRING = "recurring"
JOB_CLEANUP = "cleanup"
JOB_NAMES = (JOB_DUE, JOB_RECURRING, JOB_CLEANUP)


class UnknownJob(KeyError):
    pass


@dataclass
class _JobState:
    name: str
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    runs: int = 0
    last_started_at: datetime | None = None
    last_finished_at: datetime | None = None
    last_error: str | None = None


async def create_next_occurrence(
    session: AsyncSession,
    parent: Reminder,
    *,
    now: datetime | None = None,
    timezone_name: str | None = None,
) -> Reminder | None:
    """
    Insert the reminder that follows ``parent`` in its series and mark the parent as spawned.
    Returns None when the series has ended; raises DuplicateOccurrence if it already exists.
    """
    next_time = next_occurrence_for(parent, timezone_name)
    if next_time is None:
        return None
    existing = await reminder_store.find_duplicate_occurrence(
        session, parent.user_id, parent.title, next_time, parent.recurrence_type
    )
    if existing is not None:
        raise DuplicateOccurrence(parent.id, existing.id)
    child = Reminder(
        user_id=parent.user_id,
        title=parent.title,
        description=parent.description,
        tags=list(parent.tags or []),
        priority=parent.priority,
        scheduled_time=next_time,
        recurrence_type=parent.recurrence_type,
        recurrence_interval=parent.recurrence_interval,
        recurrence_days_of_week=list(parent.recurrence_days_of_week) if parent.recurrence_days_of_week else None,
        recurrence_end_date=parent.recurrence_end_date,
        recurrence_max_occurrences=parent.recurrence_max_occurrences,
        occurrence=(parent.occurrence or 1) + 1,
        parent_id=parent.id,
        source=ReminderSource.RECURRING.value,
        status=ReminderStatus.PENDING.value,
    )
    parent.next_occurrence_created_at = now or utcnow()
    return await reminder_store.save(session, child)


class ReminderScheduler:
    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        *,
        push_sender: PushSender = send_web_push,
        email_sender: EmailSender = send_email,
        clock: Callable[[], datetime] = utcnow,
        concurrency: int | None = None,
    ):
        self._session_maker = session_maker
        self._push_sender = push_sender
        self._email_sender = email_sender
        self._clock = clock
        self._concurrency = max(1, concurrency or settings.delivery_concurrency)
        self._scanner = DueScanner(session_maker)
        self._scheduler: AsyncIOScheduler | None = None
        self._jobs = {name: _JobState(name) for name in JOB_NAMES}
        self._handlers: dict[str, Callable[[], Awaitable[dict[str, Any]]]] = {
            JOB_DUE: self.process_due_reminders,
            JOB_RECURRING: self.process_recurring_reminders,
            JOB_CLEANUP: self.cleanup_expired_data,
        }

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        """Register the three jobs and start ticking. Must be called with a running event loop."""
        if self.is_running:
            logger.info("Scheduler is already running")
            return
        scheduler = AsyncIOScheduler(timezone="UTC")
        common = {"max_instances": 1, "coalesce": True, "replace_existing": True}
        scheduler.add_job(
            self.run_job, "interval", seconds=settings.due_scan_interval_seconds,
            args=[JOB_DUE], id=JOB_DUE, **common,
        )
        scheduler.add_job(
            self.run_job, "cron", minute=settings.recurrence_cron_minute,
            args=[JOB_RECURRING], id=JOB_RECURRING, **common,
        )
        scheduler.add_job(
            self.run_job, "cron", hour=settings.cleanup_cron_hour, minute=0,
            args=[JOB_CLEANUP], id=JOB_CLEANUP, **common,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info(
            "Scheduler started: due every %ss, recurring hourly at :%02d, cleanup daily at %02d:00 UTC",
            settings.due_scan_interval_seconds,
            settings.recurrence_cron_minute,
            settings.cleanup_cron_hour,
        )

    async def shutdown(self, timeout: float = 10.0) -> None:
        """Stop ticking, then give in-flight jobs up to ``timeout`` seconds to finish."""
        if self._scheduler is not None:
            if self._scheduler.running:
                self._scheduler.shutdown(wait=False)
            self._scheduler = None
        for state in self._jobs.values():
            if not state.lock.locked():
                continue
            try:
                await asyncio.wait_for(state.lock.acquire(), timeout=timeout)
                state.lock.release()
            except asyncio.TimeoutError:
                logger.warning("Job %s still running at shutdown; abandoning it", state.name)
        logger.info("Scheduler shut down")

    async def run_job(self, name: str) -> JobReport:
        """Run one job now (scheduled tick or manual trigger). Skips if that job is already running."""
        state = self._jobs.get(name)
        if state is None:
            raise UnknownJob(name)
        if state.lock.locked():
            logger.info("Job %s still running; skipping this run", name)
            JOB_RUNS.labels(name, "skipped").inc()
            return JobReport(job=name, status="skipped")
        async with state.lock:
            started = self._clock()
            state.last_started_at = started
            try:
                result = await self._handlers[name]()
            except Exception as e:
                logger.exception("Error in %s scheduler job: %s", name, e)
                state.last_error = str(e)[:500]
                JOB_RUNS.labels(name, "failed").inc()
                return JobReport(job=name, status="failed", started_at=started, finished_at=self._clock(), error=state.last_error)
            finally:
                state.runs += 1
                state.last_finished_at = self._clock()
            state.last_error = None
            JOB_RUNS.labels(name, "ok").inc()
            return JobReport(job=name, status="ok", started_at=started, finished_at=state.last_finished_at, result=result)

    async def trigger_due_reminders_check(self) -> JobReport:
        return await self.run_job(JOB_DUE)

    async def trigger_recurring_reminders_check(self) -> JobReport:
        return await self.run_job(JOB_RECURRING)

    async def trigger_cleanup(self) -> JobReport:
        return await self.run_job(JOB_CLEANUP)

    def status(self) -> SchedulerStatus:
        jobs: dict[str, JobStatus] = {}
        for name, state in self._jobs.items():
            ap_job = self._scheduler.get_job(name) if self._scheduler is not None else None
            jobs[name] = JobStatus(
                scheduled=ap_job is not None and self.is_running,
                running=state.lock.locked(),
                next_run_at=getattr(ap_job, "next_run_time", None) if ap_job is not None else None,
                last_started_at=state.last_started_at,
                last_finished_at=state.last_finished_at,
                last_error=state.last_error,
                runs=state.runs,
            )
        return SchedulerStatus(is_running=self.is_running, total_jobs=len(jobs), jobs=jobs)

    # Job bodies

    async def process_due_reminders(self) -> dict[str, Any]:
        now = self._clock()
        due = await self._scanner.scan(now)
        DUE_REMINDERS.set(len(due))
        summary = {"due": len(due), "sent": 0, "failed": 0, "skipped": 0, "released": 0, "errors": 0}
        if not due:
            logger.debug("No due reminders found")
            return summary
        logger.info("Found %s due reminders", len(due))

        sem = asyncio.Semaphore(self._concurrency)

        async def run_one(reminder_id: int) -> tuple[DeliveryOutcome | None, bool]:
            async with sem:
                return await self._deliver_one(reminder_id, now)

        results = await asyncio.gather(*[run_one(r.id) for r in due], return_exceptions=True)
        for reminder, result in zip(due, results):
            if isinstance(result, BaseException):
                logger.error("Failed to process due reminder %s: %s", reminder.id, result)
                summary["errors"] += 1
                continue
            outcome, released = result
            if outcome is None or not (outcome.web_push.attempted or outcome.email.attempted):
                summary["skipped"] += 1
            elif outcome.success:
                summary["sent"] += 1
            else:
                summary["failed"] += 1
            if released:
                summary["released"] += 1
        logger.info(
            "Notification results: %s successful, %s failed, %s skipped, %s errors",
            summary["sent"], summary["failed"], summary["skipped"], summary["errors"],
        )
        return summary

    async def _deliver_one(self, reminder_id: int, now: datetime) -> tuple[DeliveryOutcome | None, bool]:
        """Deliver one reminder in its own transaction. Re-reads it so owner changes since the scan win."""
        async with self._session_maker() as session:
            try:
                reminder = await reminder_store.get_with_user(session, reminder_id)
                if reminder is None or not reminder.is_due(now):
                    return None, False
                was_snoozed = reminder.status == ReminderStatus.SNOOZED.value
                outcome = await deliver_reminder(
                    session,
                    reminder,
                    reminder.user,
                    push_sender=self._push_sender,
                    email_sender=self._email_sender,
                    now=now,
                )
                if was_snoozed:
                    await reminder_store.execute(
                        session, ReleaseSnooze(reminder.id, reset_delivery=reminder.scheduled_time > now)
                    )
                await session.commit()
                return outcome, was_snoozed
            except Exception:
                await session.rollback()
                raise

    async def send_test_notification(self, user_id: int) -> DeliveryOutcome | None:
        """Push / email test message to one user; None if the user does not exist."""
        async with self._session_maker() as session:
            user = await reminder_store.get_user(session, user_id)
            if user is None:
                return None
            outcome = await deliver_test_notification(
                session, user, push_sender=self._push_sender, email_sender=self._email_sender, now=self._clock()
            )
            await session.commit()
            return outcome

    async def process_recurring_reminders(self) -> dict[str, Any]:
        now = self._clock()
        async with self._session_maker() as session:
            parent_ids = [r.id for r in await reminder_store.find_completed_recurring(session, now)]
        summary = {"candidates": len(parent_ids), "created": 0, "ended": 0, "duplicates": 0, "errors": 0}
        if not parent_ids:
            logger.debug("No recurring reminders to process")
            return summary

        for parent_id in parent_ids:
            async with self._session_maker() as session:
                try:
                    parent = await reminder_store.get_with_user(session, parent_id)
                    if parent is None:
                        continue
                    try:
                        child = await create_next_occurrence(
                            session, parent, now=now, timezone_name=parent.user.timezone if parent.user else None
                        )
                    except DuplicateOccurrence as e:
                        # Successor exists (earlier run lost its marker); record it and move on
                        logger.debug("%s", e)
                        parent.next_occurrence_created_at = now
                        await session.commit()
                        summary["duplicates"] += 1
                        continue
                    if child is None:
                        summary["ended"] += 1
                        continue
                    await session.commit()
                    summary["created"] += 1
                    OCCURRENCES_CREATED.inc()
                    logger.debug("Created occurrence %s of reminder %s at %s", child.id, parent_id, child.scheduled_time)
                except Exception as e:
                    await session.rollback()
                    logger.error("Error creating next occurrence for reminder %s: %s", parent_id, e)
                    summary["errors"] += 1

        logger.info(
            "Recurring reminders processed: %s created, %s ended, %s duplicates, %s errors",
            summary["created"], summary["ended"], summary["duplicates"], summary["errors"],
        )
        return summary

    async def cleanup_expired_data(self) -> dict[str, Any]:
        now = self._clock()
        async with self._session_maker() as session:
            shares = await reminder_store.expire_share_links(session, now)
            completed = await reminder_store.find_stale(
                session, ReminderStatus.COMPLETED, now - timedelta(days=settings.completed_retention_days)
            )
            cancelled = await reminder_store.find_stale(
                session, ReminderStatus.CANCELLED, now - timedelta(days=settings.cancelled_retention_days)
            )
            for reminder in completed + cancelled:
                await reminder_store.delete(session, reminder)
            await session.commit()

        CLEANUP_REMOVED.labels("share_link").inc(shares)
        CLEANUP_REMOVED.labels("completed").inc(len(completed))
        CLEANUP_REMOVED.labels("cancelled").inc(len(cancelled))
        logger.info(
            "Cleanup: %s expired share links, %s old completed and %s old cancelled reminders removed",
            shares, len(completed), len(cancelled),
        )
        return {"expired_shares": shares, "completed_removed": len(completed), "cancelled_removed": len(cancelled)}
