"""Prometheus metrics for the scheduler and delivery path (exposed at /metrics)."""

from prometheus_client import Counter, Gauge

NOTIFICATIONS = Counter(
    "reminder_notifications_total",
    "Notification attempts by channel and result",
    ["channel", "result"],
)
JOB_RUNS = Counter(
    "reminder_scheduler_job_runs_total",
    "Scheduler job runs by job and outcome (ok, failed, skipped)",
    ["job", "outcome"],
)
DUE_REMINDERS = Gauge(
    "reminder_due_last_cycle",
    "Number of due reminders found by the last due-processing cycle",
)
OCCURRENCES_CREATED = Counter(
    "reminder_occurrences_created_total",
    "Next occurrences created for recurring reminders",
)
CLEANUP_REMOVED = Counter(
    "reminder_cleanup_removed_total",
    "Reminders deleted or share links expired by the cleanup job",
    ["kind"],
)
