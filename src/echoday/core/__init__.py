"""Functional core - pure scheduling logic with no I/O."""

from .errors import (
    ArchiveCommitError,
    EchoDayError,
    RemoteSyncError,
    SchedulingDriftError,
    TaskNotFoundError,
    ValidationError,
)
from .models import (
    ActiveReminder,
    LocationReminder,
    Note,
    RecurrenceEnd,
    RecurrenceRule,
    ReminderConfig,
    Task,
)
from .recurrence import compute_next_occurrence
from .reminders import check_reminders, mark_reminder_triggered, snooze_reminder
from .rollover import RolloverPlan, apply_rollover, plan_rollover, seconds_until_next_midnight
from .sync import merge_pulled, toggle_task

__all__ = [
    # Errors
    "EchoDayError",
    "ValidationError",
    "RemoteSyncError",
    "ArchiveCommitError",
    "SchedulingDriftError",
    "TaskNotFoundError",
    # Models
    "Task",
    "ReminderConfig",
    "RecurrenceRule",
    "RecurrenceEnd",
    "LocationReminder",
    "Note",
    "ActiveReminder",
    # Recurrence
    "compute_next_occurrence",
    # Reminders
    "check_reminders",
    "snooze_reminder",
    "mark_reminder_triggered",
    # Rollover
    "RolloverPlan",
    "plan_rollover",
    "apply_rollover",
    "seconds_until_next_midnight",
    # Sync
    "toggle_task",
    "merge_pulled",
]
