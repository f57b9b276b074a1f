"""Reminder evaluation - pure due-set computation and reminder transitions."""

from dataclasses import replace
from datetime import datetime, timedelta

from .models import ActiveReminder, ReminderConfig, Task

# Past this bound an overdue reminder is skipped instead of fired.
DEFAULT_STALE_AFTER = timedelta(minutes=120)

LOCATION_REMINDER_ID = "location"


def trigger_point(task: Task, reminder: ReminderConfig) -> datetime | None:
    """
    The instant a reminder becomes due.

    A snoozed reminder is anchored on its snooze deadline; otherwise relative
    reminders count back from the task's due instant and absolute reminders
    use their own time. Location reminders have no trigger point here.
    """
    if reminder.snoozed_until is not None:
        return reminder.snoozed_until
    if reminder.kind == "relative":
        if task.due is None:
            return None
        return task.due - timedelta(minutes=reminder.minutes_before)
    if reminder.kind == "absolute":
        return reminder.absolute_time
    return None


def reminder_message(task: Task) -> str:
    return f"Reminder: {task.text}"


def check_reminders(
    tasks: list[Task],
    now: datetime,
    stale_after: timedelta = DEFAULT_STALE_AFTER,
) -> list[ActiveReminder]:
    """
    Compute the reminders that are currently due.

    A reminder is due when it is not yet triggered, its trigger point has
    passed, and it is at most ``stale_after`` overdue. Deleted and completed
    tasks never produce reminders.
    Pure function - de-duplication across ticks is the caller's job.
    """
    due: list[ActiveReminder] = []
    for task in tasks:
        if task.is_deleted or task.completed:
            continue
        for reminder in task.reminders:
            if reminder.triggered or reminder.kind == "location":
                continue
            at = trigger_point(task, reminder)
            if at is None or now < at:
                continue
            if now - at > stale_after:
                continue
            due.append(
                ActiveReminder(
                    task_id=task.id,
                    reminder_id=reminder.id,
                    message=reminder_message(task),
                    priority=task.priority,
                    created_at=now,
                )
            )
    return due


def _update_reminder(tasks: list[Task], task_id: str, reminder_id: str, **changes) -> list[Task]:
    updated = []
    for task in tasks:
        if task.id == task_id and task.reminder(reminder_id) is not None:
            task = replace(
                task,
                reminders=[
                    replace(r, **changes) if r.id == reminder_id else r for r in task.reminders
                ],
            )
        updated.append(task)
    return updated


def snooze_reminder(
    tasks: list[Task],
    task_id: str,
    reminder_id: str,
    minutes: int,
    now: datetime,
) -> list[Task]:
    """Push a reminder's trigger point ``minutes`` past ``now`` and re-arm it."""
    task = next((t for t in tasks if t.id == task_id), None)
    reminder = task.reminder(reminder_id) if task else None
    if reminder is None:
        return list(tasks)
    return _update_reminder(
        tasks,
        task_id,
        reminder_id,
        triggered=False,
        snoozed_until=now + timedelta(minutes=minutes),
        snoozed_count=reminder.snoozed_count + 1,
    )


def mark_reminder_triggered(tasks: list[Task], task_id: str, reminder_id: str) -> list[Task]:
    """Mark a reminder acknowledged; it will not fire again this cycle."""
    return _update_reminder(tasks, task_id, reminder_id, triggered=True, snoozed_until=None)


def record_location_trigger(tasks: list[Task], task_id: str, now: datetime) -> list[Task]:
    """Stamp a task's geofence as fired. ``reminders`` is left untouched."""
    updated = []
    for task in tasks:
        if task.id == task_id and task.location_reminder is not None:
            task = replace(
                task,
                location_reminder=replace(task.location_reminder, last_triggered_at=now),
            )
        updated.append(task)
    return updated
