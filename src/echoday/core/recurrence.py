"""Recurrence engine - pure next-occurrence computation."""

import uuid
from dataclasses import replace
from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from .models import RecurrenceRule, Task, js_weekday


def next_date(rule: RecurrenceRule, base: datetime) -> datetime:
    """
    Compute the instant following ``base`` under ``rule``.

    Weekly rules with ``by_weekday`` move to the first listed weekday after
    base's weekday; past the last one it wraps to the first listed weekday of
    the following week. The interval only spaces weekly rules without
    weekdays. Monthly rules clamp the day of month (Jan 31 + 1 month -> Feb 28/29).
    """
    if rule.frequency == "daily":
        return base + timedelta(days=rule.interval)

    if rule.frequency == "weekly":
        if not rule.by_weekday:
            return base + timedelta(days=7 * rule.interval)
        current = js_weekday(base.date())
        later = [d for d in rule.by_weekday if d > current]
        if later:
            return base + timedelta(days=later[0] - current)
        return base + timedelta(days=rule.by_weekday[0] - current + 7)

    return base + relativedelta(months=rule.interval)


def is_finished(rule: RecurrenceRule, candidate: datetime) -> bool:
    """Whether the rule's end condition forbids ``candidate``."""
    ends = rule.ends
    if ends is None or ends.type == "never":
        return False
    if ends.type == "count":
        return rule.occurrences_done + 1 >= ends.count
    return candidate.date() > ends.on_date


def compute_next_occurrence(
    task: Task,
    now: datetime | None = None,
    new_id: str | None = None,
) -> Task | None:
    """
    Build the successor of a just-completed recurring task.

    Returns None when the task has no recurrence or the rule has ended.
    A task without a due instant recurs relative to ``now``; its successor
    stays unscheduled.
    Pure function - the caller appends the result next to the original.
    """
    rule = task.recurrence
    if rule is None:
        return None

    now = now or datetime.now()
    candidate = next_date(rule, task.due or now)
    if is_finished(rule, candidate):
        return None

    return replace(
        task,
        id=new_id or str(uuid.uuid4()),
        completed=False,
        created_at=now,
        due=candidate if task.due else None,
        is_deleted=False,
        reminders=[
            replace(r, triggered=False, snoozed_until=None, snoozed_count=0) for r in task.reminders
        ],
        recurrence=replace(rule, occurrences_done=rule.occurrences_done + 1),
        location_reminder=(
            replace(task.location_reminder, last_triggered_at=None)
            if task.location_reminder
            else None
        ),
        parent_id=task.parent_id or task.id,
    )
