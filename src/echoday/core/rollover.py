"""Daily rollover planning - pure partition and carry-forward logic."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta

from .errors import SchedulingDriftError
from .models import Note, Task


@dataclass
class RolloverPlan:
    """What a rollover for ``day`` would archive and keep."""

    day: date
    tasks_to_archive: list[Task] = field(default_factory=list)
    notes_to_archive: list[Note] = field(default_factory=list)
    carried_forward: list[str] = field(default_factory=list)

    @property
    def archived_ids(self) -> set[str]:
        return {t.id for t in self.tasks_to_archive}

    @property
    def archived_note_ids(self) -> set[str]:
        return {n.id for n in self.notes_to_archive}

    @property
    def has_archivable_items(self) -> bool:
        return bool(self.tasks_to_archive or self.notes_to_archive)


def carry_window(today: date) -> tuple[datetime, datetime]:
    """The [yesterday 00:00, today 00:00) window of items to carry forward."""
    start_of_today = datetime.combine(today, time.min)
    return start_of_today - timedelta(days=1), start_of_today


def should_carry_forward(task: Task, today: date) -> bool:
    if task.completed or task.is_deleted or task.due is None:
        return False
    start, end = carry_window(today)
    return start <= task.due < end


def plan_rollover(
    tasks: list[Task],
    notes: list[Note],
    today: date,
    held: set[str] | frozenset[str] = frozenset(),
) -> RolloverPlan:
    """
    Partition the collections for today's rollover.

    - Completed, non-deleted tasks are archived, except ids in ``held``
      whose completion the remote has not confirmed yet.
    - Notes without a pin/favorite flag are archived; the rest stay live.
    - Unfinished tasks due yesterday are carried forward one day.

    Pure function - no I/O.
    """
    return RolloverPlan(
        day=today,
        tasks_to_archive=[t for t in tasks if t.completed and not t.is_deleted and t.id not in held],
        notes_to_archive=[n for n in notes if not n.is_kept and not n.is_deleted],
        carried_forward=[t.id for t in tasks if should_carry_forward(t, today)],
    )


def apply_rollover(tasks: list[Task], archived_ids: set[str], today: date) -> list[Task]:
    """
    Build the post-rollover task collection.

    Archived tasks are dropped only while they are still completed; soft-deleted
    tasks stay until their remote delete is acknowledged. Order is preserved.
    """
    result = []
    for task in tasks:
        if task.id in archived_ids and task.completed and not task.is_deleted:
            continue
        if should_carry_forward(task, today):
            task = replace(task, due=task.due + timedelta(days=1))
        result.append(task)
    return result


def seconds_until_next_midnight(now: datetime, minimum: float = 1.0) -> float:
    """
    Delay until the next local midnight, floored to ``minimum`` seconds.

    Raises SchedulingDriftError for timezone-aware instants, which do not
    belong to the naive local clock the scheduler runs on.
    """
    if now.tzinfo is not None:
        raise SchedulingDriftError(f"Expected a naive local time, got {now.isoformat()}")
    midnight = datetime.combine(now.date() + timedelta(days=1), time.min)
    return max(minimum, (midnight - now).total_seconds())
