"""Task lifecycle transitions and pull-merge logic - pure, no I/O."""

from dataclasses import replace
from datetime import datetime, timedelta

from .models import Note, Task
from .recurrence import compute_next_occurrence


def find_task(tasks: list[Task], task_id: str) -> Task | None:
    return next((t for t in tasks if t.id == task_id), None)


def replace_task(tasks: list[Task], updated: Task) -> list[Task]:
    """Swap the task with ``updated.id`` in place, preserving order."""
    return [updated if t.id == updated.id else t for t in tasks]


def toggle_task(
    tasks: list[Task],
    task_id: str,
    now: datetime | None = None,
    new_id: str | None = None,
) -> tuple[list[Task], Task | None]:
    """
    Flip a task's completed flag.

    Completing a recurring task appends its successor right after it.
    Returns: (new_tasks, successor_or_none)
    """
    task = find_task(tasks, task_id)
    if task is None:
        return list(tasks), None

    toggled = replace(task, completed=not task.completed)
    successor = None
    if toggled.completed and toggled.recurrence is not None:
        successor = compute_next_occurrence(toggled, now=now, new_id=new_id)

    result = []
    for t in tasks:
        if t.id == task_id:
            result.append(toggled)
            if successor is not None:
                result.append(successor)
        else:
            result.append(t)
    return result, successor


def set_completed(tasks: list[Task], task_id: str, completed: bool) -> list[Task]:
    task = find_task(tasks, task_id)
    if task is None:
        return list(tasks)
    return replace_task(tasks, replace(task, completed=completed))


def soft_delete(tasks: list[Task], task_id: str) -> list[Task]:
    task = find_task(tasks, task_id)
    if task is None:
        return list(tasks)
    return replace_task(tasks, replace(task, is_deleted=True))


def restore_deleted(tasks: list[Task], task_id: str) -> list[Task]:
    task = find_task(tasks, task_id)
    if task is None:
        return list(tasks)
    return replace_task(tasks, replace(task, is_deleted=False))


def remove_tasks(tasks: list[Task], ids: set[str]) -> list[Task]:
    return [t for t in tasks if t.id not in ids]


def select_new_items(tasks: list[Task], now: datetime, window: timedelta) -> list[Task]:
    """Tasks created within ``window`` of ``now`` - the ones to push as new."""
    return [t for t in tasks if not t.is_deleted and timedelta(0) <= now - t.created_at <= window]


def merge_pulled(local: list[Task], remote: list[Task]) -> list[Task]:
    """
    Append remote tasks whose id is unknown locally.

    Local records win for ids present on both sides, so edits made on another
    device to an existing task stay invisible here.
    """
    known = {t.id for t in local}
    merged = list(local)
    for task in remote:
        if task.id not in known:
            merged.append(task)
            known.add(task.id)
    return merged


def merge_pulled_notes(local: list[Note], remote: list[Note]) -> list[Note]:
    known = {n.id for n in local}
    merged = list(local)
    for note in remote:
        if note.id not in known:
            merged.append(note)
            known.add(note.id)
    return merged
