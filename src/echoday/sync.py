"""Optimistic local mutations mirrored to the remote backend.

Every mutation is applied to the local collection first, then sent to the
remote once. If the remote rejects it the local change is rolled back and a
RemoteSyncError is raised for the user to see. There is no retry loop; the
next natural trigger (user action, app start) tries again. Remote calls are
idempotent by id.
"""

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Callable

from .collection import TaskCollection
from .core.errors import RemoteSyncError, TaskNotFoundError, ValidationError
from .core.models import Note, Task, parse_records
from .core.sync import (
    find_task,
    merge_pulled,
    merge_pulled_notes,
    remove_tasks,
    replace_task,
    restore_deleted,
    select_new_items,
    set_completed,
    soft_delete,
    toggle_task,
)
from .ports import RemoteBackend

logger = logging.getLogger(__name__)

DEFAULT_NEW_ITEM_WINDOW = timedelta(seconds=5)

# Editable task fields and their wire keys.
EDITABLE_FIELDS = {
    "text": "text",
    "priority": "priority",
    "due": "datetime",
    "reminders": "reminders",
    "recurrence": "recurrence",
    "location_reminder": "locationReminder",
}


class SyncReconciler:
    """Mirrors local task mutations to a RemoteBackend with rollback on failure."""

    def __init__(
        self,
        collection: TaskCollection,
        remote: RemoteBackend,
        new_item_window: timedelta = DEFAULT_NEW_ITEM_WINDOW,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.collection = collection
        self.remote = remote
        self.new_item_window = new_item_window
        self.clock = clock
        self._closed = False

    @property
    def user_id(self) -> str:
        return self.collection.user_id

    def close(self) -> None:
        """After teardown, remote completions no longer touch the collection."""
        self._closed = True

    def _require(self, tasks: list[Task], task_id: str) -> Task:
        task = find_task(tasks, task_id)
        if task is None:
            raise TaskNotFoundError(f"No task with id {task_id}")
        return task

    async def add_task(self, task: Task) -> Task:
        """Append a new task locally and push it through the new-item path."""
        tasks = self.collection.snapshot()
        if find_task(tasks, task.id) is not None:
            raise ValidationError(f"Task id {task.id} already exists")
        self.collection.replace(tasks + [task])
        logger.info(f"Added task {task.id}")
        await self.push_new()
        return task

    async def push_new(self, now: datetime | None = None) -> list[Task]:
        """
        Push tasks created within the recency window via upsert.

        Older tasks are never re-sent through the creation path. A rejected
        push keeps the local tasks and raises RemoteSyncError.
        """
        now = now or self.clock()
        fresh = select_new_items(self.collection.snapshot(), now, self.new_item_window)
        if not fresh:
            return []
        try:
            await self.remote.upsert_tasks(self.user_id, fresh)
        except Exception as e:
            if self._closed:
                return []
            logger.warning(f"Push of {len(fresh)} new task(s) failed: {e}")
            raise RemoteSyncError(f"Could not upload new tasks: {e}") from e
        return fresh

    async def toggle(self, task_id: str, now: datetime | None = None) -> Task:
        """
        Flip a task's completed flag and mirror it.

        Completing a recurring task spawns its successor, which is pushed once
        the completion is accepted. On rejection the flag is restored and the
        successor dropped; if only the successor push fails, the accepted
        completion is reverted remotely too.
        """
        now = now or self.clock()
        tasks = self.collection.snapshot()
        original = self._require(tasks, task_id)

        new_tasks, successor = toggle_task(tasks, task_id, now=now)
        self.collection.replace(new_tasks)
        toggled = self._require(new_tasks, task_id)
        if successor is not None:
            logger.info(f"Task {task_id} recurs as {successor.id}")

        with self.collection.holding(task_id):
            try:
                await self.remote.update_task(self.user_id, task_id, {"completed": toggled.completed})
            except Exception as e:
                if self._closed:
                    return toggled
                self._rollback_toggle(task_id, original, successor)
                logger.warning(f"Toggle of {task_id} rejected, rolled back: {e}")
                raise RemoteSyncError(f"Could not sync task '{original.text}': {e}", task_id=task_id) from e

            if successor is not None:
                try:
                    await self.remote.upsert_tasks(self.user_id, [successor])
                except Exception as e:
                    if self._closed:
                        return toggled
                    self._rollback_toggle(task_id, original, successor)
                    await self._revert_completion(task_id, original.completed)
                    logger.warning(f"Successor of {task_id} rejected, rolled back: {e}")
                    raise RemoteSyncError(
                        f"Could not sync next occurrence of '{original.text}': {e}", task_id=task_id
                    ) from e

        return toggled

    def _rollback_toggle(self, task_id: str, original: Task, successor: Task | None) -> None:
        current = set_completed(self.collection.snapshot(), task_id, original.completed)
        if successor is not None:
            current = remove_tasks(current, {successor.id})
        self.collection.replace(current)

    async def _revert_completion(self, task_id: str, completed: bool) -> None:
        try:
            await self.remote.update_task(self.user_id, task_id, {"completed": completed})
        except Exception as e:
            logger.error(f"Could not revert remote completion of {task_id}: {e}")

    async def update(self, task_id: str, **changes: Any) -> Task:
        """
        Edit task fields and mirror the changed wire keys as a patch.

        On rejection only the edited fields are restored, so writes that landed
        on the task meanwhile (an acknowledged reminder, a geofence stamp) stay.
        """
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        tasks = self.collection.snapshot()
        previous = self._require(tasks, task_id)
        updated = replace(previous, **changes)
        self.collection.replace(replace_task(tasks, updated))

        wire = updated.to_dict()
        patch = {EDITABLE_FIELDS[f]: wire.get(EDITABLE_FIELDS[f]) for f in changes}
        with self.collection.holding(task_id):
            try:
                await self.remote.update_task(self.user_id, task_id, patch)
            except Exception as e:
                if self._closed:
                    return updated
                current = self.collection.snapshot()
                task = find_task(current, task_id)
                if task is not None:
                    restored = replace(task, **{f: getattr(previous, f) for f in changes})
                    self.collection.replace(replace_task(current, restored))
                logger.warning(f"Update of {task_id} rejected, rolled back: {e}")
                raise RemoteSyncError(
                    f"Could not sync changes to '{previous.text}': {e}", task_id=task_id
                ) from e
        return updated

    async def delete(self, task_id: str) -> None:
        """
        Soft-delete locally, then delete remotely.

        The task is erased locally only once the remote acknowledges; on
        rejection it is restored.
        """
        tasks = self.collection.snapshot()
        task = self._require(tasks, task_id)
        self.collection.replace(soft_delete(tasks, task_id))

        try:
            await self.remote.delete_tasks(self.user_id, [task_id])
        except Exception as e:
            if self._closed:
                return
            self.collection.replace(restore_deleted(self.collection.snapshot(), task_id))
            logger.warning(f"Delete of {task_id} rejected, restored: {e}")
            raise RemoteSyncError(f"Could not delete '{task.text}': {e}", task_id=task_id) from e

        if not self._closed:
            self.collection.replace(remove_tasks(self.collection.snapshot(), {task_id}))
            logger.info(f"Deleted task {task_id}")

    async def retry_pending_deletes(self) -> list[str]:
        """Re-send deletes for tasks still soft-deleted, e.g. after a restart."""
        pending = [t.id for t in self.collection.snapshot() if t.is_deleted]
        if not pending:
            return []
        try:
            await self.remote.delete_tasks(self.user_id, pending)
        except Exception as e:
            if self._closed:
                return []
            self.collection.replace(
                [replace(t, is_deleted=False) if t.id in pending else t for t in self.collection.snapshot()]
            )
            raise RemoteSyncError(f"Could not delete {len(pending)} task(s): {e}") from e
        if not self._closed:
            self.collection.replace(remove_tasks(self.collection.snapshot(), set(pending)))
        return pending

    async def pull(self) -> tuple[int, int]:
        """
        Fetch remote items and append the ones unknown locally.

        Local records win for ids present on both sides.
        Returns: (tasks_added, notes_added)
        """
        try:
            data = await self.remote.fetch_all(self.user_id)
        except Exception as e:
            raise RemoteSyncError(f"Could not fetch remote items: {e}") from e
        if self._closed:
            return 0, 0

        remote_tasks, rejected_tasks = parse_records(data.get("tasks") or [], Task.from_dict)
        remote_notes, rejected_notes = parse_records(data.get("notes") or [], Note.from_dict)
        for item, error in rejected_tasks + rejected_notes:
            logger.warning(f"Skipping invalid remote record {item!r}: {error}")

        tasks = self.collection.snapshot()
        merged = merge_pulled(tasks, remote_tasks)
        self.collection.replace(merged)

        notes = self.collection.notes()
        merged_notes = merge_pulled_notes(notes, remote_notes)
        self.collection.replace_notes(merged_notes)

        added = (len(merged) - len(tasks), len(merged_notes) - len(notes))
        logger.info(f"Pulled {added[0]} new task(s) and {added[1]} new note(s)")
        return added
