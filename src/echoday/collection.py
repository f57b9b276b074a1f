"""Single-writer access to a user's live collections.

Every unit of work reads the whole collection with ``snapshot()``, computes a
new one, and writes it back with ``replace()``. Both calls are synchronous, so
no other coroutine can interleave between a read and the write that follows it
in the same unit of work.

Tasks with a remote mutation still awaiting its answer are tracked in
``in_flight()``; the daily rollover leaves them in place until the answer lands.
"""

from contextlib import contextmanager
from datetime import date
from typing import Iterator

from .core.errors import TaskNotFoundError
from .core.models import Note, Task
from .ports import TaskStore


class TaskCollection:
    """A user's task and note collections behind a TaskStore."""

    def __init__(self, store: TaskStore, user_id: str):
        self.store = store
        self.user_id = user_id
        self._in_flight: dict[str, int] = {}

    def snapshot(self) -> list[Task]:
        return self.store.load_tasks(self.user_id)

    def replace(self, tasks: list[Task]) -> None:
        self.store.save_tasks(self.user_id, tasks)

    def get(self, task_id: str) -> Task:
        task = next((t for t in self.snapshot() if t.id == task_id), None)
        if task is None:
            raise TaskNotFoundError(f"No task with id {task_id}")
        return task

    def notes(self) -> list[Note]:
        return self.store.load_notes(self.user_id)

    def replace_notes(self, notes: list[Note]) -> None:
        self.store.save_notes(self.user_id, notes)

    def last_archive_date(self) -> date | None:
        return self.store.get_last_archive_date(self.user_id)

    def set_last_archive_date(self, day: date) -> None:
        self.store.set_last_archive_date(self.user_id, day)

    def in_flight(self) -> set[str]:
        """Ids of tasks with a remote mutation not yet answered."""
        return set(self._in_flight)

    @contextmanager
    def holding(self, task_id: str) -> Iterator[None]:
        """Mark ``task_id`` in flight for the duration of the block."""
        self._in_flight[task_id] = self._in_flight.get(task_id, 0) + 1
        try:
            yield
        finally:
            remaining = self._in_flight[task_id] - 1
            if remaining:
                self._in_flight[task_id] = remaining
            else:
                del self._in_flight[task_id]
