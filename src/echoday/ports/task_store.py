"""Local task store interface."""

from datetime import date
from typing import Protocol

from echoday.core.models import Note, Task


class TaskStore(Protocol):
    """Interface for the local, per-user collections. Whole-collection reads and writes only."""

    def load_tasks(self, user_id: str) -> list[Task]:
        """Load the full task collection, in stored order."""
        ...

    def save_tasks(self, user_id: str, tasks: list[Task]) -> None:
        """Replace the full task collection."""
        ...

    def load_notes(self, user_id: str) -> list[Note]:
        """Load the full note collection."""
        ...

    def save_notes(self, user_id: str, notes: list[Note]) -> None:
        """Replace the full note collection."""
        ...

    def get_last_archive_date(self, user_id: str) -> date | None:
        """Day of the last applied rollover, or None if it never ran."""
        ...

    def set_last_archive_date(self, user_id: str, day: date) -> None:
        """Persist the day of the last applied rollover."""
        ...
