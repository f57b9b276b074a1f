"""Archive interface."""

from typing import Protocol

from echoday.core.models import Note, Task


class ArchiveRepository(Protocol):
    """Interface for committing a day's finished work. All-or-nothing."""

    async def archive_items(self, tasks: list[Task], notes: list[Note], user_id: str) -> None:
        """Archive tasks and notes together. Raises if nothing was committed."""
        ...
