"""Remote backend interface."""

from typing import Any, Protocol

from echoday.core.models import Task


class RemoteBackend(Protocol):
    """Interface for mirroring tasks to a remote service. Every call may raise."""

    async def upsert_tasks(self, user_id: str, tasks: list[Task]) -> None:
        """Create or replace tasks by id."""
        ...

    async def update_task(self, user_id: str, task_id: str, patch: dict[str, Any]) -> None:
        """Apply a partial update (wire keys) to one task."""
        ...

    async def delete_tasks(self, user_id: str, ids: list[str]) -> None:
        """Delete tasks by id. Deleting an unknown id is not an error."""
        ...

    async def fetch_all(self, user_id: str) -> dict[str, list[dict]]:
        """Fetch raw records: {"tasks": [...], "notes": [...]}."""
        ...
