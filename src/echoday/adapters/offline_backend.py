"""Offline remote backend - accepts every mirror call without a server."""

import logging
from typing import Any

from echoday.core.models import Task

logger = logging.getLogger(__name__)


class OfflineBackend:
    """
    No-op remote backend used when no server is configured.

    Implements RemoteBackend protocol. Mutations always succeed and a pull
    returns nothing, so the local collection stays authoritative.
    """

    async def upsert_tasks(self, user_id: str, tasks: list[Task]) -> None:
        logger.debug(f"Offline: skipping upsert of {len(tasks)} task(s)")

    async def update_task(self, user_id: str, task_id: str, patch: dict[str, Any]) -> None:
        logger.debug(f"Offline: skipping update of {task_id}")

    async def delete_tasks(self, user_id: str, ids: list[str]) -> None:
        logger.debug(f"Offline: skipping delete of {len(ids)} task(s)")

    async def fetch_all(self, user_id: str) -> dict[str, list[dict]]:
        return {"tasks": [], "notes": []}

    def close(self) -> None:
        return None
