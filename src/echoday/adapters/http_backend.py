"""HTTP remote backend adapter - REST client for task mirroring."""

import asyncio
from typing import Any

import requests

from echoday.core.models import Task

DEFAULT_TIMEOUT = 15


class HttpRemoteBackend:
    """
    HTTP remote backend.

    Implements RemoteBackend protocol. Blocking requests calls run in a worker
    thread so the event loop keeps ticking. No business logic - just I/O.
    """

    def __init__(self, base_url: str, token: str = "", timeout: int = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = requests.Session()
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    def _request(self, method: str, endpoint: str, payload: Any = None) -> Any:
        """Make an API request; raises requests.HTTPError on failure."""
        resp = self._session.request(
            method,
            f"{self.base_url}{endpoint}",
            json=payload,
            timeout=self.timeout,
        )
        resp.raise_for_status()
        if not resp.content:
            return None
        return resp.json()

    async def _call(self, method: str, endpoint: str, payload: Any = None) -> Any:
        return await asyncio.to_thread(self._request, method, endpoint, payload)

    async def upsert_tasks(self, user_id: str, tasks: list[Task]) -> None:
        await self._call("POST", f"/users/{user_id}/tasks", [t.to_dict() for t in tasks])

    async def update_task(self, user_id: str, task_id: str, patch: dict[str, Any]) -> None:
        await self._call("PATCH", f"/users/{user_id}/tasks/{task_id}", patch)

    async def delete_tasks(self, user_id: str, ids: list[str]) -> None:
        await self._call("POST", f"/users/{user_id}/tasks/delete", {"ids": ids})

    async def fetch_all(self, user_id: str) -> dict[str, list[dict]]:
        data = await self._call("GET", f"/users/{user_id}/items") or {}
        return {"tasks": data.get("tasks", []), "notes": data.get("notes", [])}

    def close(self) -> None:
        self._session.close()
