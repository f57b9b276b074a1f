"""File-based archive adapter."""

import asyncio
from datetime import date, datetime
from pathlib import Path

from echoday.core.models import Note, Task

from .json_store import read_json, write_json_atomic


class FileArchive:
    """
    File-based archive.

    Implements ArchiveRepository protocol. Each user gets one JSON file per
    archive day; a commit rewrites that file in a single atomic replace.
    """

    def __init__(self, archive_dir: Path | str):
        self.archive_dir = Path(archive_dir).expanduser()
        self.archive_dir.mkdir(parents=True, exist_ok=True)

    def _path_for_date(self, user_id: str, target_date: date) -> Path:
        return self.archive_dir / user_id / f"{target_date.isoformat()}.json"

    def _commit(self, tasks: list[Task], notes: list[Note], user_id: str, archived_at: datetime) -> None:
        path = self._path_for_date(user_id, archived_at.date())
        existing = read_json(path, {"tasks": [], "notes": []})
        stamp = archived_at.isoformat()
        existing.setdefault("tasks", []).extend({**t.to_dict(), "archivedAt": stamp} for t in tasks)
        existing.setdefault("notes", []).extend({**n.to_dict(), "archivedAt": stamp} for n in notes)
        write_json_atomic(path, existing)

    async def archive_items(self, tasks: list[Task], notes: list[Note], user_id: str) -> None:
        await asyncio.to_thread(self._commit, tasks, notes, user_id, datetime.now())

    def read_day(self, user_id: str, target_date: date) -> dict[str, list[dict]]:
        """Read archived records for a day. Empty lists if nothing was archived."""
        return read_json(self._path_for_date(user_id, target_date), {"tasks": [], "notes": []})

    def list_dates(self, user_id: str) -> list[date]:
        """List days with archived items."""
        dates = []
        for path in (self.archive_dir / user_id).glob("*.json"):
            try:
                dates.append(date.fromisoformat(path.stem))
            except ValueError:
                continue
        return sorted(dates)
