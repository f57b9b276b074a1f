"""JSON file task store adapter."""

import json
import logging
import os
from datetime import date
from pathlib import Path
from typing import Any

from echoday.core.errors import ValidationError
from echoday.core.models import Note, Task, parse_day, parse_records

logger = logging.getLogger(__name__)


def write_json_atomic(path: Path, data: Any) -> None:
    """Write JSON through a temp file so readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False))
    os.replace(tmp, path)


def read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text())
    except json.JSONDecodeError as e:
        logger.error(f"Corrupt JSON in {path}: {e}")
        return default


class JsonTaskStore:
    """
    File-based task store.

    Implements TaskStore protocol. Each user gets a directory holding
    tasks.json, notes.json and state.json.
    """

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir).expanduser()
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _user_dir(self, user_id: str) -> Path:
        if not user_id or "/" in user_id or user_id in (".", ".."):
            raise ValidationError(f"Invalid user id: {user_id!r}")
        return self.data_dir / user_id

    def load_tasks(self, user_id: str) -> list[Task]:
        raw = read_json(self._user_dir(user_id) / "tasks.json", [])
        tasks, rejects = parse_records(raw, Task.from_dict)
        for item, error in rejects:
            logger.warning(f"Skipping invalid stored task {item!r}: {error}")
        return tasks

    def save_tasks(self, user_id: str, tasks: list[Task]) -> None:
        ids = [t.id for t in tasks]
        if len(ids) != len(set(ids)):
            raise ValidationError("Task ids must be unique within a collection")
        write_json_atomic(self._user_dir(user_id) / "tasks.json", [t.to_dict() for t in tasks])

    def load_notes(self, user_id: str) -> list[Note]:
        raw = read_json(self._user_dir(user_id) / "notes.json", [])
        notes, rejects = parse_records(raw, Note.from_dict)
        for item, error in rejects:
            logger.warning(f"Skipping invalid stored note {item!r}: {error}")
        return notes

    def save_notes(self, user_id: str, notes: list[Note]) -> None:
        write_json_atomic(self._user_dir(user_id) / "notes.json", [n.to_dict() for n in notes])

    def get_last_archive_date(self, user_id: str) -> date | None:
        state = read_json(self._user_dir(user_id) / "state.json", {})
        try:
            return parse_day(state.get("lastArchiveDate"))
        except ValidationError:
            logger.warning(f"Ignoring invalid lastArchiveDate for {user_id}")
            return None

    def set_last_archive_date(self, user_id: str, day: date) -> None:
        path = self._user_dir(user_id) / "state.json"
        state = read_json(path, {})
        state["lastArchiveDate"] = day.isoformat()
        write_json_atomic(path, state)
