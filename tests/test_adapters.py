"""Tests for the file, HTTP and location adapters."""

import asyncio
import json
from datetime import date, datetime
from unittest.mock import MagicMock, patch

import pytest
import requests

from echoday.adapters import FileArchive, FileLocationProvider, HttpRemoteBackend, JsonTaskStore
from echoday.core.errors import ValidationError
from echoday.core.models import Note, ReminderConfig, Task


@pytest.fixture
def task():
    return Task(
        id="t1",
        text="Standup",
        due=datetime(2025, 3, 10, 9, 0),
        created_at=datetime(2025, 3, 9, 12, 0),
        reminders=[ReminderConfig(id="r1", minutes_before=15)],
    )


class TestJsonTaskStore:
    def test_save_and_load(self, tmp_path, task):
        store = JsonTaskStore(tmp_path)
        store.save_tasks("u1", [task])

        assert store.load_tasks("u1") == [task]
        assert store.load_tasks("other") == []

    def test_file_uses_wire_format(self, tmp_path, task):
        JsonTaskStore(tmp_path).save_tasks("u1", [task])

        raw = json.loads((tmp_path / "u1" / "tasks.json").read_text())
        assert raw[0]["datetime"] == "2025-03-10T09:00:00"
        assert raw[0]["reminders"][0]["minutesBefore"] == 15

    def test_invalid_records_skipped(self, tmp_path, task):
        path = tmp_path / "u1" / "tasks.json"
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps([task.to_dict(), {"id": "bad", "text": "x", "priority": "urgent"}]))

        assert [t.id for t in JsonTaskStore(tmp_path).load_tasks("u1")] == ["t1"]

    def test_corrupt_file_reads_empty(self, tmp_path):
        path = tmp_path / "u1" / "tasks.json"
        path.parent.mkdir(parents=True)
        path.write_text("{not json")

        assert JsonTaskStore(tmp_path).load_tasks("u1") == []

    def test_duplicate_ids_rejected(self, tmp_path, task):
        with pytest.raises(ValidationError):
            JsonTaskStore(tmp_path).save_tasks("u1", [task, task])

    def test_user_id_must_be_a_plain_name(self, tmp_path):
        with pytest.raises(ValidationError):
            JsonTaskStore(tmp_path).load_tasks("../escape")

    def test_notes(self, tmp_path):
        store = JsonTaskStore(tmp_path)
        note = Note(id="n1", text="idea", created_at=datetime(2025, 3, 9), pinned=True)
        store.save_notes("u1", [note])
        assert store.load_notes("u1") == [note]

    def test_last_archive_date(self, tmp_path):
        store = JsonTaskStore(tmp_path)
        assert store.get_last_archive_date("u1") is None

        store.set_last_archive_date("u1", date(2025, 3, 10))

        assert JsonTaskStore(tmp_path).get_last_archive_date("u1") == date(2025, 3, 10)


class TestFileArchive:
    @pytest.mark.asyncio
    async def test_archive_and_read_back(self, tmp_path, task):
        archive = FileArchive(tmp_path)
        done = Task(id="t2", text="Shipped", completed=True)

        await archive.archive_items([done], [Note(id="n1", text="scratch")], "u1")

        days = archive.list_dates("u1")
        assert len(days) == 1
        data = archive.read_day("u1", days[0])
        assert [t["id"] for t in data["tasks"]] == ["t2"]
        assert [n["id"] for n in data["notes"]] == ["n1"]
        assert "archivedAt" in data["tasks"][0]

    @pytest.mark.asyncio
    async def test_same_day_commits_accumulate(self, tmp_path):
        archive = FileArchive(tmp_path)

        await archive.archive_items([Task(id="a", text="a", completed=True)], [], "u1")
        await archive.archive_items([Task(id="b", text="b", completed=True)], [], "u1")

        data = archive.read_day("u1", archive.list_dates("u1")[0])
        assert [t["id"] for t in data["tasks"]] == ["a", "b"]

    def test_empty_day(self, tmp_path):
        archive = FileArchive(tmp_path)
        assert archive.read_day("u1", date(2025, 1, 1)) == {"tasks": [], "notes": []}
        assert archive.list_dates("u1") == []


class TestHttpRemoteBackend:
    @pytest.fixture
    def backend(self):
        return HttpRemoteBackend("https://api.example.com/", token="secret")

    def test_auth_header(self, backend):
        assert backend._session.headers["Authorization"] == "Bearer secret"
        assert backend.base_url == "https://api.example.com"

    @pytest.mark.asyncio
    async def test_update_task(self, backend):
        response = MagicMock(content=b"")
        with patch.object(backend._session, "request", return_value=response) as mock_request:
            await backend.update_task("u1", "t1", {"completed": True})

        mock_request.assert_called_once_with(
            "PATCH",
            "https://api.example.com/users/u1/tasks/t1",
            json={"completed": True},
            timeout=15,
        )
        response.raise_for_status.assert_called_once()

    @pytest.mark.asyncio
    async def test_fetch_all(self, backend):
        response = MagicMock(content=b"{}")
        response.json.return_value = {"tasks": [{"id": "t1"}]}
        with patch.object(backend._session, "request", return_value=response):
            data = await backend.fetch_all("u1")

        assert data == {"tasks": [{"id": "t1"}], "notes": []}

    @pytest.mark.asyncio
    async def test_http_error_propagates(self, backend):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
        with patch.object(backend._session, "request", return_value=response):
            with pytest.raises(requests.HTTPError):
                await backend.delete_tasks("u1", ["t1"])


class TestFileLocationProvider:
    def test_reads_position(self, tmp_path):
        path = tmp_path / "location.json"
        path.write_text(json.dumps({"lat": 52.52, "lng": 13.405}))

        assert asyncio.run(FileLocationProvider(path).current_position()) == (52.52, 13.405)

    def test_missing_or_invalid_file(self, tmp_path):
        path = tmp_path / "location.json"
        assert asyncio.run(FileLocationProvider(path).current_position()) is None

        path.write_text(json.dumps({"lat": "north"}))
        assert asyncio.run(FileLocationProvider(path).current_position()) is None
