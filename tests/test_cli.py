"""Tests for the CLI commands."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from echoday.cli import main
from echoday.config import Config


@pytest.fixture
def runner(tmp_path):
    config = Config(user_id="u1", data_dir=str(tmp_path))
    with patch("echoday.cli.load_config", return_value=config):
        yield CliRunner()


def add(runner, *args):
    result = runner.invoke(main, ["add", *args])
    assert result.exit_code == 0, result.output
    return result.output.split()[-1]


class TestTasksCommands:
    def test_add_and_list(self, runner):
        add(runner, "Water plants", "--at", "2030-01-01T09:00", "--remind", "15", "--repeat", "daily")

        result = runner.invoke(main, ["tasks"])

        assert result.exit_code == 0
        assert "Water plants" in result.output
        assert "every 1 daily" in result.output

    def test_list_json(self, runner):
        task_id = add(runner, "Pay rent", "--priority", "high")

        result = runner.invoke(main, ["tasks", "--json"])

        data = json.loads(result.output)
        assert data[0]["id"] == task_id
        assert data[0]["priority"] == "high"

    def test_done_by_prefix(self, runner):
        task_id = add(runner, "Pay rent")

        result = runner.invoke(main, ["done", task_id[:8]])

        assert result.exit_code == 0
        assert "Completed: Pay rent" in result.output
        assert "No tasks." in runner.invoke(main, ["tasks"]).output

    def test_weekly_on_days(self, runner):
        add(runner, "Gym", "--at", "2030-01-02T07:00", "--repeat", "weekly", "--on-days", "mon,wed,fri")

        data = json.loads(runner.invoke(main, ["tasks", "--json"]).output)

        assert data[0]["recurrence"]["byWeekday"] == [1, 3, 5]

    def test_invalid_rule_reports_error(self, runner):
        result = runner.invoke(main, ["add", "Bad", "--repeat", "daily", "--on-days", "mon"])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_unknown_task(self, runner):
        result = runner.invoke(main, ["done", "nope"])
        assert result.exit_code == 1

    def test_edit_and_delete(self, runner):
        task_id = add(runner, "Draft")

        edited = runner.invoke(main, ["edit", task_id, "--text", "Final"])
        assert "Final" in edited.output

        assert runner.invoke(main, ["delete", task_id]).exit_code == 0
        assert "No tasks." in runner.invoke(main, ["tasks", "--all"]).output


class TestReminderCommands:
    def test_due_and_ack(self, runner):
        task_id = add(runner, "Overdue call", "--at", "2000-01-01T09:00", "--remind", "0")

        # Long past the staleness bound
        assert "No reminders due." in runner.invoke(main, ["due"]).output

        result = runner.invoke(main, ["snooze", task_id, "r1", "--minutes", "0"])
        assert result.exit_code == 0
        due = json.loads(runner.invoke(main, ["due", "--json"]).output)
        assert [r["reminderId"] for r in due] == ["r1"]

        assert runner.invoke(main, ["ack", task_id, "r1"]).exit_code == 0
        assert "No reminders due." in runner.invoke(main, ["due"]).output


class TestRolloverCommands:
    def test_rollover_then_archive(self, runner):
        task_id = add(runner, "Ship it")
        runner.invoke(main, ["done", task_id])

        first = runner.invoke(main, ["rollover"])
        assert "Archived 1 task(s)" in first.output
        assert "already done" in runner.invoke(main, ["rollover"]).output

        days = runner.invoke(main, ["archive"]).output.split()
        assert len(days) == 1
        assert "Ship it" in runner.invoke(main, ["archive", days[0]]).output
