"""EchoDay CLI - tasks, reminders and the scheduler loop."""

import asyncio
import json
import logging
import sys
import uuid
from datetime import date

import click

from .config import load_config
from .core.errors import EchoDayError
from .core.models import (
    RecurrenceEnd,
    RecurrenceRule,
    ReminderConfig,
    Task,
    parse_day,
    parse_instant,
)
from .core.reminders import check_reminders
from .runtime import build_engine, run_engine

WEEKDAYS = {"sun": 0, "mon": 1, "tue": 2, "wed": 3, "thu": 4, "fri": 5, "sat": 6}


def _engine():
    return build_engine(load_config())


def _fail(e: Exception) -> None:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


def _parse_weekdays(value: str | None) -> tuple[int, ...] | None:
    if not value:
        return None
    days = []
    for part in value.split(","):
        key = part.strip().lower()[:3]
        if key not in WEEKDAYS:
            raise click.BadParameter(f"Unknown weekday: {part}")
        days.append(WEEKDAYS[key])
    return tuple(days)


def _format_task(task: Task) -> str:
    check = "x" if task.completed else " "
    due = f" (due {task.due:%Y-%m-%d %H:%M})" if task.due else ""
    repeat = f" [every {task.recurrence.interval} {task.recurrence.frequency}]" if task.recurrence else ""
    marker = "!" if task.priority == "high" else " "
    return f"[{check}]{marker} {task.id[:8]}  {task.text}{due}{repeat}"


@click.group()
@click.version_option()
def main():
    """EchoDay - task and reminder scheduler."""
    pass


@main.command()
def run():
    """Run the reminder tick and daily rollover until interrupted."""
    config = load_config()
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, config.log_level, logging.INFO),
    )
    engine = build_engine(config)
    logging.getLogger(__name__).info(f"Starting EchoDay for user {config.user_id}...")
    asyncio.run(run_engine(engine))


@main.command()
@click.option("--all", "show_all", is_flag=True, help="Include completed tasks")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def tasks(show_all: bool, as_json: bool):
    """List tasks."""
    engine = _engine()
    items = [t for t in engine.collection.snapshot() if not t.is_deleted]
    if not show_all:
        items = [t for t in items if not t.completed]

    if as_json:
        click.echo(json.dumps([t.to_dict() for t in items], indent=2))
        return

    if not items:
        click.echo("No tasks.")
        return
    for task in items:
        click.echo(_format_task(task))


@main.command()
@click.argument("text")
@click.option("--at", "at", help="Due time, ISO format (2025-03-10T09:00)")
@click.option("--priority", type=click.Choice(["high", "medium", "low"]), default="medium")
@click.option("--remind", type=int, multiple=True, help="Minutes before due time (repeatable)")
@click.option("--repeat", type=click.Choice(["daily", "weekly", "monthly"]))
@click.option("--interval", type=int, default=1, show_default=True)
@click.option("--on-days", help="Weekdays for weekly repeat, e.g. mon,wed,fri")
@click.option("--count", type=int, help="Stop after N occurrences")
@click.option("--until", help="Stop after this date (YYYY-MM-DD)")
def add(text, at, priority, remind, repeat, interval, on_days, count, until):
    """Add a task."""
    engine = _engine()
    try:
        recurrence = None
        if repeat:
            ends = None
            if count:
                ends = RecurrenceEnd(type="count", count=count)
            elif until:
                ends = RecurrenceEnd(type="on", on_date=parse_day(until))
            recurrence = RecurrenceRule(
                frequency=repeat,
                interval=interval,
                by_weekday=_parse_weekdays(on_days),
                ends=ends,
            )
        task = Task(
            id=str(uuid.uuid4()),
            text=text,
            priority=priority,
            due=parse_instant(at),
            created_at=engine.sync.clock(),
            reminders=[
                ReminderConfig(id=f"r{i + 1}", kind="relative", minutes_before=m)
                for i, m in enumerate(remind)
            ],
            recurrence=recurrence,
        )
        asyncio.run(engine.sync.add_task(task))
    except EchoDayError as e:
        _fail(e)
    click.echo(f"Added {task.id}")


def _resolve(engine, prefix: str) -> str:
    """Resolve a full task id from a unique prefix."""
    matches = [t.id for t in engine.collection.snapshot() if t.id.startswith(prefix)]
    if len(matches) != 1:
        _fail(EchoDayError(f"{'No' if not matches else 'Ambiguous'} task matching {prefix!r}"))
    return matches[0]


@main.command()
@click.argument("task_id")
def done(task_id: str):
    """Toggle a task's completed state."""
    engine = _engine()
    try:
        task = asyncio.run(engine.sync.toggle(_resolve(engine, task_id)))
    except EchoDayError as e:
        _fail(e)
    click.echo(f"{'Completed' if task.completed else 'Reopened'}: {task.text}")


@main.command()
@click.argument("task_id")
@click.option("--text")
@click.option("--at", "at", help="New due time, ISO format")
@click.option("--priority", type=click.Choice(["high", "medium", "low"]))
def edit(task_id: str, text, at, priority):
    """Edit a task."""
    engine = _engine()
    changes = {}
    if text is not None:
        changes["text"] = text
    if priority is not None:
        changes["priority"] = priority
    try:
        if at is not None:
            changes["due"] = parse_instant(at)
        if not changes:
            click.echo("Nothing to change.")
            return
        task = asyncio.run(engine.sync.update(_resolve(engine, task_id), **changes))
    except EchoDayError as e:
        _fail(e)
    click.echo(_format_task(task))


@main.command()
@click.argument("task_id")
def delete(task_id: str):
    """Delete a task."""
    engine = _engine()
    try:
        asyncio.run(engine.sync.delete(_resolve(engine, task_id)))
    except EchoDayError as e:
        _fail(e)
    click.echo("Deleted.")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def due(as_json: bool):
    """Show reminders that are due right now."""
    engine = _engine()
    now = engine.reminders.clock()
    active = check_reminders(engine.collection.snapshot(), now, engine.reminders.stale_after)

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in active], indent=2))
        return

    if not active:
        click.echo("No reminders due.")
        return
    for reminder in active:
        click.echo(f"{reminder.task_id[:8]}/{reminder.reminder_id}  {reminder.message}")


@main.command()
@click.argument("task_id")
@click.argument("reminder_id")
@click.option("--minutes", type=click.IntRange(min=0), help="Snooze length (default from config)")
def snooze(task_id: str, reminder_id: str, minutes: int | None):
    """Snooze a reminder."""
    engine = _engine()
    if minutes is None:
        minutes = engine.config.default_snooze_minutes
    try:
        engine.reminders.snooze(_resolve(engine, task_id), reminder_id, minutes)
    except EchoDayError as e:
        _fail(e)
    click.echo(f"Snoozed for {minutes} min.")


@main.command()
@click.argument("task_id")
@click.argument("reminder_id")
def ack(task_id: str, reminder_id: str):
    """Acknowledge (dismiss) a reminder."""
    engine = _engine()
    try:
        engine.reminders.acknowledge(_resolve(engine, task_id), reminder_id)
    except EchoDayError as e:
        _fail(e)
    click.echo("Dismissed.")


@main.command()
def rollover():
    """Run today's archive rollover now, if it has not run yet."""
    engine = _engine()
    try:
        plan = asyncio.run(engine.rollover.run())
    except EchoDayError as e:
        _fail(e)
    if plan is None:
        click.echo("Rollover already done today.")
        return
    click.echo(
        f"Archived {len(plan.tasks_to_archive)} task(s) and {len(plan.notes_to_archive)} note(s); "
        f"carried forward {len(plan.carried_forward)}."
    )


@main.command()
def pull():
    """Fetch new items from the remote backend."""
    engine = _engine()
    try:
        tasks_added, notes_added = asyncio.run(engine.sync.pull())
    except EchoDayError as e:
        _fail(e)
    click.echo(f"Pulled {tasks_added} task(s) and {notes_added} note(s).")


@main.command()
@click.argument("day", required=False)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def archive(day: str | None, as_json: bool):
    """Show archived items for a day (default: list archive days)."""
    engine = _engine()
    user_id = engine.config.user_id

    if day is None:
        dates = engine.archive.list_dates(user_id)
        if not dates:
            click.echo("Archive is empty.")
        for d in dates:
            click.echo(d.isoformat())
        return

    try:
        target: date = parse_day(day)
    except EchoDayError as e:
        _fail(e)
    data = engine.archive.read_day(user_id, target)
    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"### {target.strftime('%A, %B %d')}")
    for item in data.get("tasks", []):
        click.echo(f"  [x] {item.get('text', '')}")
    for item in data.get("notes", []):
        click.echo(f"  - {item.get('text', '')}")
    if not data.get("tasks") and not data.get("notes"):
        click.echo("  Nothing archived.")


if __name__ == "__main__":
    main()
