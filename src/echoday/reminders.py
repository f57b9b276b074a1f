"""Reminder evaluation service and notification dispatch.

The evaluator runs on a fixed-period tick. Reminder state (triggered, snooze)
lives on the tasks themselves; the evaluator only remembers which due
reminders it has already handed to the dispatcher, keyed by
(task_id, reminder_id), so repeated ticks do not re-notify.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable

from .collection import TaskCollection
from .core.errors import TaskNotFoundError
from .core.models import ActiveReminder
from .core.reminders import (
    DEFAULT_STALE_AFTER,
    LOCATION_REMINDER_ID,
    check_reminders,
    mark_reminder_triggered,
    record_location_trigger,
    reminder_message,
    snooze_reminder,
)
from .ports import Notifier

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Fire-and-forget delivery of active reminders.

    Each notifier runs as its own task on the event loop; failures are logged
    and never reach the caller.
    """

    def __init__(self, notifiers: list[Notifier]):
        self.notifiers = list(notifiers)
        self._in_flight: set[asyncio.Task] = set()

    def notify(self, reminder: ActiveReminder) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error(f"No running event loop, dropping reminder {reminder.key}")
            return
        for notifier in self.notifiers:
            task = loop.create_task(self._deliver(notifier, reminder))
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)

    async def _deliver(self, notifier: Notifier, reminder: ActiveReminder) -> None:
        try:
            await notifier.notify(reminder)
        except Exception as e:
            logger.error(
                f"Failed to deliver reminder {reminder.key} via {type(notifier).__name__}: {e}"
            )

    async def drain(self) -> None:
        """Wait for deliveries already in flight."""
        if self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)


class ReminderEvaluator:
    """Periodic reminder scan plus the snooze/acknowledge transitions."""

    def __init__(
        self,
        collection: TaskCollection,
        dispatcher: NotificationDispatcher,
        stale_after: timedelta = DEFAULT_STALE_AFTER,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.collection = collection
        self.dispatcher = dispatcher
        self.stale_after = stale_after
        self.clock = clock
        self._notified: dict[tuple[str, str], ActiveReminder] = {}

    def pending(self) -> list[ActiveReminder]:
        """Reminders delivered and still awaiting acknowledgement."""
        return list(self._notified.values())

    async def tick(self, now: datetime | None = None) -> list[ActiveReminder]:
        """Evaluate the collection once; dispatch reminders not already pending."""
        now = now or self.clock()
        tasks = self.collection.snapshot()

        live = {
            (t.id, r.id)
            for t in tasks
            if not t.is_deleted and not t.completed
            for r in t.reminders
            if not r.triggered
        }
        for key in [k for k in self._notified if k not in live and k[1] != LOCATION_REMINDER_ID]:
            del self._notified[key]

        fresh = [r for r in check_reminders(tasks, now, self.stale_after) if r.key not in self._notified]
        for reminder in fresh:
            self._notified[reminder.key] = reminder
            self.dispatcher.notify(reminder)

        if fresh:
            logger.info(f"{len(fresh)} reminder(s) due at {now:%H:%M}")
        return fresh

    def snooze(
        self,
        task_id: str,
        reminder_id: str,
        minutes: int,
        now: datetime | None = None,
    ) -> None:
        """Re-arm a reminder to fire again ``minutes`` from now."""
        now = now or self.clock()
        tasks = self.collection.snapshot()
        self._require_reminder(tasks, task_id, reminder_id)
        self.collection.replace(snooze_reminder(tasks, task_id, reminder_id, minutes, now))
        self._notified.pop((task_id, reminder_id), None)
        logger.info(f"Snoozed reminder {task_id}/{reminder_id} for {minutes} min")

    def acknowledge(self, task_id: str, reminder_id: str) -> None:
        """Mark a reminder triggered so it does not fire again."""
        if reminder_id == LOCATION_REMINDER_ID:
            # Geofence hits are stamped when they fire; only the pending entry remains.
            self._notified.pop((task_id, reminder_id), None)
            return
        tasks = self.collection.snapshot()
        self._require_reminder(tasks, task_id, reminder_id)
        self.collection.replace(mark_reminder_triggered(tasks, task_id, reminder_id))
        self._notified.pop((task_id, reminder_id), None)
        logger.info(f"Acknowledged reminder {task_id}/{reminder_id}")

    def on_location_reminder_fired(self, task_id: str, now: datetime | None = None) -> None:
        """Record a geofence hit and notify. ``reminders`` is not touched."""
        now = now or self.clock()
        tasks = self.collection.snapshot()
        task = next((t for t in tasks if t.id == task_id), None)
        if task is None or task.location_reminder is None:
            logger.warning(f"Location reminder fired for unknown task {task_id}")
            return
        self.collection.replace(record_location_trigger(tasks, task_id, now))

        reminder = ActiveReminder(
            task_id=task_id,
            reminder_id=LOCATION_REMINDER_ID,
            message=reminder_message(task),
            priority=task.priority,
            created_at=now,
        )
        self._notified[reminder.key] = reminder
        self.dispatcher.notify(reminder)

    @staticmethod
    def _require_reminder(tasks, task_id: str, reminder_id: str) -> None:
        task = next((t for t in tasks if t.id == task_id), None)
        if task is None or task.reminder(reminder_id) is None:
            raise TaskNotFoundError(f"No reminder {reminder_id} on task {task_id}")
