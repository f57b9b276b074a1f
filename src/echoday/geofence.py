"""Geofence monitor - polls the device position on its own cadence."""

import logging
from datetime import datetime, timedelta
from typing import Callable

from .collection import TaskCollection
from .core.geofence import evaluate_geofence
from .ports import LocationProvider

logger = logging.getLogger(__name__)


class GeofenceMonitor:
    """
    Checks location reminders against the current position.

    Fires ``on_fired(task_id)`` on a qualifying crossing, at most once per
    ``cooldown`` per task.
    """

    def __init__(
        self,
        collection: TaskCollection,
        provider: LocationProvider,
        on_fired: Callable[[str], None],
        cooldown: timedelta = timedelta(minutes=60),
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.collection = collection
        self.provider = provider
        self.on_fired = on_fired
        self.cooldown = cooldown
        self.clock = clock
        self._inside: dict[str, bool] = {}

    async def poll(self, now: datetime | None = None) -> list[str]:
        """Read the position once and fire any crossed geofences."""
        position = await self.provider.current_position()
        if position is None:
            logger.debug("No position available")
            return []

        now = now or self.clock()
        fired = []
        tasks = self.collection.snapshot()
        for task in tasks:
            rule = task.location_reminder
            if rule is None or task.completed or task.is_deleted:
                self._inside.pop(task.id, None)
                continue
            hit, inside = evaluate_geofence(rule, position, self._inside.get(task.id))
            self._inside[task.id] = inside
            if not hit:
                continue
            if rule.last_triggered_at and now - rule.last_triggered_at < self.cooldown:
                logger.debug(f"Geofence for {task.id} in cooldown")
                continue
            fired.append(task.id)

        for task_id in set(self._inside) - {t.id for t in tasks}:
            del self._inside[task_id]

        for task_id in fired:
            logger.info(f"Geofence reminder fired for task {task_id}")
            self.on_fired(task_id)
        return fired
