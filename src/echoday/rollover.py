"""Daily rollover scheduler.

Once per local calendar day: archive completed tasks and unpinned notes, and
carry yesterday's unfinished scheduled tasks forward. A one-shot timer fires
at the next local midnight and re-arms itself after every run.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Callable

from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.date import DateTrigger

from .collection import TaskCollection
from .core.errors import ArchiveCommitError, EchoDayError, SchedulingDriftError
from .core.rollover import RolloverPlan, apply_rollover, plan_rollover, seconds_until_next_midnight
from .ports import ArchiveRepository

logger = logging.getLogger(__name__)

JOB_ID = "daily_rollover"
MIN_DELAY_SECONDS = 1.0


class RolloverScheduler:
    """Runs the daily rollover and keeps its midnight timer armed."""

    def __init__(
        self,
        collection: TaskCollection,
        archive: ArchiveRepository,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.collection = collection
        self.archive = archive
        self.clock = clock
        self.scheduler: BaseScheduler | None = None
        self._running = False
        self._closed = False

    def already_ran(self, today: date) -> bool:
        return self.collection.last_archive_date() == today

    async def run(self, now: datetime | None = None) -> RolloverPlan | None:
        """
        Apply today's rollover unless it already ran.

        Returns the applied plan, or None when skipped. Raises
        ArchiveCommitError when the archive rejects the commit; the live
        collection and lastArchiveDate are then left untouched.
        """
        now = now or self.clock()
        today = now.date()
        if self._running or self.already_ran(today):
            logger.debug(f"Rollover for {today} already done or in progress")
            return None

        self._running = True
        try:
            plan = plan_rollover(
                self.collection.snapshot(),
                self.collection.notes(),
                today,
                held=self.collection.in_flight(),
            )
            if plan.has_archivable_items:
                try:
                    await self.archive.archive_items(
                        plan.tasks_to_archive, plan.notes_to_archive, self.collection.user_id
                    )
                except Exception as e:
                    raise ArchiveCommitError(f"Archive commit failed for {today}: {e}") from e

            if self._closed:
                return None

            # Re-read: mutations may have landed while the commit was in flight.
            self.collection.replace(apply_rollover(self.collection.snapshot(), plan.archived_ids, today))
            if plan.notes_to_archive:
                archived_notes = plan.archived_note_ids
                self.collection.replace_notes(
                    [n for n in self.collection.notes() if n.id not in archived_notes]
                )
            self.collection.set_last_archive_date(today)
        finally:
            self._running = False

        logger.info(
            f"Rollover {today}: archived {len(plan.tasks_to_archive)} task(s) and "
            f"{len(plan.notes_to_archive)} note(s), carried forward {len(plan.carried_forward)}"
        )
        return plan

    def start(self, scheduler: BaseScheduler) -> None:
        """Arm the midnight timer on ``scheduler``."""
        self.scheduler = scheduler
        self._closed = False
        self.schedule_next()

    def schedule_next(self, now: datetime | None = None) -> datetime | None:
        """
        Arm a one-shot job at the next local midnight. Returns its run time.

        An injected clock returning aware datetimes cannot be measured against
        local midnight; the timer then retries shortly on the naive time.
        """
        if self.scheduler is None or self._closed:
            return None
        now = now or self.clock()
        try:
            delay = seconds_until_next_midnight(now, minimum=MIN_DELAY_SECONDS)
        except SchedulingDriftError as e:
            logger.warning(f"{e}; retrying rollover timer in {MIN_DELAY_SECONDS}s")
            now = now.replace(tzinfo=None)
            delay = MIN_DELAY_SECONDS

        run_date = now + timedelta(seconds=delay)
        self.scheduler.add_job(
            self._fire,
            DateTrigger(run_date=run_date),
            id=JOB_ID,
            replace_existing=True,
            misfire_grace_time=None,
        )
        logger.info(f"Next rollover scheduled at {run_date:%Y-%m-%d %H:%M:%S}")
        return run_date

    async def _fire(self) -> None:
        try:
            await self.run()
        except EchoDayError as e:
            logger.error(f"Rollover failed, will retry on next trigger: {e}")
        finally:
            self.schedule_next()

    def stop(self) -> None:
        """Disarm the timer. A commit still in flight will not touch the collection."""
        self._closed = True
        if self.scheduler is not None and self.scheduler.get_job(JOB_ID) is not None:
            self.scheduler.remove_job(JOB_ID)
