"""Engine wiring and the long-running scheduler loop."""

import asyncio
import logging
import signal
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .adapters import (
    ConsoleNotifier,
    FileArchive,
    FileLocationProvider,
    HttpRemoteBackend,
    JsonTaskStore,
    OfflineBackend,
)
from .collection import TaskCollection
from .config import Config
from .core.errors import EchoDayError
from .geofence import GeofenceMonitor
from .ports import Notifier
from .reminders import NotificationDispatcher, ReminderEvaluator
from .rollover import RolloverScheduler
from .sync import SyncReconciler

logger = logging.getLogger(__name__)


def make_clock(timezone: str = "") -> Callable[[], datetime]:
    """Naive local-time clock, in ``timezone`` when one is configured."""
    if not timezone:
        return datetime.now
    zone = ZoneInfo(timezone)
    return lambda: datetime.now(zone).replace(tzinfo=None)


@dataclass
class Engine:
    """All scheduling components for one user, sharing one collection."""

    config: Config
    collection: TaskCollection
    remote: HttpRemoteBackend | OfflineBackend
    archive: FileArchive
    dispatcher: NotificationDispatcher
    reminders: ReminderEvaluator
    rollover: RolloverScheduler
    sync: SyncReconciler
    geofence: GeofenceMonitor | None = None


def build_engine(config: Config, notifiers: list[Notifier] | None = None) -> Engine:
    """Construct the engine from configuration."""
    clock = make_clock(config.timezone)
    collection = TaskCollection(JsonTaskStore(config.data_path), config.user_id)

    if config.remote_base_url:
        remote = HttpRemoteBackend(config.remote_base_url, config.remote_token)
    else:
        remote = OfflineBackend()

    archive = FileArchive(config.archive_path)
    dispatcher = NotificationDispatcher(notifiers if notifiers is not None else [ConsoleNotifier()])
    reminders = ReminderEvaluator(
        collection,
        dispatcher,
        stale_after=timedelta(minutes=config.reminder_stale_minutes),
        clock=clock,
    )

    geofence = None
    if config.location_file:
        geofence = GeofenceMonitor(
            collection,
            FileLocationProvider(config.location_file),
            reminders.on_location_reminder_fired,
            cooldown=timedelta(minutes=config.geofence_cooldown_minutes),
            clock=clock,
        )

    return Engine(
        config=config,
        collection=collection,
        remote=remote,
        archive=archive,
        dispatcher=dispatcher,
        reminders=reminders,
        rollover=RolloverScheduler(collection, archive, clock=clock),
        sync=SyncReconciler(
            collection,
            remote,
            new_item_window=timedelta(seconds=config.new_item_window_seconds),
            clock=clock,
        ),
        geofence=geofence,
    )


def setup_scheduler(engine: Engine) -> AsyncIOScheduler:
    """Set up the periodic reminder tick and geofence poll."""
    config = engine.config
    if config.timezone:
        scheduler = AsyncIOScheduler(timezone=config.timezone)
    else:
        scheduler = AsyncIOScheduler()

    scheduler.add_job(
        engine.reminders.tick,
        IntervalTrigger(seconds=config.reminder_interval_seconds),
        id="reminder_tick",
        max_instances=1,
        coalesce=True,
    )
    logger.info(f"Reminder tick every {config.reminder_interval_seconds}s")

    if engine.geofence is not None:
        scheduler.add_job(
            engine.geofence.poll,
            IntervalTrigger(seconds=config.geofence_interval_seconds),
            id="geofence_poll",
            max_instances=1,
            coalesce=True,
        )
        logger.info(f"Geofence poll every {config.geofence_interval_seconds}s")

    return scheduler


async def startup(engine: Engine) -> None:
    """Catch-up work on process start. Failures are logged, never fatal."""
    try:
        await engine.sync.retry_pending_deletes()
        if engine.config.remote_base_url:
            await engine.sync.pull()
    except EchoDayError as e:
        logger.warning(f"Startup sync failed: {e}")

    if engine.config.rollover_on_start:
        try:
            await engine.rollover.run()
        except EchoDayError as e:
            logger.error(f"Catch-up rollover failed, will retry at midnight: {e}")

    await engine.reminders.tick()


async def shutdown(engine: Engine, scheduler: AsyncIOScheduler) -> None:
    """Clear timers and detach in-flight remote completions."""
    engine.rollover.stop()
    if scheduler.running:
        scheduler.shutdown(wait=False)
    engine.sync.close()
    await engine.dispatcher.drain()
    engine.remote.close()
    logger.info("Scheduler stopped")


async def run_engine(engine: Engine, stop: asyncio.Event | None = None) -> None:
    """Run the engine until ``stop`` is set (or SIGINT/SIGTERM)."""
    stop = stop or asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            pass

    scheduler = setup_scheduler(engine)
    scheduler.start()
    logger.info("Scheduler started")
    try:
        await startup(engine)
        engine.rollover.start(scheduler)
        await stop.wait()
    finally:
        await shutdown(engine, scheduler)
