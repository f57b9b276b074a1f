"""Tests for engine wiring and startup."""

import asyncio
from datetime import datetime

import pytest

from echoday.adapters import HttpRemoteBackend, OfflineBackend
from echoday.config import Config
from echoday.core.models import ReminderConfig, Task
from echoday.runtime import build_engine, make_clock, run_engine, setup_scheduler, startup

from .fakes import RecordingNotifier


@pytest.fixture
def config(tmp_path):
    return Config(user_id="u1", data_dir=str(tmp_path))


class TestBuildEngine:
    def test_offline_by_default(self, config):
        engine = build_engine(config, notifiers=[])
        assert isinstance(engine.remote, OfflineBackend)
        assert engine.geofence is None

    def test_remote_and_geofence_configured(self, config, tmp_path):
        config.remote_base_url = "https://sync.example.com"
        config.location_file = str(tmp_path / "where.json")

        engine = build_engine(config, notifiers=[])

        assert isinstance(engine.remote, HttpRemoteBackend)
        assert engine.geofence is not None

    def test_components_share_collection(self, config):
        engine = build_engine(config, notifiers=[])
        assert engine.reminders.collection is engine.collection
        assert engine.rollover.collection is engine.collection
        assert engine.sync.collection is engine.collection


class TestMakeClock:
    def test_naive_local_time(self):
        assert make_clock()().tzinfo is None

    def test_zone_clock_is_naive(self):
        assert make_clock("Europe/Berlin")().tzinfo is None


class TestSetupScheduler:
    def test_reminder_tick_job(self, config):
        scheduler = setup_scheduler(build_engine(config, notifiers=[]))
        assert [job.id for job in scheduler.get_jobs()] == ["reminder_tick"]

    def test_geofence_job(self, config, tmp_path):
        config.location_file = str(tmp_path / "where.json")
        scheduler = setup_scheduler(build_engine(config, notifiers=[]))
        assert {job.id for job in scheduler.get_jobs()} == {"reminder_tick", "geofence_poll"}


class TestStartup:
    @pytest.mark.asyncio
    async def test_catch_up_rollover_and_tick(self, config):
        notifier = RecordingNotifier()
        engine = build_engine(config, notifiers=[notifier])
        now = datetime.now()
        engine.collection.replace(
            [
                Task(id="done", text="Shipped", completed=True),
                Task(
                    id="soon",
                    text="Standup",
                    due=now,
                    reminders=[ReminderConfig(id="r1", minutes_before=0)],
                ),
            ]
        )

        await startup(engine)
        await engine.dispatcher.drain()

        assert engine.collection.last_archive_date() == now.date()
        assert [t.id for t in engine.collection.snapshot()] == ["soon"]
        assert [r.key for r in notifier.delivered] == [("soon", "r1")]

    @pytest.mark.asyncio
    async def test_run_engine_stops_cleanly(self, config):
        config.rollover_on_start = False
        engine = build_engine(config, notifiers=[])
        stop = asyncio.Event()
        stop.set()

        await run_engine(engine, stop)

        assert engine.sync._closed
