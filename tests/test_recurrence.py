"""Tests for recurrence computation."""

from datetime import date, datetime

import pytest

from echoday.core.models import (
    FRIDAY,
    MONDAY,
    WEDNESDAY,
    LocationReminder,
    RecurrenceEnd,
    RecurrenceRule,
    ReminderConfig,
    Task,
)
from echoday.core.recurrence import compute_next_occurrence, next_date


@pytest.fixture
def completed_at():
    return datetime(2025, 1, 1, 18, 0)


def recurring(rule: RecurrenceRule, due: datetime | None, **kwargs) -> Task:
    return Task(id="t1", text="Water plants", due=due, completed=True, recurrence=rule, **kwargs)


def chain(task: Task, steps: int, now: datetime) -> list[Task]:
    occurrences = [task]
    for _ in range(steps):
        successor = compute_next_occurrence(occurrences[-1], now=now)
        if successor is None:
            break
        occurrences.append(successor)
    return occurrences


class TestNextDate:
    def test_daily_interval(self):
        rule = RecurrenceRule(frequency="daily", interval=3)
        assert next_date(rule, datetime(2025, 1, 30, 9)) == datetime(2025, 2, 2, 9)

    def test_weekly_without_weekdays(self):
        rule = RecurrenceRule(frequency="weekly", interval=2)
        assert next_date(rule, datetime(2025, 1, 8, 9)) == datetime(2025, 1, 22, 9)

    def test_weekly_moves_to_next_listed_weekday(self):
        rule = RecurrenceRule(frequency="weekly", by_weekday=(MONDAY, WEDNESDAY, FRIDAY))
        # 2025-01-08 is a Wednesday
        assert next_date(rule, datetime(2025, 1, 8, 9)) == datetime(2025, 1, 10, 9)

    def test_weekly_wraps_to_first_weekday(self):
        rule = RecurrenceRule(frequency="weekly", by_weekday=(MONDAY, WEDNESDAY, FRIDAY))
        assert next_date(rule, datetime(2025, 1, 10, 9)) == datetime(2025, 1, 13, 9)

    def test_weekly_wrap_goes_to_following_week(self):
        rule = RecurrenceRule(frequency="weekly", interval=2, by_weekday=(MONDAY,))
        # Listed weekdays ignore the interval
        assert next_date(rule, datetime(2025, 1, 13, 9)) == datetime(2025, 1, 20, 9)

    def test_monthly_keeps_day(self):
        rule = RecurrenceRule(frequency="monthly")
        assert next_date(rule, datetime(2025, 1, 15, 9)) == datetime(2025, 2, 15, 9)

    def test_monthly_clamps_to_month_end(self):
        rule = RecurrenceRule(frequency="monthly")
        assert next_date(rule, datetime(2025, 1, 31, 9)) == datetime(2025, 2, 28, 9)
        assert next_date(rule, datetime(2024, 1, 31, 9)) == datetime(2024, 2, 29, 9)

    def test_monthly_crosses_year(self):
        rule = RecurrenceRule(frequency="monthly", interval=3)
        assert next_date(rule, datetime(2024, 11, 5, 9)) == datetime(2025, 2, 5, 9)


class TestComputeNextOccurrence:
    def test_no_recurrence(self, completed_at):
        task = Task(id="t1", text="Once", due=datetime(2025, 1, 1, 9), completed=True)
        assert compute_next_occurrence(task, now=completed_at) is None

    def test_daily_every_two_days_chain(self, completed_at):
        task = recurring(RecurrenceRule(frequency="daily", interval=2), datetime(2025, 1, 1, 9))

        dates = [t.due.date() for t in chain(task, 4, completed_at)]

        assert dates == [
            date(2025, 1, 1),
            date(2025, 1, 3),
            date(2025, 1, 5),
            date(2025, 1, 7),
            date(2025, 1, 9),
        ]

    def test_weekly_mon_wed_fri_chain(self, completed_at):
        rule = RecurrenceRule(frequency="weekly", by_weekday=(MONDAY, WEDNESDAY, FRIDAY))
        task = recurring(rule, datetime(2025, 1, 8, 9))

        dates = [t.due.date() for t in chain(task, 4, completed_at)]

        assert dates == [
            date(2025, 1, 8),
            date(2025, 1, 10),
            date(2025, 1, 13),
            date(2025, 1, 15),
            date(2025, 1, 17),
        ]

    def test_count_end_stops_after_count_occurrences(self, completed_at):
        rule = RecurrenceRule(frequency="daily", ends=RecurrenceEnd(type="count", count=3))
        task = recurring(rule, datetime(2025, 1, 1, 9))

        occurrences = chain(task, 10, completed_at)

        assert len(occurrences) == 3
        assert [t.recurrence.occurrences_done for t in occurrences] == [0, 1, 2]

    def test_on_date_end_is_inclusive(self, completed_at):
        rule = RecurrenceRule(frequency="daily", ends=RecurrenceEnd(type="on", on_date=date(2025, 1, 5)))

        successor = compute_next_occurrence(recurring(rule, datetime(2025, 1, 4, 9)), now=completed_at)
        assert successor.due == datetime(2025, 1, 5, 9)

        assert compute_next_occurrence(recurring(rule, datetime(2025, 1, 5, 9)), now=completed_at) is None

    def test_successor_is_fresh(self, completed_at):
        task = recurring(
            RecurrenceRule(frequency="daily"),
            datetime(2025, 1, 1, 9),
            reminders=[
                ReminderConfig(
                    id="r1",
                    minutes_before=15,
                    triggered=True,
                    snoozed_until=datetime(2025, 1, 1, 9, 5),
                    snoozed_count=2,
                )
            ],
            location_reminder=LocationReminder(
                lat=1.0, lng=1.0, radius=50, last_triggered_at=datetime(2025, 1, 1, 8)
            ),
        )

        successor = compute_next_occurrence(task, now=completed_at, new_id="t2")

        assert successor.id == "t2"
        assert successor.completed is False
        assert successor.created_at == completed_at
        assert successor.text == task.text
        assert successor.parent_id == "t1"
        reminder = successor.reminder("r1")
        assert reminder.triggered is False
        assert reminder.snoozed_until is None
        assert reminder.snoozed_count == 0
        assert reminder.minutes_before == 15
        assert successor.location_reminder.last_triggered_at is None

    def test_original_is_not_modified(self, completed_at):
        task = recurring(RecurrenceRule(frequency="daily"), datetime(2025, 1, 1, 9))
        compute_next_occurrence(task, now=completed_at)
        assert task.recurrence.occurrences_done == 0
        assert task.completed is True

    def test_parent_id_points_to_chain_root(self, completed_at):
        task = recurring(RecurrenceRule(frequency="daily"), datetime(2025, 1, 1, 9))
        occurrences = chain(task, 3, completed_at)
        assert {t.parent_id for t in occurrences[1:]} == {"t1"}

    def test_new_ids_are_unique(self, completed_at):
        task = recurring(RecurrenceRule(frequency="daily"), datetime(2025, 1, 1, 9))
        ids = [t.id for t in chain(task, 5, completed_at)]
        assert len(ids) == len(set(ids))

    def test_unscheduled_task_stays_unscheduled(self, completed_at):
        task = recurring(RecurrenceRule(frequency="daily"), None)

        successor = compute_next_occurrence(task, now=completed_at)

        assert successor is not None
        assert successor.due is None
        assert successor.recurrence.occurrences_done == 1
