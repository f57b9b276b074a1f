"""Task domain model - pure data, no I/O.

All instants are naive local datetimes. ISO strings carrying an offset are
converted to local time when parsed. Wire keys follow the camelCase names the
client persists (``minutesBefore``, ``isDeleted``, ``occurrencesDone``...).
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, TypeVar

from .errors import ValidationError

PRIORITIES = ("high", "medium", "low")
FREQUENCIES = ("daily", "weekly", "monthly")
REMINDER_KINDS = ("relative", "absolute", "location")
END_TYPES = ("never", "count", "on")
GEO_TRIGGERS = ("enter", "exit", "near")

# Weekday indices as persisted by the client: 0 = Sunday ... 6 = Saturday.
SUNDAY, MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY = range(7)

T = TypeVar("T")


def parse_instant(value: Any) -> datetime | None:
    """Parse an ISO timestamp (or datetime) into a naive local datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"Invalid timestamp: {value!r}")
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def format_instant(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def parse_day(value: Any) -> date | None:
    """Parse a YYYY-MM-DD string (or a longer ISO timestamp) into a date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r}")


def js_weekday(day: date) -> int:
    """Weekday index with Sunday = 0, as stored in recurrence rules."""
    return (day.weekday() + 1) % 7


@dataclass
class ReminderConfig:
    """A single reminder attached to a task."""

    id: str
    kind: str = "relative"
    minutes_before: int | None = None
    absolute_time: datetime | None = None
    triggered: bool = False
    snoozed_until: datetime | None = None
    snoozed_count: int = 0

    def __post_init__(self):
        if not self.id:
            raise ValidationError("Reminder id is required")
        if self.kind not in REMINDER_KINDS:
            raise ValidationError(f"Unknown reminder kind: {self.kind!r}")
        if self.kind == "relative":
            if self.minutes_before is None or int(self.minutes_before) < 0:
                raise ValidationError(
                    f"Relative reminder {self.id} needs a non-negative minutesBefore"
                )
            self.minutes_before = int(self.minutes_before)
        if self.kind == "absolute" and self.absolute_time is None:
            raise ValidationError(f"Absolute reminder {self.id} needs absoluteTime")

    @classmethod
    def from_dict(cls, data: dict) -> "ReminderConfig":
        return cls(
            id=str(data.get("id") or ""),
            kind=data.get("type") or data.get("kind") or "relative",
            minutes_before=data.get("minutesBefore"),
            absolute_time=parse_instant(data.get("absoluteTime")),
            triggered=bool(data.get("triggered", False)),
            snoozed_until=parse_instant(data.get("snoozedUntil")),
            snoozed_count=int(data.get("snoozedCount") or 0),
        )

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"id": self.id, "type": self.kind, "triggered": self.triggered}
        if self.minutes_before is not None:
            data["minutesBefore"] = self.minutes_before
        if self.absolute_time:
            data["absoluteTime"] = format_instant(self.absolute_time)
        if self.snoozed_until:
            data["snoozedUntil"] = format_instant(self.snoozed_until)
        if self.snoozed_count:
            data["snoozedCount"] = self.snoozed_count
        return data


@dataclass
class RecurrenceEnd:
    """When a recurrence stops: never, after N occurrences, or on a date."""

    type: str = "never"
    count: int | None = None
    on_date: date | None = None

    def __post_init__(self):
        if self.type not in END_TYPES:
            raise ValidationError(f"Unknown recurrence end type: {self.type!r}")
        if self.type == "count" and (self.count is None or int(self.count) < 1):
            raise ValidationError("Recurrence end 'count' needs a positive count")
        if self.type == "on" and self.on_date is None:
            raise ValidationError("Recurrence end 'on' needs onDate")

    @classmethod
    def from_dict(cls, data: dict) -> "RecurrenceEnd":
        count = data.get("count")
        return cls(
            type=data.get("type") or "never",
            count=int(count) if count is not None else None,
            on_date=parse_day(data.get("onDate")),
        )

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"type": self.type}
        if self.count is not None:
            data["count"] = self.count
        if self.on_date:
            data["onDate"] = self.on_date.isoformat()
        return data


@dataclass
class RecurrenceRule:
    """Declarative rule for generating a repeating task's next occurrence."""

    frequency: str
    interval: int = 1
    by_weekday: tuple[int, ...] | None = None
    ends: RecurrenceEnd | None = None
    occurrences_done: int = 0

    def __post_init__(self):
        if self.frequency not in FREQUENCIES:
            raise ValidationError(f"Unknown recurrence frequency: {self.frequency!r}")
        if isinstance(self.interval, bool) or not isinstance(self.interval, int) or self.interval < 1:
            raise ValidationError(f"Recurrence interval must be a positive integer, got {self.interval!r}")
        if self.by_weekday is not None:
            if self.frequency != "weekly":
                raise ValidationError("byWeekday is only valid for weekly recurrence")
            days = sorted(set(self.by_weekday))
            if not days:
                raise ValidationError("byWeekday must not be empty")
            if any(not isinstance(d, int) or d < 0 or d > 6 for d in days):
                raise ValidationError(f"byWeekday values must be 0-6, got {self.by_weekday!r}")
            self.by_weekday = tuple(days)
        if self.occurrences_done < 0:
            raise ValidationError("occurrencesDone must not be negative")

    @classmethod
    def from_dict(cls, data: dict) -> "RecurrenceRule":
        by_weekday = data.get("byWeekday")
        ends = data.get("ends")
        return cls(
            frequency=data.get("frequency", ""),
            interval=data.get("interval", 1) or 1,
            by_weekday=tuple(by_weekday) if by_weekday else None,
            ends=RecurrenceEnd.from_dict(ends) if ends else None,
            occurrences_done=int(data.get("occurrencesDone") or 0),
        )

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "frequency": self.frequency,
            "interval": self.interval,
            "occurrencesDone": self.occurrences_done,
        }
        if self.by_weekday:
            data["byWeekday"] = list(self.by_weekday)
        if self.ends:
            data["ends"] = self.ends.to_dict()
        return data


@dataclass
class LocationReminder:
    """Geofence metadata for a location-triggered reminder."""

    lat: float
    lng: float
    radius: float
    trigger: str = "enter"
    address: str | None = None
    enabled: bool = True
    last_triggered_at: datetime | None = None

    def __post_init__(self):
        if not -90 <= self.lat <= 90 or not -180 <= self.lng <= 180:
            raise ValidationError(f"Invalid coordinates: {self.lat}, {self.lng}")
        if self.radius <= 0:
            raise ValidationError("Geofence radius must be positive")
        if self.trigger not in GEO_TRIGGERS:
            raise ValidationError(f"Unknown geofence trigger: {self.trigger!r}")

    @classmethod
    def from_dict(cls, data: dict) -> "LocationReminder":
        try:
            lat, lng, radius = float(data["lat"]), float(data["lng"]), float(data["radius"])
        except (KeyError, TypeError, ValueError):
            raise ValidationError(f"Invalid location reminder: {data!r}")
        return cls(
            lat=lat,
            lng=lng,
            radius=radius,
            trigger=data.get("trigger", "enter"),
            address=data.get("address"),
            enabled=bool(data.get("enabled", True)),
            last_triggered_at=parse_instant(data.get("lastTriggeredAt")),
        )

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "lat": self.lat,
            "lng": self.lng,
            "radius": self.radius,
            "trigger": self.trigger,
            "enabled": self.enabled,
        }
        if self.address:
            data["address"] = self.address
        if self.last_triggered_at:
            data["lastTriggeredAt"] = format_instant(self.last_triggered_at)
        return data


@dataclass
class Task:
    """A task, optionally scheduled, with reminders and a recurrence rule.

    ``due`` is persisted under the ``datetime`` key.
    """

    id: str
    text: str
    priority: str = "medium"
    due: datetime | None = None
    completed: bool = False
    created_at: datetime = field(default_factory=datetime.now)
    is_deleted: bool = False
    reminders: list[ReminderConfig] = field(default_factory=list)
    recurrence: RecurrenceRule | None = None
    location_reminder: LocationReminder | None = None
    parent_id: str | None = None

    def __post_init__(self):
        if not self.id:
            raise ValidationError("Task id is required")
        if self.priority not in PRIORITIES:
            raise ValidationError(f"Unknown priority: {self.priority!r}")
        ids = [r.id for r in self.reminders]
        if len(ids) != len(set(ids)):
            raise ValidationError(f"Task {self.id} has duplicate reminder ids")

    def reminder(self, reminder_id: str) -> ReminderConfig | None:
        return next((r for r in self.reminders if r.id == reminder_id), None)

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create Task from a stored or remote record."""
        if not isinstance(data, dict):
            raise ValidationError(f"Task record must be an object, got {type(data).__name__}")
        recurrence = data.get("recurrence")
        location = data.get("locationReminder")
        return cls(
            id=str(data.get("id") or ""),
            text=str(data.get("text") or ""),
            priority=data.get("priority") or "medium",
            due=parse_instant(data.get("datetime")),
            completed=bool(data.get("completed", False)),
            created_at=parse_instant(data.get("createdAt")) or datetime.now(),
            is_deleted=bool(data.get("isDeleted", False)),
            reminders=[ReminderConfig.from_dict(r) for r in data.get("reminders") or []],
            recurrence=RecurrenceRule.from_dict(recurrence) if recurrence else None,
            location_reminder=LocationReminder.from_dict(location) if location else None,
            parent_id=data.get("parentId"),
        )

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "priority": self.priority,
            "datetime": format_instant(self.due),
            "completed": self.completed,
            "createdAt": format_instant(self.created_at),
            "isDeleted": self.is_deleted,
            "reminders": [r.to_dict() for r in self.reminders],
        }
        if self.recurrence:
            data["recurrence"] = self.recurrence.to_dict()
        if self.location_reminder:
            data["locationReminder"] = self.location_reminder.to_dict()
        if self.parent_id:
            data["parentId"] = self.parent_id
        return data


@dataclass
class Note:
    """A journal note. Pinned or favorite notes survive the daily rollover."""

    id: str
    text: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    pinned: bool = False
    favorite: bool = False
    is_deleted: bool = False

    def __post_init__(self):
        if not self.id:
            raise ValidationError("Note id is required")

    @property
    def is_kept(self) -> bool:
        return self.pinned or self.favorite

    @classmethod
    def from_dict(cls, data: dict) -> "Note":
        if not isinstance(data, dict):
            raise ValidationError(f"Note record must be an object, got {type(data).__name__}")
        return cls(
            id=str(data.get("id") or ""),
            text=str(data.get("text") or ""),
            created_at=parse_instant(data.get("createdAt")) or datetime.now(),
            pinned=bool(data.get("pinned", False)),
            favorite=bool(data.get("favorite", False)),
            is_deleted=bool(data.get("isDeleted", False)),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "createdAt": format_instant(self.created_at),
            "pinned": self.pinned,
            "favorite": self.favorite,
            "isDeleted": self.is_deleted,
        }


@dataclass(frozen=True)
class ActiveReminder:
    """A reminder whose due condition holds and which awaits acknowledgement."""

    task_id: str
    reminder_id: str
    message: str
    priority: str
    created_at: datetime

    @property
    def key(self) -> tuple[str, str]:
        return (self.task_id, self.reminder_id)

    def to_dict(self) -> dict:
        return {
            "taskId": self.task_id,
            "reminderId": self.reminder_id,
            "message": self.message,
            "priority": self.priority,
            "createdAt": format_instant(self.created_at),
        }


def parse_records(
    items: list[dict], factory: Callable[[dict], T]
) -> tuple[list[T], list[tuple[Any, ValidationError]]]:
    """
    Parse raw records, separating valid ones from rejects.

    Returns: (records, rejects) where each reject is (raw_item, error).
    Pure function - callers decide how to report rejects.
    """
    records: list[T] = []
    rejects: list[tuple[Any, ValidationError]] = []
    for item in items:
        try:
            records.append(factory(item))
        except (ValidationError, TypeError, ValueError) as e:
            error = e if isinstance(e, ValidationError) else ValidationError(str(e))
            rejects.append((item, error))
    return records, rejects
