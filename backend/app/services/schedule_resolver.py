from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from app.services.time_of_day import TimeOfDay, to_display, to_minutes

DEFAULT_DAY_START = TimeOfDay(8, 0)
DEFAULT_DAY_END = TimeOfDay(18, 0)
DEFAULT_MIN_GAP_MINUTES = 30
NOON_MINUTES = 12 * 60


class Weekday(str, Enum):
    sunday = "Sunday"
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"

    @classmethod
    def from_datetime(cls, value: date) -> "Weekday":
        # datetime.weekday() counts from Monday.
        return WEEK_ORDER[(value.weekday() + 1) % 7]


WEEK_ORDER = (
    Weekday.sunday,
    Weekday.monday,
    Weekday.tuesday,
    Weekday.wednesday,
    Weekday.thursday,
    Weekday.friday,
    Weekday.saturday,
)
CLASS_DAYS = WEEK_ORDER[1:6]
DEFAULT_REST_DAYS = frozenset({Weekday.saturday, Weekday.sunday})


class EntryStatus(str, Enum):
    upcoming = "Upcoming"
    ongoing = "Ongoing"
    completed = "Completed"
    cancelled = "Cancelled"


@dataclass(frozen=True)
class WeeklyEntry:
    id: str
    day_of_week: Weekday
    start: TimeOfDay
    end: TimeOfDay
    subject_code: str = "TBD"
    subject_title: str = ""
    location: str = "TBA"
    # Set when a dated override has been merged into the weekly slot.
    override_id: str | None = None
    is_cancelled: bool = False
    time_changed: bool = False
    location_changed: bool = False
    notes: str | None = None


@dataclass(frozen=True)
class InvalidIntervalWarning:
    entry_id: str
    start: TimeOfDay
    end: TimeOfDay
    reason: str = "start time is not before end time"

    @property
    def message(self) -> str:
        return f"Entry {self.entry_id} skipped: {self.reason} ({to_display(self.start)}-{to_display(self.end)})"


@dataclass(frozen=True)
class ScheduledEntry:
    entry: WeeklyEntry
    status: EntryStatus


@dataclass
class DaySchedule:
    day: Weekday
    entries: list[ScheduledEntry] = field(default_factory=list)
    is_rest_day: bool = False
    warnings: list[InvalidIntervalWarning] = field(default_factory=list)


@dataclass(frozen=True)
class FreeSlot:
    label: str
    start_minutes: int | None
    end_minutes: int | None
    description: str


def entries_for_day(
    entries: Iterable[WeeklyEntry], day: Weekday
) -> tuple[list[WeeklyEntry], list[InvalidIntervalWarning]]:
    """Entries on ``day`` ordered by start time, plus warnings for the inverted ones."""
    valid: list[WeeklyEntry] = []
    warnings: list[InvalidIntervalWarning] = []
    for entry in entries:
        if entry.day_of_week != day:
            continue
        if entry.start >= entry.end:
            warnings.append(InvalidIntervalWarning(entry_id=entry.id, start=entry.start, end=entry.end))
            continue
        valid.append(entry)
    valid.sort(key=lambda item: (to_minutes(item.start), item.id))
    return valid, warnings


def classify(entry: WeeklyEntry, now_minutes: int) -> EntryStatus:
    if entry.is_cancelled:
        return EntryStatus.cancelled
    start, end = to_minutes(entry.start), to_minutes(entry.end)
    if start <= now_minutes < end:
        return EntryStatus.ongoing
    if now_minutes >= end:
        return EntryStatus.completed
    return EntryStatus.upcoming


def _status(entry: WeeklyEntry, now_minutes: int | None) -> EntryStatus:
    if now_minutes is None:
        return EntryStatus.cancelled if entry.is_cancelled else EntryStatus.upcoming
    return classify(entry, now_minutes)


def day_schedule(entries: Iterable[WeeklyEntry], day: Weekday, now_minutes: int | None = None) -> DaySchedule:
    ordered, warnings = entries_for_day(entries, day)
    scheduled = [
        ScheduledEntry(
            entry=entry,
            status=_status(entry, now_minutes),
        )
        for entry in ordered
    ]
    return DaySchedule(day=day, entries=scheduled, warnings=warnings)


def today(
    entries: Iterable[WeeklyEntry],
    now: datetime,
    rest_days: Iterable[Weekday] = DEFAULT_REST_DAYS,
) -> DaySchedule:
    day = Weekday.from_datetime(now)
    if day in set(rest_days):
        return DaySchedule(day=day, is_rest_day=True)
    return day_schedule(entries, day, now.hour * 60 + now.minute)


def next_upcoming(schedule: DaySchedule) -> WeeklyEntry | None:
    for item in schedule.entries:
        if item.status == EntryStatus.upcoming:
            return item.entry
    return None


def free_slots(
    schedule: DaySchedule,
    day_start: TimeOfDay = DEFAULT_DAY_START,
    day_end: TimeOfDay = DEFAULT_DAY_END,
    min_gap_minutes: int = DEFAULT_MIN_GAP_MINUTES,
) -> list[FreeSlot]:
    start_of_day, end_of_day = to_minutes(day_start), to_minutes(day_end)
    entries = [item.entry for item in schedule.entries if item.status != EntryStatus.cancelled]
    if not entries:
        return [FreeSlot("All Day", start_of_day, end_of_day, "Free all day")]

    slots: list[FreeSlot] = []
    first_start = to_minutes(entries[0].start)
    if first_start > start_of_day:
        slots.append(FreeSlot("Morning", start_of_day, first_start, f"Free until {to_display(entries[0].start)}"))

    # Gaps open after the latest end seen so far; a class nested in a longer one is not a gap.
    busy_until = entries[0].end
    for following in entries[1:]:
        gap_start, gap_end = to_minutes(busy_until), to_minutes(following.start)
        if gap_end - gap_start >= min_gap_minutes:
            label = "Morning" if gap_start < NOON_MINUTES else "Afternoon"
            slots.append(
                FreeSlot(label, gap_start, gap_end, f"{to_display(busy_until)} - {to_display(following.start)} free")
            )
        busy_until = max(busy_until, following.end)

    last_end = to_minutes(busy_until)
    if last_end < end_of_day:
        slots.append(FreeSlot("Afternoon", last_end, None, f"{to_display(busy_until)} - end of day"))

    if not slots:
        return [FreeSlot("Busy Day!", None, None, "Classes throughout the day")]
    return slots
