from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import asdict
from datetime import datetime, timedelta

from app.services import schedule_resolver, view_tracker
from app.services.schedule_resolver import (
    CLASS_DAYS,
    DEFAULT_DAY_END,
    DEFAULT_DAY_START,
    DEFAULT_MIN_GAP_MINUTES,
    DEFAULT_REST_DAYS,
    DaySchedule,
    InvalidIntervalWarning,
    Weekday,
    WeeklyEntry,
)
from app.services.time_of_day import TimeOfDay, display_range, to_minutes
from app.services.view_tracker import TrackedRecord, ViewLog

ONE_DAY = timedelta(days=1)


def _due_label(value: datetime) -> str:
    return f"{value:%b} {value.day}"


def _next_assignment(record: TrackedRecord, now: datetime) -> dict:
    days_left = math.ceil((record.due_at - now) / ONE_DAY)
    local_due = record.due_at.astimezone(now.tzinfo) if now.tzinfo is not None else record.due_at
    return {
        "id": record.id,
        "title": record.title,
        "course_code": record.subject_code or "Unknown",
        "due_at": record.due_at,
        "due_label": _due_label(local_due),
        "days_left": max(0, days_left),
    }


def assignment_overview(records: Sequence[TrackedRecord], now: datetime) -> dict:
    upcoming = view_tracker.next_due(records, now)
    return {
        "stats": asdict(view_tracker.stats(records, now)),
        "next_assignment": _next_assignment(upcoming, now) if upcoming is not None else None,
        "upcoming_count": view_tracker.upcoming_count(records, now),
    }


def unread_summary(member_id: str, records: Sequence[TrackedRecord], view_log: ViewLog) -> dict:
    unviewed = view_tracker.unviewed_ids(member_id, records, view_log)
    return {"unviewed_ids": sorted(unviewed), "unread_count": len(unviewed)}


def _warning_out(warning: InvalidIntervalWarning) -> dict:
    return {"entry_id": warning.entry_id, "message": warning.message}


def _schedule_item(entry: WeeklyEntry, status: str | None = None) -> dict:
    item = {
        "id": entry.id,
        "code": entry.subject_code,
        "title": entry.subject_title,
        "location": entry.location,
        "time": display_range(entry.start, entry.end),
        "start_minutes": to_minutes(entry.start),
    }
    if entry.override_id is not None:
        item.update(
            override_id=entry.override_id,
            is_cancelled=entry.is_cancelled,
            time_changed=entry.time_changed,
            location_changed=entry.location_changed,
            notes=entry.notes,
        )
    if status is not None:
        item["status"] = status
    return item


def todays_schedule(
    entries: Sequence[WeeklyEntry],
    now: datetime,
    rest_days: Iterable[Weekday] = DEFAULT_REST_DAYS,
) -> dict:
    schedule: DaySchedule = schedule_resolver.today(entries, now, rest_days)
    upcoming = schedule_resolver.next_upcoming(schedule)
    return {
        "day": schedule.day.value,
        "is_rest_day": schedule.is_rest_day,
        "schedule": [_schedule_item(item.entry, item.status.value) for item in schedule.entries],
        "next_class": (
            {
                "code": upcoming.subject_code,
                "location": upcoming.location,
                "time": display_range(upcoming.start, upcoming.end),
            }
            if upcoming is not None
            else None
        ),
        "warnings": [_warning_out(warning) for warning in schedule.warnings],
    }


def free_time(
    entries: Sequence[WeeklyEntry],
    day: Weekday,
    *,
    day_start: TimeOfDay = DEFAULT_DAY_START,
    day_end: TimeOfDay = DEFAULT_DAY_END,
    min_gap_minutes: int = DEFAULT_MIN_GAP_MINUTES,
) -> dict:
    schedule = schedule_resolver.day_schedule(entries, day)
    slots = schedule_resolver.free_slots(schedule, day_start, day_end, min_gap_minutes)
    return {
        "day": day.value,
        "slots": [asdict(slot) for slot in slots],
        "warnings": [_warning_out(warning) for warning in schedule.warnings],
    }


def weekly_timetable(entries: Sequence[WeeklyEntry], days: Iterable[Weekday] = CLASS_DAYS) -> dict:
    grouped: dict[str, list[dict]] = {}
    warnings: list[dict] = []
    for day in days:
        ordered, day_warnings = schedule_resolver.entries_for_day(entries, day)
        grouped[day.value] = [_schedule_item(entry) for entry in ordered]
        warnings.extend(_warning_out(warning) for warning in day_warnings)
    return {"timetable": grouped, "warnings": warnings}
