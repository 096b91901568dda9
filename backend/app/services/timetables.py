from __future__ import annotations

from dataclasses import replace
from datetime import date
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.exceptions import ConfigurationError, FormatError
from app.models.course import Course
from app.models.timetable import ClassOverride, Timetable, TimetableEntry
from app.models.user import User
from app.services.schedule_resolver import Weekday, WeeklyEntry
from app.services.time_of_day import TimeOfDay, parse_storage

logger = logging.getLogger(__name__)


def get_group_timetable(db: Session, user: User) -> Timetable | None:
    if not user.class_group_id:
        return None
    query = select(Timetable).where(
        Timetable.class_group_id == user.class_group_id,
        Timetable.semester_id == user.current_semester_id
        if user.current_semester_id
        else Timetable.semester_id.is_(None),
    )
    return db.execute(query).scalars().first()


def get_or_create_group_timetable(db: Session, user: User) -> Timetable:
    timetable = get_group_timetable(db, user)
    if timetable is not None:
        return timetable
    timetable = Timetable(
        class_group_id=user.class_group_id,
        semester_id=user.current_semester_id,
        created_by_id=user.id,
    )
    db.add(timetable)
    db.flush()
    logger.info("Created timetable %s for class group %s", timetable.id, user.class_group_id)
    return timetable


def load_entry_rows(db: Session, timetable: Timetable) -> list[tuple[TimetableEntry, Course | None]]:
    query = (
        select(TimetableEntry, Course)
        .outerjoin(Course, Course.id == TimetableEntry.course_id)
        .where(TimetableEntry.timetable_id == timetable.id)
    )
    return [(row[0], row[1]) for row in db.execute(query).all()]


def to_weekly_entry(entry: TimetableEntry, course: Course | None = None) -> WeeklyEntry:
    return WeeklyEntry(
        id=entry.id,
        day_of_week=Weekday(entry.day_of_week),
        start=parse_storage(entry.start_time),
        end=parse_storage(entry.end_time),
        subject_code=course.code if course is not None else "TBD",
        subject_title=course.title if course is not None else "",
        location=entry.location or "TBA",
    )


def load_weekly_entries(db: Session, user: User) -> tuple[Timetable | None, list[WeeklyEntry]]:
    """The group's weekly entries. Rows with unreadable day or time values are skipped."""
    timetable = get_group_timetable(db, user)
    if timetable is None:
        return None, []
    entries: list[WeeklyEntry] = []
    for row, course in load_entry_rows(db, timetable):
        try:
            entries.append(to_weekly_entry(row, course))
        except (FormatError, ValueError):
            logger.warning(
                "Skipping timetable entry %s with unreadable schedule (%s %s-%s)",
                row.id,
                row.day_of_week,
                row.start_time,
                row.end_time,
            )
    return timetable, entries


def load_class_overrides(db: Session, user: User, on_date: date) -> list[tuple[ClassOverride, Course | None]]:
    if not user.class_group_id:
        return []
    query = (
        select(ClassOverride, Course)
        .outerjoin(Course, Course.id == ClassOverride.course_id)
        .where(ClassOverride.class_group_id == user.class_group_id, ClassOverride.on_date == on_date)
        .order_by(ClassOverride.created_at.asc(), ClassOverride.id.asc())
    )
    return [(row[0], row[1]) for row in db.execute(query).all()]


def _override_entry(entry: WeeklyEntry, override: ClassOverride, course: Course | None) -> WeeklyEntry:
    start = parse_storage(override.start_time) if override.start_time else entry.start
    end = parse_storage(override.end_time) if override.end_time else entry.end
    location = override.location or entry.location
    return replace(
        entry,
        start=start,
        end=end,
        subject_code=course.code if course is not None else entry.subject_code,
        subject_title=course.title if course is not None else entry.subject_title,
        location=location,
        override_id=override.id,
        is_cancelled=bool(override.is_cancelled),
        time_changed=(start, end) != (entry.start, entry.end),
        location_changed=location != entry.location,
        notes=override.notes,
    )


def _extra_entry(override: ClassOverride, course: Course | None) -> WeeklyEntry:
    return WeeklyEntry(
        id=override.id,
        day_of_week=Weekday.from_datetime(override.on_date),
        start=parse_storage(override.start_time),
        end=parse_storage(override.end_time),
        subject_code=course.code if course is not None else "TBD",
        subject_title=course.title if course is not None else "",
        location=override.location or "TBA",
        override_id=override.id,
        is_cancelled=bool(override.is_cancelled),
        notes=override.notes,
    )


def apply_class_overrides(
    entries: list[WeeklyEntry],
    overrides: list[tuple[ClassOverride, Course | None]],
) -> list[WeeklyEntry]:
    """Weekly entries with one day's overrides merged in.

    Overrides that name a weekly entry replace it on that entry's day only; the rest are
    added as extra classes. Overrides that cannot be read are skipped.
    """
    by_entry: dict[str, tuple[ClassOverride, Course | None]] = {}
    extras: list[WeeklyEntry] = []
    for override, course in overrides:
        if override.timetable_entry_id:
            by_entry[override.timetable_entry_id] = (override, course)
            continue
        try:
            extras.append(_extra_entry(override, course))
        except FormatError:
            logger.warning("Skipping class override %s with unreadable time", override.id)

    merged: list[WeeklyEntry] = []
    for entry in entries:
        match = by_entry.get(entry.id)
        if match is None:
            merged.append(entry)
            continue
        override, course = match
        if Weekday.from_datetime(override.on_date) != entry.day_of_week:
            logger.warning("Class override %s falls on a different day than entry %s", override.id, entry.id)
            merged.append(entry)
            continue
        try:
            merged.append(_override_entry(entry, override, course))
        except FormatError:
            logger.warning("Skipping class override %s with unreadable time", override.id)
            merged.append(entry)
    return merged + extras


def load_entries_for_date(db: Session, user: User, on_date: date) -> list[WeeklyEntry]:
    _, entries = load_weekly_entries(db, user)
    return apply_class_overrides(entries, load_class_overrides(db, user, on_date))


def schedule_window(settings: Settings) -> tuple[TimeOfDay, TimeOfDay]:
    try:
        day_start = parse_storage(settings.schedule_day_start)
        day_end = parse_storage(settings.schedule_day_end)
    except FormatError as exc:
        raise ConfigurationError(f"Invalid schedule window: {exc.message}", details=exc.details) from exc
    if day_start >= day_end:
        raise ConfigurationError(
            "schedule_day_start must be before schedule_day_end",
            details={"start": settings.schedule_day_start, "end": settings.schedule_day_end},
        )
    return day_start, day_end


def rest_days(settings: Settings) -> set[Weekday]:
    return {Weekday(day) for day in settings.rest_days}
