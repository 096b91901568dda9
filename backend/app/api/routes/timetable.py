from datetime import date, datetime
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.api.deps import EDITOR_ROLES, get_current_user, get_db, get_now, is_course_rep, require_class_group, require_roles
from app.core.config import get_settings
from app.models.course import Course
from app.models.notification import NotificationType
from app.models.timetable import ClassOverride, Timetable, TimetableEntry
from app.models.user import User
from app.schemas.timetable import (
    DAY_VALUES,
    ClassOverrideCreate,
    ClassOverrideOut,
    FreeTimeOut,
    TimetableEntryCreate,
    TimetableEntryOut,
    TimetableEntryUpdate,
    TodayScheduleOut,
    WeeklyTimetableOut,
)
from app.services import activity
from app.services.audit import log_activity
from app.services.notifications import notify_class_group
from app.services.schedule_resolver import Weekday
from app.services.time_of_day import display_range, parse_storage
from app.services.timetables import (
    get_or_create_group_timetable,
    load_class_overrides,
    load_entries_for_date,
    load_weekly_entries,
    rest_days,
    schedule_window,
)

settings = get_settings()
router = APIRouter()
logger = logging.getLogger(__name__)


def _log_warnings(user: User, warnings: list[dict]) -> None:
    for warning in warnings:
        logger.warning("Class group %s: %s", user.class_group_id, warning["message"])


def _entry_out(entry: TimetableEntry, course: Course | None) -> TimetableEntryOut:
    return TimetableEntryOut(
        id=entry.id,
        timetable_id=entry.timetable_id,
        course_id=entry.course_id,
        course_code=course.code if course is not None else None,
        day_of_week=entry.day_of_week,
        start_time=entry.start_time,
        end_time=entry.end_time,
        time=display_range(parse_storage(entry.start_time), parse_storage(entry.end_time)),
        location=entry.location,
        notes=entry.notes,
    )


def _get_entry_or_404(db: Session, user: User, entry_id: str) -> tuple[TimetableEntry, Timetable]:
    entry = db.get(TimetableEntry, entry_id)
    timetable = db.get(Timetable, entry.timetable_id) if entry is not None else None
    if entry is None or timetable is None or timetable.class_group_id != user.class_group_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Timetable entry not found")
    return entry, timetable


def _get_course_or_404(db: Session, course_id: str) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    return course


def _notify_timetable_change(db: Session, user: User, *, message: str, data: dict) -> None:
    notify_class_group(
        db,
        class_group_id=user.class_group_id,
        title="Timetable updated",
        message=message,
        notification_type=NotificationType.timetable_updated,
        exclude_user_id=user.id,
        data=data,
    )


@router.get("/timetable", response_model=WeeklyTimetableOut)
def get_timetable(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> WeeklyTimetableOut:
    timetable, entries = load_weekly_entries(db, current_user)
    weekly = activity.weekly_timetable(entries)
    _log_warnings(current_user, weekly["warnings"])
    return WeeklyTimetableOut(
        timetable=weekly["timetable"],
        has_timetable=bool(entries),
        is_course_rep=is_course_rep(current_user),
        timetable_id=timetable.id if timetable is not None else None,
        warnings=weekly["warnings"],
    )


@router.get("/timetable/today", response_model=TodayScheduleOut)
def get_today(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> TodayScheduleOut:
    entries = load_entries_for_date(db, current_user, now.date())
    summary = activity.todays_schedule(entries, now, rest_days(settings))
    _log_warnings(current_user, summary["warnings"])
    return TodayScheduleOut.model_validate(summary)


@router.get("/timetable/free-time", response_model=FreeTimeOut)
def get_free_time(
    day: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> FreeTimeOut:
    if day is None:
        selected = Weekday.from_datetime(now)
    else:
        normalized = day.strip().capitalize()
        if normalized not in DAY_VALUES:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Invalid day value")
        selected = Weekday(normalized)

    # Today's overrides only touch entries on today's weekday.
    entries = load_entries_for_date(db, current_user, now.date())
    day_start, day_end = schedule_window(settings)
    summary = activity.free_time(
        entries,
        selected,
        day_start=day_start,
        day_end=day_end,
        min_gap_minutes=settings.free_slot_min_minutes,
    )
    return FreeTimeOut.model_validate(summary)


@router.post("/timetable/entries", response_model=TimetableEntryOut, status_code=status.HTTP_201_CREATED)
def create_entry(
    payload: TimetableEntryCreate,
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
    db: Session = Depends(get_db),
) -> TimetableEntryOut:
    require_class_group(current_user)
    if not current_user.current_semester_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please set your current semester before creating a timetable",
        )
    course = _get_course_or_404(db, payload.course_id)
    timetable = get_or_create_group_timetable(db, current_user)

    entry = TimetableEntry(
        timetable_id=timetable.id,
        course_id=course.id,
        day_of_week=payload.day_of_week,
        start_time=payload.start_time,
        end_time=payload.end_time,
        location=payload.location,
        notes=payload.notes,
    )
    db.add(entry)
    db.flush()

    time_label = display_range(parse_storage(entry.start_time), parse_storage(entry.end_time))
    _notify_timetable_change(
        db,
        current_user,
        message=f"{course.code} added on {entry.day_of_week} {time_label}",
        data={"entry_id": entry.id},
    )
    log_activity(
        db,
        user=current_user,
        action="timetable.entry.create",
        entity_type="timetable_entry",
        entity_id=entry.id,
        details={"day": entry.day_of_week, "course_code": course.code},
    )
    db.commit()
    db.refresh(entry)
    return _entry_out(entry, course)


@router.patch("/timetable/entries/{entry_id}", response_model=TimetableEntryOut)
def update_entry(
    entry_id: str,
    payload: TimetableEntryUpdate,
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
    db: Session = Depends(get_db),
) -> TimetableEntryOut:
    entry, _ = _get_entry_or_404(db, current_user, entry_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("course_id") is not None:
        _get_course_or_404(db, changes["course_id"])

    start_time = changes.get("start_time") or entry.start_time
    end_time = changes.get("end_time") or entry.end_time
    if parse_storage(end_time) <= parse_storage(start_time):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="end_time must be after start_time",
        )

    for field, value in changes.items():
        if field in {"course_id", "day_of_week", "start_time", "end_time"} and value is None:
            continue
        setattr(entry, field, value)

    course = db.get(Course, entry.course_id)
    if changes:
        _notify_timetable_change(
            db,
            current_user,
            message=f"{course.code if course else 'A class'} on {entry.day_of_week} was updated",
            data={"entry_id": entry.id},
        )
        log_activity(
            db,
            user=current_user,
            action="timetable.entry.update",
            entity_type="timetable_entry",
            entity_id=entry.id,
            details={"fields": sorted(changes)},
        )
    db.commit()
    db.refresh(entry)
    return _entry_out(entry, course)


@router.delete("/timetable/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entry(
    entry_id: str,
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
    db: Session = Depends(get_db),
) -> Response:
    entry, _ = _get_entry_or_404(db, current_user, entry_id)
    course = db.get(Course, entry.course_id)
    _notify_timetable_change(
        db,
        current_user,
        message=f"{course.code if course else 'A class'} on {entry.day_of_week} was removed",
        data={"entry_id": entry.id},
    )
    db.execute(delete(ClassOverride).where(ClassOverride.timetable_entry_id == entry.id))
    db.delete(entry)
    log_activity(
        db,
        user=current_user,
        action="timetable.entry.delete",
        entity_type="timetable_entry",
        entity_id=entry_id,
    )
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)



def _override_out(override: ClassOverride, course: Course | None) -> ClassOverrideOut:
    return ClassOverrideOut(
        id=override.id,
        on_date=override.on_date,
        timetable_entry_id=override.timetable_entry_id,
        course_id=override.course_id,
        course_code=course.code if course is not None else None,
        start_time=override.start_time,
        end_time=override.end_time,
        location=override.location,
        is_cancelled=override.is_cancelled,
        notes=override.notes,
    )


def _override_message(override: ClassOverride, code: str) -> str:
    day = override.on_date.isoformat()
    if override.is_cancelled:
        return f"{code} on {day} is cancelled"
    if override.timetable_entry_id is None:
        return f"Extra {code} class on {day}"
    return f"{code} on {day} has changed"


@router.get("/timetable/overrides", response_model=list[ClassOverrideOut])
def list_overrides(
    on: date | None = Query(default=None, alias="date"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> list[ClassOverrideOut]:
    rows = load_class_overrides(db, current_user, on or now.date())
    return [_override_out(override, course) for override, course in rows]


@router.post("/timetable/overrides", response_model=ClassOverrideOut, status_code=status.HTTP_201_CREATED)
def create_override(
    payload: ClassOverrideCreate,
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
    db: Session = Depends(get_db),
) -> ClassOverrideOut:
    class_group_id = require_class_group(current_user)
    course = _get_course_or_404(db, payload.course_id) if payload.course_id else None

    if payload.timetable_entry_id:
        entry, _ = _get_entry_or_404(db, current_user, payload.timetable_entry_id)
        if Weekday(entry.day_of_week) != Weekday.from_datetime(payload.on_date):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{payload.on_date.isoformat()} is not a {entry.day_of_week}",
            )
        start_time = payload.start_time or entry.start_time
        end_time = payload.end_time or entry.end_time
        if parse_storage(end_time) <= parse_storage(start_time):
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="end_time must be after start_time",
            )
        existing = db.execute(
            select(ClassOverride.id).where(
                ClassOverride.timetable_entry_id == entry.id,
                ClassOverride.on_date == payload.on_date,
            )
        ).first()
        if existing is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="This class already has an override for that date",
            )
        if course is None:
            course = db.get(Course, entry.course_id)

    override = ClassOverride(
        class_group_id=class_group_id,
        timetable_entry_id=payload.timetable_entry_id,
        on_date=payload.on_date,
        course_id=payload.course_id,
        start_time=payload.start_time,
        end_time=payload.end_time,
        location=payload.location,
        is_cancelled=payload.is_cancelled,
        notes=payload.notes,
        created_by_id=current_user.id,
    )
    db.add(override)
    db.flush()

    _notify_timetable_change(
        db,
        current_user,
        message=_override_message(override, course.code if course is not None else "A class"),
        data={"override_id": override.id, "date": override.on_date.isoformat()},
    )
    log_activity(
        db,
        user=current_user,
        action="timetable.override.create",
        entity_type="class_override",
        entity_id=override.id,
        details={"date": override.on_date.isoformat(), "is_cancelled": override.is_cancelled},
    )
    db.commit()
    db.refresh(override)
    return _override_out(override, db.get(Course, override.course_id) if override.course_id else None)


@router.delete("/timetable/overrides/{override_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_override(
    override_id: str,
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
    db: Session = Depends(get_db),
) -> Response:
    override = db.get(ClassOverride, override_id)
    if override is None or override.class_group_id != current_user.class_group_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class override not found")
    db.delete(override)
    log_activity(
        db,
        user=current_user,
        action="timetable.override.delete",
        entity_type="class_override",
        entity_id=override_id,
    )
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
