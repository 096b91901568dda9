from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field, field_validator, model_validator

from app.core.exceptions import FormatError
from app.services.schedule_resolver import Weekday
from app.services.time_of_day import parse_storage, parse_time, to_storage

DAY_VALUES = {day.value for day in Weekday}


def normalize_time_input(value: str) -> str:
    """Normalise ``9am``, ``10:30 PM`` or ``14:00`` to ``HH:MM:SS``."""
    try:
        return to_storage(parse_time(value))
    except FormatError as exc:
        raise ValueError(exc.message) from exc


def _validate_day(value: str) -> str:
    day = value.strip().capitalize()
    if day not in DAY_VALUES:
        raise ValueError("Invalid day value")
    return day


class TimetableEntryCreate(BaseModel):
    course_id: str = Field(min_length=1, max_length=36)
    day_of_week: str
    start_time: str = Field(min_length=1, max_length=20)
    end_time: str = Field(min_length=1, max_length=20)
    location: str | None = Field(default=None, max_length=200)
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("day_of_week")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return _validate_day(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return normalize_time_input(value)

    @model_validator(mode="after")
    def validate_range(self) -> "TimetableEntryCreate":
        if parse_storage(self.end_time) <= parse_storage(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


class TimetableEntryUpdate(BaseModel):
    course_id: str | None = Field(default=None, min_length=1, max_length=36)
    day_of_week: str | None = None
    start_time: str | None = Field(default=None, min_length=1, max_length=20)
    end_time: str | None = Field(default=None, min_length=1, max_length=20)
    location: str | None = Field(default=None, max_length=200)
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("day_of_week")
    @classmethod
    def validate_day(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _validate_day(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return normalize_time_input(value)


class TimetableEntryOut(BaseModel):
    id: str
    timetable_id: str
    course_id: str
    course_code: str | None = None
    day_of_week: str
    start_time: str
    end_time: str
    time: str
    location: str | None
    notes: str | None


class ScheduleWarningOut(BaseModel):
    entry_id: str
    message: str


class ScheduleItemOut(BaseModel):
    id: str
    code: str
    title: str
    location: str
    time: str
    start_minutes: int
    status: str | None = None
    override_id: str | None = None
    is_cancelled: bool = False
    time_changed: bool = False
    location_changed: bool = False
    notes: str | None = None


class WeeklyTimetableOut(BaseModel):
    timetable: dict[str, list[ScheduleItemOut]]
    has_timetable: bool
    is_course_rep: bool
    timetable_id: str | None = None
    warnings: list[ScheduleWarningOut] = Field(default_factory=list)


class NextClassOut(BaseModel):
    code: str
    location: str
    time: str


class TodayScheduleOut(BaseModel):
    day: str
    is_rest_day: bool
    schedule: list[ScheduleItemOut]
    next_class: NextClassOut | None
    warnings: list[ScheduleWarningOut] = Field(default_factory=list)


class FreeSlotOut(BaseModel):
    label: str
    start_minutes: int | None
    end_minutes: int | None
    description: str


class FreeTimeOut(BaseModel):
    day: str
    slots: list[FreeSlotOut]
    warnings: list[ScheduleWarningOut] = Field(default_factory=list)


class ClassOverrideCreate(BaseModel):
    """A change for one date. Without ``timetable_entry_id`` it describes an extra class."""

    on_date: date = Field(alias="date")
    timetable_entry_id: str | None = Field(default=None, min_length=1, max_length=36)
    course_id: str | None = Field(default=None, min_length=1, max_length=36)
    start_time: str | None = Field(default=None, min_length=1, max_length=20)
    end_time: str | None = Field(default=None, min_length=1, max_length=20)
    location: str | None = Field(default=None, max_length=200)
    is_cancelled: bool = False
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return normalize_time_input(value)

    @model_validator(mode="after")
    def validate_extra_class(self) -> "ClassOverrideCreate":
        if self.timetable_entry_id is None and not (self.course_id and self.start_time and self.end_time):
            raise ValueError("An extra class needs course_id, start_time and end_time")
        if self.start_time and self.end_time and parse_storage(self.end_time) <= parse_storage(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


class ClassOverrideOut(BaseModel):
    id: str
    on_date: date = Field(serialization_alias="date")
    timetable_entry_id: str | None
    course_id: str | None
    course_code: str | None = None
    start_time: str | None
    end_time: str | None
    location: str | None
    is_cancelled: bool
    notes: str | None
