from __future__ import annotations

import re
from dataclasses import dataclass

from app.core.exceptions import FormatError

STORAGE_PATTERN = re.compile(r"^(\d{2}):(\d{2})(?::(\d{2}))?$")
DISPLAY_PATTERN = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*(am|pm)$", re.IGNORECASE)

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True, order=True)
class TimeOfDay:
    hour: int
    minute: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.hour <= 23:
            raise FormatError(f"Hour out of range: {self.hour}")
        if not 0 <= self.minute <= 59:
            raise FormatError(f"Minute out of range: {self.minute}")

    def __str__(self) -> str:
        return to_display(self)


def parse_storage(value: str) -> TimeOfDay:
    """Parse a 24-hour ``HH:MM`` or ``HH:MM:SS`` string. Seconds are dropped."""
    match = STORAGE_PATTERN.match(value or "")
    if not match:
        raise FormatError("Time must be in HH:MM or HH:MM:SS 24-hour format", value=value)
    hour, minute = int(match.group(1)), int(match.group(2))
    if match.group(3) is not None and int(match.group(3)) > 59:
        raise FormatError("Seconds out of range", value=value)
    if hour > 23 or minute > 59:
        raise FormatError("Time must be in HH:MM or HH:MM:SS 24-hour format", value=value)
    return TimeOfDay(hour, minute)


def parse_display(value: str) -> TimeOfDay:
    """Parse loose 12-hour input such as ``9am``, ``10:30pm`` or ``9:00 AM``."""
    match = DISPLAY_PATTERN.match((value or "").strip())
    if not match:
        raise FormatError("Time must look like 9am, 10:30pm or 9:00 AM", value=value)
    hour = int(match.group(1))
    minute = int(match.group(2)) if match.group(2) else 0
    period = match.group(3).lower()
    if not 1 <= hour <= 12 or minute > 59:
        raise FormatError("Time must look like 9am, 10:30pm or 9:00 AM", value=value)

    if period == "pm" and hour != 12:
        hour += 12
    elif period == "am" and hour == 12:
        hour = 0
    return TimeOfDay(hour, minute)


def parse_time(value: str) -> TimeOfDay:
    """Accept either storage or display form, storage first."""
    if STORAGE_PATTERN.match((value or "").strip()):
        return parse_storage(value.strip())
    return parse_display(value)


def to_storage(time: TimeOfDay) -> str:
    return f"{time.hour:02d}:{time.minute:02d}:00"


def to_display(time: TimeOfDay) -> str:
    period = "pm" if time.hour >= 12 else "am"
    hour = time.hour
    if hour == 0:
        hour = 12
    elif hour > 12:
        hour -= 12
    if time.minute == 0:
        return f"{hour}{period}"
    return f"{hour}:{time.minute:02d}{period}"


def display_range(start: TimeOfDay, end: TimeOfDay) -> str:
    return f"{to_display(start)}-{to_display(end)}"


def to_minutes(time: TimeOfDay) -> int:
    return time.hour * 60 + time.minute


def from_minutes(value: int) -> TimeOfDay:
    if not 0 <= value < MINUTES_PER_DAY:
        raise FormatError(f"Minutes out of range: {value}")
    return TimeOfDay(value // 60, value % 60)


def compare(a: TimeOfDay, b: TimeOfDay) -> int:
    left, right = to_minutes(a), to_minutes(b)
    return (left > right) - (left < right)
