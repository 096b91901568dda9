from datetime import datetime
from zoneinfo import ZoneInfo

from app.services.schedule_resolver import (
    DaySchedule,
    EntryStatus,
    FreeSlot,
    Weekday,
    WeeklyEntry,
    classify,
    day_schedule,
    entries_for_day,
    free_slots,
    next_upcoming,
    today,
)
from app.services.time_of_day import TimeOfDay, parse_storage

LAGOS = ZoneInfo("Africa/Lagos")


def entry(entry_id, day, start, end, code="NSC201"):
    return WeeklyEntry(
        id=entry_id,
        day_of_week=day,
        start=parse_storage(start),
        end=parse_storage(end),
        subject_code=code,
        location="LT1",
    )


MONDAY = [
    entry("late", Weekday.monday, "14:00", "16:00", "NSC205"),
    entry("early", Weekday.monday, "09:00", "11:00"),
    entry("mid", Weekday.monday, "11:00", "12:00", "NSC203"),
    entry("tue", Weekday.tuesday, "08:00", "10:00"),
]


def test_weekday_from_datetime():
    assert Weekday.from_datetime(datetime(2026, 10, 18, 12, tzinfo=LAGOS)) == Weekday.sunday
    assert Weekday.from_datetime(datetime(2026, 10, 19, 12, tzinfo=LAGOS)) == Weekday.monday
    assert Weekday.from_datetime(datetime(2026, 10, 24, 12, tzinfo=LAGOS)) == Weekday.saturday


def test_entries_for_day_filters_and_orders_by_start():
    ordered, warnings = entries_for_day(MONDAY, Weekday.monday)
    assert [item.id for item in ordered] == ["early", "mid", "late"]
    assert warnings == []


def test_inverted_intervals_are_reported_not_scheduled():
    entries = MONDAY + [
        entry("backwards", Weekday.monday, "15:00", "13:00"),
        entry("empty", Weekday.monday, "10:00", "10:00"),
    ]
    ordered, warnings = entries_for_day(entries, Weekday.monday)

    assert "backwards" not in {item.id for item in ordered}
    assert [warning.entry_id for warning in warnings] == ["backwards", "empty"]
    assert "3pm-1pm" in warnings[0].message


def test_classify_boundaries():
    item = entry("x", Weekday.monday, "09:00", "11:00")
    assert classify(item, 8 * 60 + 59) == EntryStatus.upcoming
    assert classify(item, 9 * 60) == EntryStatus.ongoing
    assert classify(item, 10 * 60 + 59) == EntryStatus.ongoing
    assert classify(item, 11 * 60) == EntryStatus.completed


def test_today_classifies_entries_against_now():
    schedule = today(MONDAY, datetime(2026, 10, 19, 11, 30, tzinfo=LAGOS))

    assert schedule.day == Weekday.monday
    assert schedule.is_rest_day is False
    assert [(item.entry.id, item.status) for item in schedule.entries] == [
        ("early", EntryStatus.completed),
        ("mid", EntryStatus.ongoing),
        ("late", EntryStatus.upcoming),
    ]
    assert next_upcoming(schedule).id == "late"


def test_today_on_rest_day_is_empty():
    weekend = [entry("sat", Weekday.saturday, "10:00", "12:00")]
    schedule = today(weekend, datetime(2026, 10, 24, 9, tzinfo=LAGOS))

    assert schedule.is_rest_day is True
    assert schedule.entries == []
    assert schedule.warnings == []


def test_today_honours_custom_rest_days():
    weekend = [entry("sat", Weekday.saturday, "10:00", "12:00")]
    schedule = today(weekend, datetime(2026, 10, 24, 9, tzinfo=LAGOS), rest_days={Weekday.sunday})

    assert schedule.is_rest_day is False
    assert [item.entry.id for item in schedule.entries] == ["sat"]


def test_next_upcoming_none_after_last_class():
    schedule = today(MONDAY, datetime(2026, 10, 19, 17, 0, tzinfo=LAGOS))
    assert all(item.status == EntryStatus.completed for item in schedule.entries)
    assert next_upcoming(schedule) is None


def test_day_schedule_without_now_marks_everything_upcoming():
    schedule = day_schedule(MONDAY, Weekday.monday)
    assert {item.status for item in schedule.entries} == {EntryStatus.upcoming}


def test_free_slots_all_day_when_no_classes():
    slots = free_slots(DaySchedule(day=Weekday.wednesday))
    assert slots == [FreeSlot("All Day", 8 * 60, 18 * 60, "Free all day")]


def test_free_slots_morning_gaps_and_afternoon():
    slots = free_slots(day_schedule(MONDAY, Weekday.monday))

    assert slots == [
        FreeSlot("Morning", 480, 540, "Free until 9am"),
        FreeSlot("Afternoon", 720, 840, "12pm - 2pm free"),
        FreeSlot("Afternoon", 960, None, "4pm - end of day"),
    ]


def test_free_slots_gap_label_follows_noon():
    entries = [
        entry("a", Weekday.friday, "08:00", "09:00"),
        entry("b", Weekday.friday, "10:00", "11:00"),
        entry("c", Weekday.friday, "11:20", "18:00"),
    ]
    slots = free_slots(day_schedule(entries, Weekday.friday))

    # 20 minute gap is below the threshold; class starts at day start.
    assert slots == [FreeSlot("Morning", 540, 600, "9am - 10am free")]


def test_free_slots_busy_day():
    entries = [
        entry("a", Weekday.thursday, "08:00", "13:00"),
        entry("b", Weekday.thursday, "13:15", "18:00"),
    ]
    assert free_slots(day_schedule(entries, Weekday.thursday)) == [
        FreeSlot("Busy Day!", None, None, "Classes throughout the day")
    ]


def test_free_slots_respects_custom_window_and_gap():
    entries = [
        entry("a", Weekday.monday, "09:00", "10:00"),
        entry("b", Weekday.monday, "10:15", "11:00"),
    ]
    slots = free_slots(
        day_schedule(entries, Weekday.monday),
        day_start=TimeOfDay(9, 0),
        day_end=TimeOfDay(11, 0),
        min_gap_minutes=15,
    )
    assert slots == [FreeSlot("Morning", 600, 615, "10am - 10:15am free")]


def test_free_slots_ignore_classes_nested_in_longer_ones():
    entries = [
        entry("practical", Weekday.wednesday, "08:00", "17:00"),
        entry("tutorial", Weekday.wednesday, "09:00", "10:00"),
        entry("seminar", Weekday.wednesday, "11:00", "12:00"),
    ]
    slots = free_slots(day_schedule(entries, Weekday.wednesday))

    assert slots == [FreeSlot("Afternoon", 1020, None, "5pm - end of day")]


def test_cancelled_entries_are_skipped_for_next_class_and_free_time():
    entries = [
        entry("a", Weekday.monday, "09:00", "11:00"),
        WeeklyEntry(
            id="b",
            day_of_week=Weekday.monday,
            start=parse_storage("13:00"),
            end=parse_storage("14:00"),
            subject_code="NSC203",
            override_id="ovr-1",
            is_cancelled=True,
        ),
        entry("c", Weekday.monday, "15:00", "16:00", "NSC205"),
    ]
    schedule = today(entries, datetime(2026, 10, 19, 12, 0, tzinfo=LAGOS))

    assert [item.status for item in schedule.entries] == [
        EntryStatus.completed,
        EntryStatus.cancelled,
        EntryStatus.upcoming,
    ]
    assert next_upcoming(schedule).id == "c"
    assert classify(entries[1], 13 * 60 + 30) == EntryStatus.cancelled

    slots = free_slots(day_schedule(entries, Weekday.monday))
    assert slots == [
        FreeSlot("Morning", 480, 540, "Free until 9am"),
        FreeSlot("Morning", 660, 900, "11am - 3pm free"),
        FreeSlot("Afternoon", 960, None, "4pm - end of day"),
    ]
