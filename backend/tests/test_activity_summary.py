from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from app.services import activity
from app.services.schedule_resolver import Weekday, WeeklyEntry
from app.services.time_of_day import TimeOfDay
from app.services.view_tracker import TrackedRecord, ViewLog

LAGOS = ZoneInfo("Africa/Lagos")
NOW = datetime(2026, 10, 19, 9, 30, tzinfo=LAGOS)


def record(record_id, due_at=None, *, submitted=False, code="NSC201"):
    return TrackedRecord(
        id=record_id,
        group_id="group-1",
        created_at=NOW - timedelta(days=1),
        due_at=due_at,
        is_submitted=submitted,
        title=f"Essay {record_id}",
        subject_code=code,
    )


def test_assignment_overview_reports_next_due_item():
    records = [
        record("a", NOW + timedelta(days=2, hours=1)),
        record("b", NOW - timedelta(hours=1)),
        record("c", NOW + timedelta(days=5), submitted=True),
    ]
    overview = activity.assignment_overview(records, NOW)

    assert overview["stats"] == {"total": 3, "submitted": 1, "pending": 1, "overdue": 1}
    assert overview["upcoming_count"] == 2
    next_assignment = overview["next_assignment"]
    assert next_assignment["id"] == "a"
    assert next_assignment["course_code"] == "NSC201"
    assert next_assignment["due_label"] == "Oct 21"
    assert next_assignment["days_left"] == 3


def test_due_label_uses_local_timezone():
    # 23:30 UTC on the 20th is already the 21st in Lagos.
    due = datetime(2026, 10, 20, 23, 30, tzinfo=timezone.utc)
    overview = activity.assignment_overview([record("a", due, code=None)], NOW)

    assert overview["next_assignment"]["due_label"] == "Oct 21"
    assert overview["next_assignment"]["course_code"] == "Unknown"


def test_assignment_overview_without_upcoming_work():
    overview = activity.assignment_overview([record("old", NOW - timedelta(days=1))], NOW)
    assert overview["next_assignment"] is None
    assert overview["upcoming_count"] == 0


def test_unread_summary_sorted_ids():
    records = [record("c"), record("a"), record("b")]
    log = ViewLog.for_member("me", [("b", NOW)])

    assert activity.unread_summary("me", records, log) == {"unviewed_ids": ["a", "c"], "unread_count": 2}


ENTRIES = [
    WeeklyEntry("e1", Weekday.monday, TimeOfDay(9), TimeOfDay(11), "NSC201", "Anatomy", "LT1"),
    WeeklyEntry("e2", Weekday.monday, TimeOfDay(13), TimeOfDay(14), "NSC203", "Physiology", "Lab 2"),
    WeeklyEntry("e3", Weekday.tuesday, TimeOfDay(8), TimeOfDay(10), "NSC205"),
    WeeklyEntry("bad", Weekday.tuesday, TimeOfDay(12), TimeOfDay(11), "NSC207"),
]


def test_todays_schedule_shape():
    result = activity.todays_schedule(ENTRIES, NOW)

    assert result["day"] == "Monday"
    assert result["is_rest_day"] is False
    assert [item["id"] for item in result["schedule"]] == ["e1", "e2"]
    assert result["schedule"][0]["status"] == "Ongoing"
    assert result["schedule"][0]["time"] == "9am-11am"
    assert result["next_class"] == {"code": "NSC203", "location": "Lab 2", "time": "1pm-2pm"}
    assert result["warnings"] == []


def test_todays_schedule_on_weekend():
    result = activity.todays_schedule(ENTRIES, datetime(2026, 10, 25, 10, tzinfo=LAGOS))
    assert result["day"] == "Sunday"
    assert result["is_rest_day"] is True
    assert result["schedule"] == []
    assert result["next_class"] is None


def test_free_time_includes_warnings_for_bad_entries():
    result = activity.free_time(ENTRIES, Weekday.tuesday)

    assert result["day"] == "Tuesday"
    assert result["slots"] == [
        {"label": "Afternoon", "start_minutes": 600, "end_minutes": None, "description": "10am - end of day"}
    ]
    assert [warning["entry_id"] for warning in result["warnings"]] == ["bad"]


def test_weekly_timetable_groups_class_days():
    result = activity.weekly_timetable(ENTRIES)

    assert list(result["timetable"]) == ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
    assert [item["code"] for item in result["timetable"]["Monday"]] == ["NSC201", "NSC203"]
    assert [item["id"] for item in result["timetable"]["Tuesday"]] == ["e3"]
    assert result["timetable"]["Friday"] == []
    assert len(result["warnings"]) == 1
