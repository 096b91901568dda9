from datetime import datetime
from zoneinfo import ZoneInfo

from sqlalchemy import func, select

from app.core.security import create_access_token
from app.models.notification import Notification, NotificationType
from app.models.timetable import ClassOverride

LAGOS = ZoneInfo("Africa/Lagos")
# The fixed request clock is Monday 19 October 2026.
TODAY = "2026-10-19"


def auth_headers(user_id):
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


def add_entry(client, seed, *, course="anatomy", day="Monday", start="9am", end="11:00", location="LT1"):
    response = client.post(
        "/api/timetable/entries",
        json={
            "course_id": seed[course],
            "day_of_week": day,
            "start_time": start,
            "end_time": end,
            "location": location,
        },
        headers=auth_headers(seed["rep"]),
    )
    assert response.status_code == 201, response.text
    return response.json()


def seed_monday(client, seed):
    first = add_entry(client, seed)
    second = add_entry(client, seed, course="physiology", start="13:00", end="2pm", location="Lab 2")
    return first, second


def add_override(client, seed, **payload):
    payload.setdefault("date", TODAY)
    response = client.post("/api/timetable/overrides", json=payload, headers=auth_headers(seed["rep"]))
    assert response.status_code == 201, response.text
    return response.json()


def todays_items(client, seed):
    body = client.get("/api/timetable/today", headers=auth_headers(seed["student"])).json()
    return body, {item["id"]: item for item in body["schedule"]}


def test_cancelled_class_stays_listed_but_is_not_next(client, seed, session_factory):
    first, second = seed_monday(client, seed)
    override = add_override(client, seed, timetable_entry_id=second["id"], is_cancelled=True, notes="Lecturer away")

    assert override["date"] == TODAY
    assert override["is_cancelled"] is True
    assert override["course_code"] is None

    body, items = todays_items(client, seed)
    assert items[first["id"]]["status"] == "Ongoing"
    assert items[first["id"]]["is_cancelled"] is False
    cancelled = items[second["id"]]
    assert cancelled["status"] == "Cancelled"
    assert cancelled["is_cancelled"] is True
    assert cancelled["override_id"] == override["id"]
    assert cancelled["notes"] == "Lecturer away"
    assert body["next_class"] is None

    free = client.get("/api/timetable/free-time", headers=auth_headers(seed["student"])).json()
    assert free["slots"] == [
        {"label": "Morning", "start_minutes": 480, "end_minutes": 540, "description": "Free until 9am"},
        {"label": "Afternoon", "start_minutes": 660, "end_minutes": None, "description": "11am - end of day"},
    ]

    with session_factory() as db:
        notes = list(
            db.execute(select(Notification).where(Notification.user_id == seed["student"])).scalars()
        )
    matching = [note for note in notes if note.data.get("override_id") == override["id"]]
    assert len(matching) == 1
    assert matching[0].notification_type == NotificationType.timetable_updated
    assert matching[0].message == f"NSC203 on {TODAY} is cancelled"


def test_relocated_and_rescheduled_classes_are_flagged(client, seed):
    first, second = seed_monday(client, seed)
    add_override(client, seed, timetable_entry_id=first["id"], location="LT3")
    add_override(client, seed, timetable_entry_id=second["id"], start_time="3pm", end_time="16:00")

    body, items = todays_items(client, seed)

    moved = items[first["id"]]
    assert moved["location"] == "LT3"
    assert moved["location_changed"] is True
    assert moved["time_changed"] is False
    assert moved["time"] == "9am-11am"

    later = items[second["id"]]
    assert later["time"] == "3pm-4pm"
    assert later["time_changed"] is True
    assert later["location_changed"] is False
    assert later["location"] == "Lab 2"
    assert body["next_class"] == {"code": "NSC203", "location": "Lab 2", "time": "3pm-4pm"}

    # The weekly view is unaffected.
    weekly = client.get("/api/timetable", headers=auth_headers(seed["student"])).json()
    assert [item["location"] for item in weekly["timetable"]["Monday"]] == ["LT1", "Lab 2"]


def test_extra_class_is_added_to_today(client, seed):
    seed_monday(client, seed)
    extra = add_override(
        client,
        seed,
        course_id=seed["anatomy"],
        start_time="16:00",
        end_time="5pm",
        location="Skills Lab",
    )
    assert extra["timetable_entry_id"] is None
    assert extra["course_code"] == "NSC201"

    body, items = todays_items(client, seed)
    assert list(items)[-1] == extra["id"]
    added = items[extra["id"]]
    assert added["code"] == "NSC201"
    assert added["title"] == "Anatomy"
    assert added["time"] == "4pm-5pm"
    assert added["status"] == "Upcoming"
    assert body["next_class"]["code"] == "NSC203"


def test_overrides_only_apply_on_their_date(client, seed, clock):
    first, _ = seed_monday(client, seed)
    add_override(client, seed, timetable_entry_id=first["id"], is_cancelled=True)

    clock["now"] = datetime(2026, 10, 26, 8, 0, tzinfo=LAGOS)
    body, items = todays_items(client, seed)
    assert items[first["id"]]["status"] == "Upcoming"
    assert items[first["id"]]["is_cancelled"] is False
    assert items[first["id"]]["override_id"] is None
    assert body["next_class"]["code"] == "NSC201"

    headers = auth_headers(seed["student"])
    assert client.get("/api/timetable/overrides", headers=headers).json() == []
    listed = client.get("/api/timetable/overrides", params={"date": TODAY}, headers=headers).json()
    assert [item["timetable_entry_id"] for item in listed] == [first["id"]]


def test_override_validation(client, seed):
    first, _ = seed_monday(client, seed)
    headers = auth_headers(seed["rep"])

    tuesday = client.post(
        "/api/timetable/overrides",
        json={"date": "2026-10-20", "timetable_entry_id": first["id"], "is_cancelled": True},
        headers=headers,
    )
    assert tuesday.status_code == 400

    inverted = client.post(
        "/api/timetable/overrides",
        json={"date": TODAY, "timetable_entry_id": first["id"], "start_time": "11:30"},
        headers=headers,
    )
    assert inverted.status_code == 422

    no_times = client.post(
        "/api/timetable/overrides", json={"date": TODAY, "course_id": seed["anatomy"]}, headers=headers
    )
    assert no_times.status_code == 422

    unknown_entry = client.post(
        "/api/timetable/overrides",
        json={"date": TODAY, "timetable_entry_id": "missing", "is_cancelled": True},
        headers=headers,
    )
    assert unknown_entry.status_code == 404

    add_override(client, seed, timetable_entry_id=first["id"], location="LT3")
    duplicate = client.post(
        "/api/timetable/overrides",
        json={"date": TODAY, "timetable_entry_id": first["id"], "is_cancelled": True},
        headers=headers,
    )
    assert duplicate.status_code == 409

    student = client.post(
        "/api/timetable/overrides",
        json={"date": TODAY, "timetable_entry_id": first["id"], "is_cancelled": True},
        headers=auth_headers(seed["student"]),
    )
    assert student.status_code == 403


def test_delete_override_restores_the_weekly_slot(client, seed):
    first, _ = seed_monday(client, seed)
    override = add_override(client, seed, timetable_entry_id=first["id"], is_cancelled=True)

    outsider = client.delete(f"/api/timetable/overrides/{override['id']}", headers=auth_headers(seed["outsider"]))
    assert outsider.status_code == 404

    response = client.delete(f"/api/timetable/overrides/{override['id']}", headers=auth_headers(seed["rep"]))
    assert response.status_code == 204

    _, items = todays_items(client, seed)
    assert items[first["id"]]["status"] == "Ongoing"
    assert items[first["id"]]["is_cancelled"] is False


def test_deleting_an_entry_removes_its_overrides(client, seed, session_factory):
    first, _ = seed_monday(client, seed)
    add_override(client, seed, timetable_entry_id=first["id"], location="LT3")

    response = client.delete(f"/api/timetable/entries/{first['id']}", headers=auth_headers(seed["rep"]))
    assert response.status_code == 204

    with session_factory() as db:
        assert db.execute(select(func.count(ClassOverride.id))).scalar_one() == 0
