from app.core.security import create_access_token
from app.models.user import User, UserRole


def auth_headers(user_id):
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


def post_assignment(client, seed, title):
    response = client.post(
        "/api/assignments",
        json={"course_id": seed["anatomy"], "title": title},
        headers=auth_headers(seed["rep"]),
    )
    assert response.status_code == 201
    return response.json()


def post_entry(client, seed):
    response = client.post(
        "/api/timetable/entries",
        json={"course_id": seed["physiology"], "day_of_week": "Tuesday", "start_time": "8am", "end_time": "10am"},
        headers=auth_headers(seed["rep"]),
    )
    assert response.status_code == 201
    return response.json()


def test_default_preferences_are_all_enabled(client, seed):
    response = client.get("/api/notifications/preferences", headers=auth_headers(seed["student"]))
    assert response.status_code == 200
    assert response.json() == {"timetable_updates": True, "assignment_updates": True, "push_enabled": True}


def test_preferences_update_is_partial(client, seed):
    headers = auth_headers(seed["student"])
    client.put("/api/notifications/preferences", json={"push_enabled": False}, headers=headers)
    response = client.put("/api/notifications/preferences", json={"timetable_updates": False}, headers=headers)

    assert response.json() == {"timetable_updates": False, "assignment_updates": True, "push_enabled": False}
    assert client.get("/api/notifications/preferences", headers=headers).json() == response.json()


def test_list_filter_and_count_notifications(client, seed):
    post_assignment(client, seed, "Reading log")
    post_entry(client, seed)
    headers = auth_headers(seed["student"])

    everything = client.get("/api/notifications", headers=headers)
    assert everything.status_code == 200
    assert sorted(item["notification_type"] for item in everything.json()) == [
        "assignment_added",
        "timetable_updated",
    ]
    assert all(item["user_id"] == seed["student"] for item in everything.json())

    filtered = client.get(
        "/api/notifications", params={"notification_type": "timetable_updated"}, headers=headers
    ).json()
    assert [item["title"] for item in filtered] == ["Timetable updated"]

    assert len(client.get("/api/notifications", params={"limit": 1}, headers=headers).json()) == 1
    assert client.get("/api/notifications", params={"notification_type": "bogus"}, headers=headers).status_code == 422
    assert client.get("/api/notifications/unread-count", headers=headers).json() == {"count": 2}

    # The author is not notified of their own change.
    assert client.get("/api/notifications", headers=auth_headers(seed["rep"])).json() == []


def test_mark_single_notification_read(client, seed):
    post_assignment(client, seed, "Reading log")
    headers = auth_headers(seed["student"])
    notification = client.get("/api/notifications", headers=headers).json()[0]

    other = client.post(f"/api/notifications/{notification['id']}/read", headers=auth_headers(seed["classmate"]))
    assert other.status_code == 404

    response = client.post(f"/api/notifications/{notification['id']}/read", headers=headers)
    assert response.status_code == 200
    assert response.json()["is_read"] is True
    assert response.json()["read_at"] is not None

    assert client.get("/api/notifications/unread-count", headers=headers).json() == {"count": 0}
    assert client.get("/api/notifications", params={"unread_only": True}, headers=headers).json() == []

    missing = client.post("/api/notifications/not-a-real-id/read", headers=headers)
    assert missing.status_code == 404


def test_mark_all_notifications_read(client, seed):
    post_assignment(client, seed, "Reading log")
    post_assignment(client, seed, "Case study")
    headers = auth_headers(seed["classmate"])

    response = client.post("/api/notifications/read-all", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"updated": 2}
    assert client.get("/api/notifications/unread-count", headers=headers).json() == {"count": 0}

    assert client.post("/api/notifications/read-all", headers=headers).json() == {"updated": 0}
    # Other members are untouched.
    assert client.get("/api/notifications/unread-count", headers=auth_headers(seed["student"])).json() == {"count": 2}


def test_activity_logs_are_admin_only(client, seed, session_factory):
    post_assignment(client, seed, "Reading log")
    assert client.get("/api/activity/logs", headers=auth_headers(seed["rep"])).status_code == 403

    with session_factory() as db:
        admin = User(name="Admin", email="admin@example.com", role=UserRole.admin)
        db.add(admin)
        db.commit()
        admin_id = admin.id

    response = client.get(
        "/api/activity/logs", params={"class_group_id": seed["group_id"]}, headers=auth_headers(admin_id)
    )
    assert response.status_code == 200
    assert [item["action"] for item in response.json()] == ["assignment.create"]
    assert response.json()[0]["user_id"] == seed["rep"]

    created = response.json()[0]["entity_id"]
    client.post(f"/api/assignments/{created}/view", headers=auth_headers(seed["student"]))
    views = client.get("/api/activity/logs", params={"action": "assignment.view"}, headers=auth_headers(admin_id))
    assert [(item["action"], item["user_id"]) for item in views.json()] == [("assignment.view", seed["student"])]
    assert views.json()[0]["class_group_id"] == seed["group_id"]
