from datetime import datetime, timedelta, timezone

from conftest import INSTRUCTOR_ID, PARENT_ID, STUDENT_ID, auth, run
from trackademic.core.notifications import get_notifications

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _notify(db, user_id, minutes, is_read=False, title="New activity"):
    return run(db.insert("notifications", {
        "user_id": user_id,
        "title": title,
        "message": "A new activity was posted.",
        "is_read": is_read,
        "created_at": T0 + timedelta(minutes=minutes),
    }))


def test_newest_first_with_unread_count(seeded):
    db = seeded.backend
    _notify(db, STUDENT_ID, 0, title="old")
    _notify(db, STUDENT_ID, 10, title="new", is_read=True)
    _notify(db, STUDENT_ID, 5, title="middle")
    _notify(db, PARENT_ID, 20, title="someone else")

    result = run(get_notifications(db, STUDENT_ID))
    assert [n.title for n in result.notifications] == ["new", "middle", "old"]
    assert result.unread_count == 2


def test_only_fifty_newest(seeded):
    db = seeded.backend
    for minute in range(55):
        _notify(db, STUDENT_ID, minute)

    result = run(get_notifications(db, STUDENT_ID))
    assert len(result.notifications) == 50
    assert result.notifications[0].created_at == T0 + timedelta(minutes=54)
    assert result.unread_count == 50


def test_mark_one_read(client, seeded):
    first = _notify(seeded.backend, STUDENT_ID, 0)
    _notify(seeded.backend, STUDENT_ID, 1)

    response = client.post(f"/api/notifications/{first['id']}/read", headers=auth(STUDENT_ID))
    assert response.status_code == 200
    assert response.json() == {"updated": 1}

    listing = client.get("/api/notifications", headers=auth(STUDENT_ID)).json()
    assert listing["unread_count"] == 1


def test_cannot_mark_someone_elses_notification(client, seeded):
    foreign = _notify(seeded.backend, PARENT_ID, 0)
    response = client.post(f"/api/notifications/{foreign['id']}/read", headers=auth(STUDENT_ID))
    assert response.status_code == 404

    listing = client.get("/api/notifications", headers=auth(PARENT_ID)).json()
    assert listing["unread_count"] == 1


def test_mark_all_read(client, seeded):
    for minute in range(3):
        _notify(seeded.backend, INSTRUCTOR_ID, minute)
    _notify(seeded.backend, INSTRUCTOR_ID, 5, is_read=True)
    _notify(seeded.backend, STUDENT_ID, 0)

    response = client.post("/api/notifications/read-all", headers=auth(INSTRUCTOR_ID))
    assert response.json() == {"updated": 3}
    assert client.get("/api/notifications", headers=auth(INSTRUCTOR_ID)).json()["unread_count"] == 0
    assert client.get("/api/notifications", headers=auth(STUDENT_ID)).json()["unread_count"] == 1
