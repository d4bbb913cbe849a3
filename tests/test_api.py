from datetime import date, timedelta

import pytest

import models
from conftest import register_and_login


def create_habit(client, headers, **payload):
    payload.setdefault("name", "Meditate")
    response = client.post("/habits", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["habit"]


def log_day(client, headers, habit_id, day, status="completed", **extra):
    return client.post(f"/habits/{habit_id}/logs", json={"date": day, "status": status, **extra}, headers=headers)


def test_ping(client):
    assert client.get("/ping").json() == {"message": "pong"}


# -- AUTH --

def test_register_duplicate_email(client):
    register_and_login(client, email="dup@example.com")
    response = client.post("/auth/register", json={"email": "dup@example.com", "password": "secret123"})
    assert response.status_code == 400


def test_login_with_wrong_password(client):
    register_and_login(client, email="me@example.com")
    response = client.post("/auth/login", data={"username": "me@example.com", "password": "wrong-one"})
    assert response.status_code == 401


def test_me_with_bearer_token(client, auth_headers):
    response = client.get("/auth/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "user@example.com"


def test_cookie_session_and_logout(client):
    register_and_login(client, email="cookie@example.com")
    assert client.get("/auth/me").status_code == 200

    client.post("/auth/logout")
    client.cookies.clear()
    assert client.get("/auth/me").status_code == 401


def test_habits_require_auth(client):
    assert client.get("/habits").status_code == 401


# -- HABITS --

def test_create_and_list_habits(client, auth_headers):
    habit = create_habit(client, auth_headers, name="Walk", targetDays=["monday", "wednesday"])

    assert habit["targetDays"] == ["monday", "wednesday"]
    assert habit["currentStreak"] == 0
    assert habit["longestStreak"] == 0

    habits = client.get("/habits", headers=auth_headers).json()["habits"]
    assert [h["name"] for h in habits] == ["Walk"]


def test_invalid_weekday_rejected(client, auth_headers):
    response = client.post("/habits", json={"name": "Bad", "targetDays": ["someday"]}, headers=auth_headers)
    assert response.status_code == 422


def test_update_habit_cannot_touch_streaks(client, auth_headers):
    habit = create_habit(client, auth_headers)
    response = client.put(
        f"/habits/{habit['id']}",
        json={"name": "Meditate 10 min", "isActive": False, "currentStreak": 99},
        headers=auth_headers,
    )
    body = response.json()["habit"]

    assert response.status_code == 200
    assert body["name"] == "Meditate 10 min"
    assert body["isActive"] is False
    assert body["currentStreak"] == 0


def test_update_habit_ignores_nulls(client, auth_headers):
    habit = create_habit(client, auth_headers, name="Journal")
    response = client.put(
        f"/habits/{habit['id']}",
        json={"name": None, "frequency": None, "description": "before bed"},
        headers=auth_headers,
    )
    body = response.json()["habit"]

    assert response.status_code == 200
    assert body["name"] == "Journal"
    assert body["frequency"] == "daily"
    assert body["description"] == "before bed"


def test_other_users_habit_is_not_found(client, auth_headers):
    habit = create_habit(client, auth_headers)
    intruder = register_and_login(client, email="intruder@example.com")

    assert client.get(f"/habits/{habit['id']}", headers=intruder).status_code == 404
    assert log_day(client, intruder, habit["id"], "2024-01-01").status_code == 404
    assert client.delete(f"/habits/{habit['id']}", headers=intruder).status_code == 404


def test_delete_habit(client, auth_headers):
    habit = create_habit(client, auth_headers)
    assert client.delete(f"/habits/{habit['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/habits/{habit['id']}", headers=auth_headers).status_code == 404


# -- LOGS --

def test_log_upsert_and_streaks(client, auth_headers):
    habit = create_habit(client, auth_headers)
    hid = habit["id"]

    assert log_day(client, auth_headers, hid, "2024-01-01").status_code == 201
    assert log_day(client, auth_headers, hid, "2024-01-02").status_code == 201
    assert log_day(client, auth_headers, hid, "2024-01-03", "missed").status_code == 201
    assert log_day(client, auth_headers, hid, "2024-01-04").status_code == 201

    detail = client.get(f"/habits/{hid}", headers=auth_headers).json()["habit"]
    assert detail["currentStreak"] == 1
    assert detail["longestStreak"] == 2
    assert [log["date"] for log in detail["recentLogs"]] == ["2024-01-04", "2024-01-03", "2024-01-02", "2024-01-01"]

    # same day again updates instead of inserting
    response = log_day(client, auth_headers, hid, "2024-01-03", "completed", notes="made up for it")
    assert response.status_code == 200
    assert response.json()["log"]["notes"] == "made up for it"

    detail = client.get(f"/habits/{hid}", headers=auth_headers).json()["habit"]
    assert detail["currentStreak"] == 4
    assert detail["longestStreak"] == 4


def test_habit_detail_shows_latest_thirty_logs(client, auth_headers, session_factory):
    habit = create_habit(client, auth_headers)
    db = session_factory()
    start = date(2024, 1, 1)
    db.add_all([models.HabitLog(habit_id=habit["id"], date=start + timedelta(days=i)) for i in range(35)])
    db.commit()
    db.close()

    recent = client.get(f"/habits/{habit['id']}", headers=auth_headers).json()["habit"]["recentLogs"]

    assert len(recent) == 30
    assert recent[0]["date"] == "2024-02-04"
    assert recent[-1]["date"] == "2024-01-06"


def test_log_defaults_to_completed_today(client, auth_headers):
    habit = create_habit(client, auth_headers)
    response = client.post(f"/habits/{habit['id']}/logs", json={}, headers=auth_headers)

    assert response.status_code == 201
    assert response.json()["log"]["status"] == "completed"
    detail = client.get(f"/habits/{habit['id']}", headers=auth_headers).json()["habit"]
    assert detail["currentStreak"] == 1


def test_log_rejects_unknown_status(client, auth_headers):
    habit = create_habit(client, auth_headers)
    response = log_day(client, auth_headers, habit["id"], "2024-01-01", "finished")
    assert response.status_code == 422


def test_update_log_by_date(client, auth_headers):
    habit = create_habit(client, auth_headers)
    hid = habit["id"]
    log_day(client, auth_headers, hid, "2024-02-01")
    log_day(client, auth_headers, hid, "2024-02-02")

    response = client.put(f"/habits/{hid}/logs/2024-02-02", json={"status": "skipped"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["log"]["status"] == "skipped"

    detail = client.get(f"/habits/{hid}", headers=auth_headers).json()["habit"]
    assert detail["currentStreak"] == 0
    assert detail["longestStreak"] == 2

    missing = client.put(f"/habits/{hid}/logs/2024-02-10", json={"status": "missed"}, headers=auth_headers)
    assert missing.status_code == 404


def test_logs_date_range(client, auth_headers):
    habit = create_habit(client, auth_headers)
    hid = habit["id"]
    for day in ["2024-03-01", "2024-03-05", "2024-03-10"]:
        log_day(client, auth_headers, hid, day)

    all_logs = client.get(f"/habits/{hid}/logs", headers=auth_headers).json()["logs"]
    assert [log["date"] for log in all_logs] == ["2024-03-10", "2024-03-05", "2024-03-01"]

    ranged = client.get(
        f"/habits/{hid}/logs", params={"start_date": "2024-03-02", "end_date": "2024-03-10"}, headers=auth_headers
    ).json()["logs"]
    assert [log["date"] for log in ranged] == ["2024-03-10", "2024-03-05"]


# -- STATS --

def test_stats_summary(client, auth_headers):
    a = create_habit(client, auth_headers, name="A")
    b = create_habit(client, auth_headers, name="B", isActive=False)
    log_day(client, auth_headers, a["id"], "2024-01-01")
    for i in range(1, 10):
        log_day(client, auth_headers, b["id"], f"2024-01-{i:02d}", "missed")

    stats = client.get("/habits/stats/summary", headers=auth_headers).json()["stats"]

    assert stats["totalHabits"] == 2
    assert stats["activeHabits"] == 1
    assert stats["overallCompletionRate"] == pytest.approx(10)
    assert stats["bestHabit"]["name"] == "A"
    assert stats["bestHabit"]["completionRate"] == 100
    assert {s["name"]: s["longestStreak"] for s in stats["habitStats"]} == {"A": 1, "B": 0}


def test_stats_summary_without_habits(client, auth_headers):
    stats = client.get("/habits/stats/summary", headers=auth_headers).json()["stats"]
    assert stats == {
        "totalHabits": 0,
        "activeHabits": 0,
        "overallCompletionRate": 0,
        "bestHabit": None,
        "habitStats": [],
    }


def test_stats_failure_is_reported(client, auth_headers, monkeypatch):
    import crud
    from sqlalchemy.exc import OperationalError

    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database unavailable"))

    monkeypatch.setattr(crud, "list_habits_for_user", broken)

    response = client.get("/habits/stats/summary", headers=auth_headers)
    assert response.status_code == 500
    assert response.json()["detail"] == "Error fetching statistics"


# -- USERS --

def test_preferences_defaults_and_update(client, auth_headers):
    prefs = client.get("/users/preferences", headers=auth_headers).json()["preferences"]
    assert prefs == {
        "darkMode": False,
        "analyticsTimeRange": "week",
        "showMotivationalQuotes": True,
        "notificationsEnabled": True,
    }

    response = client.put(
        "/users/preferences", json={"darkMode": True, "analyticsTimeRange": "month"}, headers=auth_headers
    )
    prefs = response.json()["preferences"]
    assert prefs["darkMode"] is True
    assert prefs["analyticsTimeRange"] == "month"
    assert prefs["notificationsEnabled"] is True


def test_profile(client, auth_headers):
    body = client.get("/users/profile", headers=auth_headers).json()
    assert body["user"]["name"] == "Test User"
    assert body["preferences"]["analyticsTimeRange"] == "week"
