"""Tests for the activity HTTP API."""

from concurrent.futures import ThreadPoolExecutor

import pytest
from conftest import TODAY, days_ago
from fastapi.testclient import TestClient

from journey.api.session import LearningSession, topic_display
from journey.main import app, get_session
from journey.storage.store import SQLiteDayHistoryStore


@pytest.fixture
def session(db_path, clock):
    return LearningSession(SQLiteDayHistoryStore(db_path), clock=clock)


@pytest.fixture
def client(session):
    app.dependency_overrides[get_session] = lambda: session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def started(client):
    response = client.post("/api/goal", json={"topic": "Swift", "duration": "week"})
    assert response.status_code == 201
    return response.json()


def test_root_lists_endpoints(client):
    data = client.get("/").json()
    assert data["endpoints"]["activity"] == "/api/activity"


def test_status_reports_goal(client):
    assert client.get("/status").json()["has_goal"] is False


@pytest.mark.parametrize(
    "method,path",
    [
        ("get", "/api/goal"),
        ("get", "/api/activity"),
        ("post", "/api/activity/learned"),
        ("post", "/api/activity/reset"),
        ("get", "/api/activity/history"),
    ],
)
def test_activity_requires_goal(client, method, path):
    assert getattr(client, method)(path).status_code == 404


def test_update_requires_goal(client):
    response = client.put("/api/goal", json={"topic": "Swift", "duration": "month"})
    assert response.status_code == 404


def test_preview_month(client):
    data = client.get("/api/goal/preview", params={"topic": " Go ", "duration": "month"}).json()
    assert data == {"topic": "Go", "duration": "month", "target_days": 31, "allowed_freezes": 8}


def test_unknown_duration_is_rejected(client):
    response = client.post("/api/goal", json={"topic": "Swift", "duration": "decade"})
    assert response.status_code == 422


def test_start_goal(started):
    assert started["goal"]["target_days"] == 7
    assert started["topic_display"] == "swift"
    assert started["state"]["remaining_freezes"] == 2
    assert started["state"]["selected_date"] == TODAY.isoformat()


def test_mark_learned_is_idempotent(client, started):
    first = client.post("/api/activity/learned").json()
    assert first["applied"] is True
    assert first["state"]["current_streak"] == 1

    second = client.post("/api/activity/learned").json()
    assert second["applied"] is False
    assert second["state"]["current_streak"] == 1


def test_freeze_until_quota_runs_out(client, started):
    for n in (1, 2):
        data = client.post("/api/activity/freezed", json={"day": days_ago(n).isoformat()}).json()
        assert data["applied"] is True

    data = client.post("/api/activity/freezed", json={"day": days_ago(3).isoformat()}).json()
    assert data["applied"] is False
    assert data["state"]["used_freezes"] == 2
    assert data["state"]["remaining_freezes"] == 0


def test_select_and_lookup_day(client, started):
    day = days_ago(1).isoformat()
    client.post("/api/activity/select", json={"day": day})
    client.post("/api/activity/learned")

    assert client.get(f"/api/activity/days/{day}").json() == {"day": day, "status": "learned"}
    assert client.get(f"/api/activity/days/{TODAY.isoformat()}").json()["status"] is None


def test_history_is_keyed_by_iso_date(client, started):
    client.post("/api/activity/learned")
    client.post("/api/activity/freezed", json={"day": days_ago(1).isoformat()})

    days = client.get("/api/activity/history").json()["days"]
    assert days == {TODAY.isoformat(): "learned", days_ago(1).isoformat(): "freezed"}


def test_reset_clears_days(client, started):
    client.post("/api/activity/learned")
    data = client.post("/api/activity/reset").json()

    assert data["state"]["current_streak"] == 0
    assert client.get("/api/activity/history").json()["days"] == {}


def test_update_goal_starts_fresh(client, started, clock):
    client.post("/api/activity/learned")
    clock.advance(days=1)

    data = client.put("/api/goal", json={"topic": "", "duration": "year"}).json()
    assert data["goal"]["target_days"] == 365
    assert data["topic_display"] == "something"
    assert data["state"]["current_streak"] == 0
    assert client.get("/api/activity/history").json()["days"] == {}


def test_session_restores_active_goal(db_path, clock, client, started):
    client.post("/api/activity/learned")

    restored = LearningSession(SQLiteDayHistoryStore(db_path), clock=clock)
    assert restored.goal.topic == "Swift"
    assert restored.engine.view_state.current_streak == 1


def test_topic_display():
    assert topic_display("Swift UI") == "swift ui"
    assert topic_display("") == "something"


def test_concurrent_first_requests_share_one_session(db_path, monkeypatch):
    import journey.main as main

    monkeypatch.setattr(main, "_session", None)
    monkeypatch.setattr(main.settings, "db_path", db_path)

    with ThreadPoolExecutor(max_workers=8) as pool:
        sessions = list(pool.map(lambda _: get_session(), range(16)))

    assert all(s is sessions[0] for s in sessions)
