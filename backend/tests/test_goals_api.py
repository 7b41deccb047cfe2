from __future__ import annotations

import json
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from taskplanner.core.config import settings
from taskplanner.db.deps import get_db
from taskplanner.db.models.enums import GoalStatus, TaskStatus
from taskplanner.db.models.goal import Goal
from taskplanner.db.models.task import Task
from taskplanner.main import app
from taskplanner.services import goal_lifecycle
from taskplanner.services.goal_lifecycle import ConcurrentUpdateError
from taskplanner.services.llm_client import PlanLLMClient


@pytest.fixture()
def client(monkeypatch):
    monkeypatch.setattr(settings, "gemini_api_key", None)
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # pragma: no cover - sqlite setup
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Goal.__table__.create(bind=engine)
    Task.__table__.create(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client, TestingSessionLocal
    app.dependency_overrides.clear()


def _create_goal(test_client: TestClient, description: str = "Launch a podcast", **extra) -> dict:
    response = test_client.post("/api/goals", json={"description": description, **extra})
    assert response.status_code == 201
    return response.json()


def _set_task_status(test_client: TestClient, goal_id: str, task_id: str, status: str):
    return test_client.put(
        f"/api/goals/{goal_id}/tasks/status",
        json={"taskId": task_id, "status": status},
    )


def test_create_goal_without_ai_returns_fallback_plan(client):
    test_client, session_factory = client
    body = _create_goal(test_client, targetDate=None)

    assert body["totalTasks"] == 5
    assert body["estimatedTotalHours"] == 42
    assert "not configured" in body["analysis"]
    assert body["fallbackUsed"] is True
    assert [task["orderIndex"] for task in body["tasks"]] == [1, 2, 3, 4, 5]
    assert body["tasks"][1]["dependencies"] == [1]
    assert body["requestId"]

    with session_factory() as db:
        goal = db.get(Goal, UUID(body["goalId"]))
        assert goal.status == GoalStatus.PLANNING
        assert goal.ai_analysis == body["analysis"]
        assert len(goal.tasks) == 5
        assert all(task.status == TaskStatus.PENDING for task in goal.tasks)
        assert goal.tasks[2].steps


def test_create_goal_with_ai_plan(client, monkeypatch):
    test_client, session_factory = client
    content = json.dumps(
        {
            "analysis": "Short plan.",
            "suggestedStartDate": "2024-01-01T00:00:00",
            "tasks": [
                {"title": "One", "estimatedDurationHours": 2, "priority": "LOW", "status": "COMPLETED"},
                {"title": "Two", "estimatedDurationHours": 3},
                {"title": "Three", "estimatedDurationHours": 5},
            ],
        }
    )
    monkeypatch.setattr(settings, "gemini_api_key", "test-key")
    monkeypatch.setattr(PlanLLMClient, "complete", lambda self, prompt: f"```json\n{content}\n```")

    body = _create_goal(test_client, "Write a short story", constraints=["Evenings only"], maxTasksPerDay=2)

    assert body["fallbackUsed"] is False
    assert body["totalTasks"] == 3
    assert body["estimatedTotalHours"] == 10
    assert body["suggestedEndDate"].startswith("2024-01-01T10:00:00")
    assert [task["title"] for task in body["tasks"]] == ["One", "Two", "Three"]
    # Stored tasks always start out pending, whatever the model claimed.
    assert all(task["status"] == "PENDING" for task in body["tasks"])
    assert body["tasks"][0]["priority"] == "LOW"


def test_create_goal_rejects_blank_description(client):
    test_client, _ = client
    response = test_client.post("/api/goals", json={"description": "   "})

    assert response.status_code == 422


def test_get_and_list_goals(client):
    test_client, _ = client
    created = _create_goal(test_client)

    fetched = test_client.get(f"/api/goals/{created['goalId']}")
    assert fetched.status_code == 200
    goal = fetched.json()
    assert goal["description"] == "Launch a podcast"
    assert goal["status"] == "PLANNING"
    assert len(goal["tasks"]) == 5

    listed = test_client.get("/api/goals")
    assert listed.status_code == 200
    assert [item["id"] for item in listed.json()] == [created["goalId"]]


def test_recent_goals_are_capped_at_ten(client):
    test_client, _ = client
    for index in range(11):
        _create_goal(test_client, f"Goal number {index}")

    response = test_client.get("/api/goals/recent")
    assert response.status_code == 200
    assert len(response.json()) == 10
    assert len(test_client.get("/api/goals").json()) == 11


def test_get_missing_goal_returns_404(client):
    test_client, _ = client
    response = test_client.get(f"/api/goals/{uuid4()}")

    assert response.status_code == 404


def test_task_status_updates_drive_goal_status(client):
    test_client, _ = client
    created = _create_goal(test_client)
    goal_id = created["goalId"]
    task_ids = [task["id"] for task in created["tasks"]]

    started = _set_task_status(test_client, goal_id, task_ids[0], "IN_PROGRESS")
    assert started.status_code == 200
    assert started.json()["status"] == "IN_PROGRESS"
    assert test_client.get(f"/api/goals/{goal_id}").json()["status"] == "PLANNING"

    assert _set_task_status(test_client, goal_id, task_ids[0], "COMPLETED").status_code == 200
    assert test_client.get(f"/api/goals/{goal_id}").json()["status"] == "IN_PROGRESS"

    for task_id in task_ids[1:]:
        assert _set_task_status(test_client, goal_id, task_id, "completed").status_code == 200
    assert test_client.get(f"/api/goals/{goal_id}").json()["status"] == "COMPLETED"


def test_task_status_errors(client):
    test_client, _ = client
    first = _create_goal(test_client, "First goal")
    second = _create_goal(test_client, "Second goal")
    task_id = first["tasks"][0]["id"]

    assert _set_task_status(test_client, first["goalId"], str(uuid4()), "COMPLETED").status_code == 404
    assert _set_task_status(test_client, second["goalId"], task_id, "COMPLETED").status_code == 400
    assert _set_task_status(test_client, first["goalId"], task_id, "DONE").status_code == 400
    assert _set_task_status(test_client, first["goalId"], task_id, "  ").status_code == 422


def test_goal_status_override_is_not_sticky(client):
    test_client, _ = client
    created = _create_goal(test_client)
    goal_id = created["goalId"]

    overridden = test_client.put(f"/api/goals/{goal_id}/status", params={"status": "COMPLETED"})
    assert overridden.status_code == 200
    assert overridden.json()["status"] == "COMPLETED"

    _set_task_status(test_client, goal_id, created["tasks"][0]["id"], "COMPLETED")
    assert test_client.get(f"/api/goals/{goal_id}").json()["status"] == "IN_PROGRESS"


def test_goal_status_override_errors(client):
    test_client, _ = client
    created = _create_goal(test_client)

    assert test_client.put(f"/api/goals/{created['goalId']}/status", params={"status": "ARCHIVED"}).status_code == 400
    assert test_client.put(f"/api/goals/{uuid4()}/status", params={"status": "PLANNING"}).status_code == 404


def test_delete_goal_removes_tasks(client):
    test_client, session_factory = client
    created = _create_goal(test_client)
    goal_id = created["goalId"]

    response = test_client.delete(f"/api/goals/{goal_id}")
    assert response.status_code == 204
    assert test_client.get(f"/api/goals/{goal_id}").status_code == 404
    assert test_client.delete(f"/api/goals/{goal_id}").status_code == 404

    with session_factory() as db:
        assert db.query(Task).filter(Task.goal_id == UUID(goal_id)).count() == 0


def test_create_goal_with_huge_order_index_is_stored(client, monkeypatch):
    test_client, session_factory = client
    content = json.dumps(
        {
            "analysis": "a",
            "tasks": [{"title": "t", "estimatedDurationHours": 2, "orderIndex": 10**20, "dependencies": [10**20]}],
        }
    )
    monkeypatch.setattr(settings, "gemini_api_key", "test-key")
    monkeypatch.setattr(PlanLLMClient, "complete", lambda self, prompt: content)

    body = _create_goal(test_client, "Learn to juggle")

    assert body["fallbackUsed"] is False
    assert body["tasks"][0]["orderIndex"] == 1
    assert body["tasks"][0]["dependencies"] == []
    with session_factory() as db:
        assert db.get(Goal, UUID(body["goalId"])).tasks[0].order_index == 1


def test_stale_goal_write_raises_concurrent_update(client):
    test_client, session_factory = client
    goal_id = UUID(_create_goal(test_client)["goalId"])

    stale_db = session_factory()
    try:
        assert goal_lifecycle.get_goal(stale_db, goal_id).version == 1
        with session_factory() as fresh_db:
            goal_lifecycle.override_goal_status(fresh_db, goal_id, "IN_PROGRESS")

        with pytest.raises(ConcurrentUpdateError):
            goal_lifecycle.override_goal_status(stale_db, goal_id, "COMPLETED")
    finally:
        stale_db.close()

    with session_factory() as db:
        goal = db.get(Goal, goal_id)
        assert goal.status == GoalStatus.IN_PROGRESS
        assert goal.version == 2


def test_stale_goal_write_returns_409(client):
    test_client, session_factory = client
    goal_id = _create_goal(test_client)["goalId"]

    stale_db = session_factory()
    goal_lifecycle.get_goal(stale_db, UUID(goal_id))
    with session_factory() as fresh_db:
        goal_lifecycle.override_goal_status(fresh_db, UUID(goal_id), "IN_PROGRESS")

    def stale_get_db():
        try:
            yield stale_db
        finally:
            stale_db.close()

    app.dependency_overrides[get_db] = stale_get_db
    response = test_client.put(f"/api/goals/{goal_id}/status", params={"status": "COMPLETED"})

    assert response.status_code == 409
    assert "modified concurrently" in response.json()["detail"]
