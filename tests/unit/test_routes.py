"""Tests for the HTTP routes."""

import pytest
from fastapi.testclient import TestClient

from taskpulse.main import app


ADMIN = {"X-User-Id": "root", "X-User-Role": "admin"}
ALICE = {"X-User-Id": "alice"}
BOB = {"X-User-Id": "bob", "X-User-Role": "user"}


@pytest.fixture
def client(patched_db, fixed_now) -> TestClient:
    """Create a test client for FastAPI app backed by the in-memory database."""
    return TestClient(app)


def _create_task(client: TestClient, **overrides) -> dict:
    payload = {"title": "Plan offsite", "priority": "high", "assignee_ids": ["alice", "bob"], **overrides}
    response = client.post("/admin/tasks", json=payload, headers=ADMIN)
    assert response.status_code == 201
    return response.json()


@pytest.mark.unit
def test_health_endpoint_returns_healthy(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.unit
class TestIdentity:
    """Caller identity and authorization."""

    def test_missing_identity_is_rejected(self, client):
        response = client.get("/me/tasks")

        assert response.status_code == 401

    def test_unknown_role_is_rejected(self, client):
        response = client.get("/me/tasks", headers={"X-User-Id": "alice", "X-User-Role": "superuser"})

        assert response.status_code == 400
        assert response.json()["code"] == "ERR_VALIDATION"

    def test_non_admin_cannot_create_tasks(self, client):
        response = client.post("/admin/tasks", json={"title": "Nope"}, headers=ALICE)

        assert response.status_code == 403
        assert response.json()["code"] == "ERR_PERMISSION_DENIED"

    def test_user_cannot_act_for_someone_else(self, client):
        task = _create_task(client)

        response = client.get(f"/me/tasks/{task['id']}/workflow", params={"user_id": "bob"}, headers=ALICE)

        assert response.status_code == 403

    def test_admin_can_act_for_assignee(self, client):
        task = _create_task(client)

        response = client.get(f"/me/tasks/{task['id']}/workflow", params={"user_id": "bob"}, headers=ADMIN)

        assert response.status_code == 200
        assert response.json()["total_steps"] == 0

    def test_unassigned_caller_gets_forbidden(self, client):
        task = _create_task(client, assignee_ids=["bob"])

        response = client.post(f"/me/tasks/{task['id']}/workflow/steps", json={"label": "x"}, headers=ALICE)

        assert response.status_code == 403
        assert response.json() == {
            "code": "ERR_NOT_ASSIGNED",
            "message": "You are not assigned to this task",
            "severity": "medium",
        }


@pytest.mark.unit
class TestMyTaskRoutes:
    """Personal workflow, timer and status routes."""

    def test_workflow_lifecycle(self, client):
        task = _create_task(client)
        base = f"/me/tasks/{task['id']}/workflow"

        added = client.post(f"{base}/steps", json={"label": "Book venue"}, headers=ALICE)
        assert added.status_code == 201
        step_id = added.json()["step_id"]

        toggled = client.post(f"{base}/steps/{step_id}/toggle", headers=ALICE)
        assert toggled.json() == {"progress": 100, "status": "completed", "completed_steps": 1, "total_steps": 1}

        mine = client.get("/me/tasks", params={"status": "completed"}, headers=ALICE).json()
        assert [t["id"] for t in mine] == [task["id"]]
        assert mine[0]["my_progress"] == 100

        bob_view = client.get(base, headers=BOB).json()
        assert bob_view["status"] == "pending"

    def test_command_endpoint(self, client):
        task = _create_task(client)
        base = f"/me/tasks/{task['id']}/workflow"

        added = client.patch(base, json={"action": "add_step", "label": "Draft agenda"}, headers=ALICE)
        assert added.status_code == 200
        step_id = added.json()["step_id"]

        toggled = client.patch(base, json={"action": "toggle_step", "step_id": step_id}, headers=ALICE)
        assert toggled.json()["status"] == "completed"

        invalid = client.patch(base, json={"action": "rename", "step_id": step_id}, headers=ALICE)
        assert invalid.status_code == 400
        assert invalid.json()["code"] == "ERR_VALIDATION"

    def test_unknown_step_is_not_found(self, client):
        task = _create_task(client)

        response = client.delete(f"/me/tasks/{task['id']}/workflow/steps/missing", headers=ALICE)

        assert response.status_code == 404
        assert response.json()["code"] == "ERR_STEP_NOT_FOUND"

    def test_blank_label_is_bad_request(self, client):
        task = _create_task(client)

        response = client.post(f"/me/tasks/{task['id']}/workflow/steps", json={"label": "  "}, headers=ALICE)

        assert response.status_code == 400
        assert response.json()["message"] == "Step label is required"

    def test_timer_conflict(self, client):
        task = _create_task(client)
        url = f"/me/tasks/{task['id']}/timer"

        first = client.post(url, json={"action": "start"}, headers=ALICE)
        second = client.post(url, json={"action": "start"}, headers=ALICE)

        assert first.json() == {"time_spent_minutes": 0, "is_timer_active": True}
        assert second.status_code == 409
        assert second.json()["code"] == "ERR_TIMER_ALREADY_RUNNING"

    def test_set_status(self, client):
        task = _create_task(client)

        response = client.put(f"/me/tasks/{task['id']}/status", json={"status": "in-progress"}, headers=BOB)

        assert response.json() == {"status": "in-progress", "progress": 0}

    def test_malformed_body_uses_error_shape(self, client):
        task = _create_task(client)

        response = client.put(f"/me/tasks/{task['id']}/status", json={"status": "done"}, headers=BOB)

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "ERR_VALIDATION"
        assert body["severity"] == "low"
        assert "body.status" in body["message"]

    def test_missing_task(self, client):
        response = client.get("/me/tasks/999", headers=ALICE)

        assert response.status_code == 404
        assert response.json()["code"] == "ERR_TASK_NOT_FOUND"


@pytest.mark.unit
class TestAdminRoutes:
    """Task administration and analytics routes."""

    def test_assignee_management(self, client):
        task = _create_task(client)
        base = f"/admin/tasks/{task['id']}/assignees"

        assert client.post(f"{base}/carol", headers=ADMIN).status_code == 201
        duplicate = client.post(f"{base}/carol", headers=ADMIN)
        assert duplicate.status_code == 409
        assert duplicate.json()["code"] == "ERR_DUPLICATE_ASSIGNEE"

        replaced = client.put(base, json={"assignee_ids": ["carol"]}, headers=ADMIN).json()
        assert [a["user_id"] for a in replaced["assignees"]] == ["carol"]

    def test_archive_and_delete(self, client):
        task = _create_task(client)

        archived = client.put(f"/admin/tasks/{task['id']}/archive", json={"archived": True}, headers=ADMIN)
        assert archived.json()["is_archived"] is True
        assert client.get("/admin/tasks", headers=ADMIN).json() == []

        deleted = client.delete(f"/admin/tasks/{task['id']}", headers=ADMIN)
        assert deleted.status_code == 204
        assert client.get(f"/admin/tasks/{task['id']}", headers=ADMIN).status_code == 404

    def test_null_title_is_rejected_without_touching_the_task(self, client):
        task = _create_task(client)

        response = client.patch(f"/admin/tasks/{task['id']}", json={"title": None}, headers=ADMIN)

        assert response.status_code == 400
        assert response.json()["code"] == "ERR_VALIDATION"
        assert client.get(f"/admin/tasks/{task['id']}", headers=ADMIN).json()["title"] == "Plan offsite"

    def test_date_only_due_date_lists_cleanly(self, client):
        task = _create_task(client, due_date="2024-03-01")

        mine = client.get("/me/tasks", headers=ALICE).json()
        bottlenecks = client.get("/analytics/admin/bottlenecks", headers=ADMIN).json()

        assert mine[0]["is_overdue"] is True
        assert [item["id"] for item in bottlenecks["overdue"]] == [task["id"]]

    def test_created_by_defaults_to_admin(self, client):
        task = _create_task(client)

        assert task["created_by"] == "root"

    def test_admin_analytics_require_admin(self, client):
        assert client.get("/analytics/admin/overview", headers=ALICE).status_code == 403
        assert client.get("/analytics/admin/overview", headers=ADMIN).status_code == 200

    def test_leaderboard_restricted_to_users(self, client):
        task = _create_task(client)
        client.put(f"/me/tasks/{task['id']}/status", json={"status": "completed"}, headers=ALICE)

        board = client.get("/analytics/admin/leaderboard", params=[("user_id", "alice")], headers=ADMIN).json()

        assert board == [
            {"user_id": "alice", "completed": 1, "total": 1, "avg_completion_days": 0.0, "productivity_score": 100}
        ]

    def test_personal_analytics(self, client):
        task = _create_task(client)
        client.put(f"/me/tasks/{task['id']}/status", json={"status": "completed"}, headers=ALICE)

        overview = client.get("/analytics/me/overview", headers=ALICE).json()
        progress = client.get("/analytics/me/progress", params={"window_days": 7}, headers=ALICE).json()
        summary = client.get("/analytics/me/summary", headers=ALICE).json()

        assert overview["completion_rate"] == 100
        assert len(progress) == 7
        assert progress[-1]["count"] == 1
        assert summary["current_streak"] == 1
