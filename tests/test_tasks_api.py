import uuid

import pytest
from fastapi.testclient import TestClient

from task_accounter.errors import (
    ConcurrentUpdateError,
    ErrorKind,
    StorageError,
    TaskError,
    TaskNotFoundError,
)
# conftest pins PERSISTENCE_BACKEND=memory and ENCRYPTION_KEY before this import
from task_accounter.main import app, status_for
from task_accounter.repositories import get_repository

client = TestClient(app)


def headers(user_id, role="technician", name="Tom", email="tom@example.com"):
    return {
        "X-User-Id": user_id,
        "X-User-Role": role,
        "X-User-Name": name,
        "X-User-Email": email,
    }


def new_technician():
    # The in-memory repository lives for the whole module; unique ids keep tests apart.
    return f"tech-{uuid.uuid4().hex[:8]}"


def create_task(user_id, title="Fix pump", summary="Pump leaks"):
    res = client.post("/api/v1/tasks/", json={"title": title, "summary": summary}, headers=headers(user_id))
    assert res.status_code == 201
    return res.json()["id"]


class TestHealth:
    def test_health_check(self):
        res = client.get("/")
        assert res.status_code == 200
        data = res.json()
        assert data["message"] == "Healthy"
        assert data["backend"] in ("memory", "sqlite")

    def test_ping(self):
        res = client.get("/ping")
        assert res.status_code == 200
        assert res.json() == {"message": "pong"}


class TestIdentity:
    def test_missing_headers(self):
        res = client.get("/api/v1/tasks/")
        assert res.status_code == 401
        assert res.json()["detail"] == "Not authenticated"

    def test_unknown_role(self):
        res = client.get("/api/v1/tasks/", headers=headers("someone", role="admin"))
        assert res.status_code == 400


class TestTaskLifecycle:
    def test_create_and_list_own_tasks_decrypted(self):
        tech = new_technician()
        first = create_task(tech, title="Fix pump", summary="Pump leaks")
        second = create_task(tech, title="Paint wall", summary="Second coat")

        res = client.get("/api/v1/tasks/", headers=headers(tech))
        assert res.status_code == 200
        body = res.json()
        assert body["total"] == 2
        assert [t["id"] for t in body["items"]] == [first, second]
        assert [t["summary"] for t in body["items"]] == ["Pump leaks", "Second coat"]
        assert all(t["status"] == "open" and t["done_at"] is None for t in body["items"])

    def test_summary_is_encrypted_at_rest(self):
        tech = new_technician()
        task_id = create_task(tech, summary="Pump leaks")
        stored = get_repository().find_by_id(task_id)
        assert stored.summary != "Pump leaks"

    def test_technician_does_not_see_other_tasks(self):
        tech, other = new_technician(), new_technician()
        create_task(tech)
        res = client.get("/api/v1/tasks/", headers=headers(other))
        assert res.status_code == 200
        assert res.json() == {"items": [], "total": 0}

    def test_manager_sees_tasks_of_every_technician(self):
        tech, other = new_technician(), new_technician()
        ids = {create_task(tech), create_task(other)}
        res = client.get("/api/v1/tasks/", headers=headers("boss", role="manager"))
        assert res.status_code == 200
        listed = {t["id"] for t in res.json()["items"]}
        assert ids <= listed

    def test_update_and_close(self):
        tech = new_technician()
        task_id = create_task(tech)

        res = client.patch(
            f"/api/v1/tasks/{task_id}",
            json={"title": "Fix pump", "summary": "Replaced seal", "close": True},
            headers=headers(tech),
        )
        assert res.status_code == 204
        assert res.text == ""

        items = client.get("/api/v1/tasks/", headers=headers(tech)).json()["items"]
        assert items[0]["summary"] == "Replaced seal"
        assert items[0]["status"] == "closed"
        assert items[0]["done_at"] is not None

        # closed tasks are immutable
        res_again = client.patch(
            f"/api/v1/tasks/{task_id}",
            json={"title": "Fix pump", "summary": "Reopened?", "close": False},
            headers=headers(tech),
        )
        assert res_again.status_code == 409
        assert res_again.json() == {"error": "TASK_CLOSED", "message": "task is closed"}


class TestTaskErrors:
    def test_manager_cannot_create(self):
        res = client.post(
            "/api/v1/tasks/",
            json={"title": "Fix pump", "summary": "Pump leaks"},
            headers=headers("boss", role="manager"),
        )
        assert res.status_code == 403
        assert res.json()["error"] == "TECHNICIAN_ROLE_REQUIRED"

    def test_manager_cannot_update(self):
        task_id = create_task(new_technician())
        res = client.patch(
            f"/api/v1/tasks/{task_id}",
            json={"title": "Fix pump", "summary": "Replaced seal"},
            headers=headers("boss", role="manager"),
        )
        assert res.status_code == 403
        assert res.json()["error"] == "TECHNICIAN_ROLE_REQUIRED"

    def test_non_owner_cannot_update(self):
        task_id = create_task(new_technician())
        res = client.patch(
            f"/api/v1/tasks/{task_id}",
            json={"title": "Fix pump", "summary": "Replaced seal"},
            headers=headers(new_technician()),
        )
        assert res.status_code == 403
        assert res.json()["error"] == "TASK_NOT_OWNED_BY_USER"

    def test_update_unknown_task(self):
        res = client.patch(
            "/api/v1/tasks/does-not-exist",
            json={"title": "Fix pump", "summary": "Replaced seal"},
            headers=headers(new_technician()),
        )
        assert res.status_code == 404
        assert res.json()["error"] == "FIND_TASK_BY_ID"

    def test_blank_summary_is_invalid_task_data(self):
        tech = new_technician()
        task_id = create_task(tech)
        res = client.patch(
            f"/api/v1/tasks/{task_id}",
            json={"title": "Fix pump", "summary": "   "},
            headers=headers(tech),
        )
        assert res.status_code == 422
        body = res.json()
        assert body["error"] == "INVALID_TASK_DATA"
        assert body["message"] == "invalid task data: summary must not be empty"

    def test_request_validation_error_shape(self):
        res = client.post("/api/v1/tasks/", json={"title": "Fix pump"}, headers=headers(new_technician()))
        assert res.status_code == 422
        body = res.json()
        assert body.get("error") == "ValidationError"
        assert body.get("message") == "Request validation failed"
        assert isinstance(body.get("detail"), list)


class TestStatusMapping:
    @pytest.mark.parametrize(
        "error, status",
        [
            (TaskError(ErrorKind.SAVE_TASK, ConcurrentUpdateError("t1", expected=1, actual=2)), 409),
            (TaskError(ErrorKind.SAVE_TASK, StorageError("disk full")), 500),
            (TaskError(ErrorKind.FIND_TASK_BY_ID, TaskNotFoundError("t1")), 404),
            (TaskError(ErrorKind.FIND_TASK_BY_ID, StorageError("timeout")), 500),
            (TaskError(ErrorKind.CRYPT_SUMMARY), 500),
            (TaskError(ErrorKind.TASK_CLOSED), 409),
        ],
    )
    def test_status_for(self, error, status):
        assert status_for(error) == status
