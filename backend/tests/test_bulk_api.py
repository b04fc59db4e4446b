"""
Bulk endpoint tests: response shapes, status codes and the
transactional flag on success and error bodies.
"""

import uuid

import pytest

from app.models import Task
from app.repository import Repository


class TestMoveTasksEndpoint:

    @pytest.mark.asyncio
    async def test_move(self, client, make_class, make_task, fetch):
        source = await make_class("Math 101")
        target = await make_class("Math 102")
        await make_task(source, "HW1")
        await make_task(source, "HW2")

        resp = await client.post(
            "/api/bulk/move-tasks",
            json={"fromClassId": str(source.id), "toClassId": str(target.id)},
        )

        assert resp.status_code == 200
        assert resp.json() == {
            "message": "Successfully moved 2 tasks",
            "movedCount": 2,
            "fromClass": "Math 101",
            "toClass": "Math 102",
            "transactional": True,
        }
        assert len(await fetch.tasks(Task.class_id == target.id)) == 2

    @pytest.mark.asyncio
    async def test_missing_destination_is_400(self, client, make_class):
        source = await make_class("Math 101")

        resp = await client.post("/api/bulk/move-tasks", json={"fromClassId": str(source.id)})

        assert resp.status_code == 400
        assert resp.json()["message"] == "Both fromClassId and toClassId are required"
        assert resp.json()["transactional"] is True

    @pytest.mark.asyncio
    async def test_unknown_source_is_404(self, client, make_class):
        target = await make_class("Math 102")

        resp = await client.post(
            "/api/bulk/move-tasks",
            json={"fromClassId": str(uuid.uuid4()), "toClassId": str(target.id)},
        )

        assert resp.status_code == 404
        assert resp.json()["message"].startswith("Source class")
        assert resp.json()["transactional"] is True


class TestDeleteClassesEndpoint:

    @pytest.mark.asyncio
    async def test_delete(self, client, make_class, make_task, fetch):
        math = await make_class("Math 101")
        art = await make_class("Art 101")
        await make_task(math, "HW1")
        await make_task(art, "Sketch")
        await make_task(art, "Paint")

        resp = await client.post(
            "/api/bulk/delete-classes",
            json={"classIds": [str(math.id), str(art.id), str(uuid.uuid4())]},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["classesDeleted"] == 2
        assert body["tasksDeleted"] == 3
        assert body["transactional"] is True
        assert await fetch.classes() == []
        assert await fetch.tasks() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"classIds": []}])
    async def test_empty_ids_are_400(self, client, body):
        resp = await client.post("/api/bulk/delete-classes", json=body)

        assert resp.status_code == 400
        assert resp.json()["message"] == "classIds must be a non-empty array"
        assert resp.json()["transactional"] is True

    @pytest.mark.asyncio
    async def test_non_list_ids_are_400(self, client):
        resp = await client.post("/api/bulk/delete-classes", json={"classIds": "abc"})

        assert resp.status_code == 400


class TestCompleteAllTasksEndpoint:

    @pytest.mark.asyncio
    async def test_math_101_scenario(self, client, make_class, make_task):
        math = await make_class("Math 101")
        await make_task(math, "HW1", completed=False)
        await make_task(math, "HW2", completed=True)

        resp = await client.post("/api/bulk/complete-all-tasks", json={"classId": str(math.id)})

        assert resp.status_code == 200
        assert resp.json()["tasksCompleted"] == 1
        assert resp.json()["className"] == "Math 101"
        assert resp.json()["transactional"] is True

        resp = await client.get("/api/tasks", params={"classId": str(math.id), "completed": "false"})
        assert resp.json() == []

    @pytest.mark.asyncio
    async def test_unknown_class_is_404(self, client):
        resp = await client.post("/api/bulk/complete-all-tasks", json={"classId": str(uuid.uuid4())})

        assert resp.status_code == 404
        assert resp.json()["transactional"] is True


class TestDuplicateClassEndpoint:

    @pytest.mark.asyncio
    async def test_duplicate(self, client, make_class, make_task):
        math = await make_class("Math 101")
        await make_task(math, "HW1", completed=True)

        resp = await client.post("/api/bulk/duplicate-class", json={"classId": str(math.id)})

        assert resp.status_code == 200
        body = resp.json()
        assert body["newClassName"] == "Math 101 (Copy)"
        assert body["tasksCopied"] == 1
        assert body["transactional"] is True

        copied = (await client.get("/api/tasks", params={"classId": body["newClassId"]})).json()
        assert [(t["name"], t["completed"], t["className"]) for t in copied] == [
            ("HW1", False, "Math 101 (Copy)"),
        ]

    @pytest.mark.asyncio
    async def test_new_name_is_sanitized(self, client, make_class):
        math = await make_class("Math 101")

        resp = await client.post(
            "/api/bulk/duplicate-class",
            json={"classId": str(math.id), "newClassName": "{$Spring}"},
        )

        assert resp.json()["newClassName"] == "Spring"


class TestTransactionalFailure:

    @pytest.mark.asyncio
    async def test_database_error_is_500_and_nothing_changes(
        self, monkeypatch, client, make_class, make_task, fetch,
    ):
        math = await make_class("Math 101")
        await make_task(math, "HW1")

        async def failing_delete_classes(self, class_ids):
            from sqlalchemy.exc import OperationalError
            raise OperationalError("DELETE", {}, Exception("database is locked"))

        monkeypatch.setattr(Repository, "delete_classes", failing_delete_classes)

        resp = await client.post("/api/bulk/delete-classes", json={"classIds": [str(math.id)]})

        assert resp.status_code == 500
        assert resp.json()["error"] == "operation_failed"
        assert resp.json()["message"].startswith("Failed to delete classes:")
        assert resp.json()["transactional"] is True
        assert await fetch.class_(math.id) is not None
        assert len(await fetch.tasks(Task.class_id == math.id)) == 1


class TestHealth:

    @pytest.mark.asyncio
    async def test_health_reports_transaction_support(self, client):
        resp = await client.get("/health")

        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy", "transactionsSupported": True}
