"""Integration tests for task endpoints and the progress cascade."""

from httpx import AsyncClient


async def create_project(client: AsyncClient, headers: dict) -> dict:
    response = await client.post("/api/projects/", json={"name": "Launch"}, headers=headers)
    return response.json()


async def create_task(client: AsyncClient, headers: dict, project_id: str, assignee: str, **fields):
    response = await client.post(
        "/api/tasks/",
        json={"title": "Task", "project_id": project_id, "assigned_to": assignee, **fields},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


async def progress_of(client: AsyncClient, headers: dict, project_id: str) -> int:
    response = await client.get(f"/api/projects/{project_id}", headers=headers)
    return response.json()["progress"]


class TestTaskCascade:
    async def test_scenarios_a_and_b(self, client, as_alice, alice_api, settle) -> None:
        project = await create_project(client, as_alice)
        uid = alice_api["id"]
        for status in ("Completed", "Completed", "Pending", "In Progress"):
            created = await create_task(client, as_alice, project["id"], uid, status=status)
            if status == "Pending":
                third = created
        assert await progress_of(client, as_alice, project["id"]) == 50

        response = await client.put(
            f"/api/tasks/{third['id']}", json={"status": "Completed"}, headers=as_alice
        )
        await settle()

        assert response.status_code == 200
        assert response.json()["completion_date"] is not None
        assert await progress_of(client, as_alice, project["id"]) == 75
        actions = (
            await client.get(
                "/api/actions/", params={"type": "task_completed"}, headers=as_alice
            )
        ).json()
        assert len(actions) == 1
        assert actions[0]["task_id"] == third["id"]
        assert actions[0]["project_id"] == project["id"]

    async def test_repeat_completion_is_idempotent(self, client, as_alice, alice_api, settle) -> None:
        project = await create_project(client, as_alice)
        task = await create_task(client, as_alice, project["id"], alice_api["id"])

        for _ in range(2):
            await client.put(
                f"/api/tasks/{task['id']}", json={"status": "Completed"}, headers=as_alice
            )
        await settle()

        actions = (
            await client.get("/api/actions/", params={"type": "task_completed"}, headers=as_alice)
        ).json()
        assert len(actions) == 1

    async def test_assignment_action(self, client, as_alice, bob_api, settle) -> None:
        project = await create_project(client, as_alice)
        await create_task(client, as_alice, project["id"], bob_api["id"], title="Review")
        await settle()

        actions = (
            await client.get("/api/actions/", params={"type": "task_assigned"}, headers=as_alice)
        ).json()
        assert actions[0]["title"] == 'Task "Review" assigned to Bob Jones'
        assert actions[0]["member_list"][0]["name"] == "Bob Jones"

    async def test_delete_last_task_resets_progress(self, client, as_alice, alice_api) -> None:
        project = await create_project(client, as_alice)
        task = await create_task(client, as_alice, project["id"], alice_api["id"], status="Completed")
        assert await progress_of(client, as_alice, project["id"]) == 100

        response = await client.delete(f"/api/tasks/{task['id']}", headers=as_alice)

        assert response.status_code == 200
        assert await progress_of(client, as_alice, project["id"]) == 0


class TestTaskReads:
    async def test_expanded_view(self, client, as_alice, bob_api) -> None:
        project = await create_project(client, as_alice)
        task = await create_task(client, as_alice, project["id"], bob_api["id"])

        response = await client.get(f"/api/tasks/{task['id']}", headers=as_alice)

        data = response.json()
        assert data["assignee"]["name"] == "Bob Jones"
        assert data["project"] == {"id": project["id"], "name": "Launch"}

    async def test_by_project_and_user(self, client, as_alice, alice_api, bob_api) -> None:
        project = await create_project(client, as_alice)
        other = await create_project(client, as_alice)
        await create_task(client, as_alice, project["id"], alice_api["id"], title="A")
        await create_task(client, as_alice, other["id"], bob_api["id"], title="B")

        by_project = await client.get(f"/api/tasks/project/{project['id']}", headers=as_alice)
        by_user = await client.get(f"/api/tasks/user/{bob_api['id']}", headers=as_alice)
        filtered = await client.get(
            "/api/tasks/", params={"assigned_to": alice_api["id"]}, headers=as_alice
        )

        assert [t["title"] for t in by_project.json()] == ["A"]
        assert [t["title"] for t in by_user.json()] == ["B"]
        assert [t["title"] for t in filtered.json()] == ["A"]

    async def test_invalid_status_filter(self, client, as_alice) -> None:
        response = await client.get("/api/tasks/", params={"status": "Done"}, headers=as_alice)
        assert response.status_code == 422


class TestTaskErrors:
    async def test_unknown_project(self, client, as_alice, alice_api) -> None:
        response = await client.post(
            "/api/tasks/",
            json={"title": "x", "project_id": "nope", "assigned_to": alice_api["id"]},
            headers=as_alice,
        )
        assert response.status_code == 404
        assert response.json()["outcome"] == "not_found"

    async def test_completion_date_not_writable(self, client, as_alice, alice_api) -> None:
        project = await create_project(client, as_alice)
        task = await create_task(client, as_alice, project["id"], alice_api["id"])

        response = await client.put(
            f"/api/tasks/{task['id']}",
            json={"completion_date": "2024-01-01T00:00:00Z"},
            headers=as_alice,
        )

        assert response.status_code == 422

    async def test_missing_task(self, client, as_alice) -> None:
        response = await client.get("/api/tasks/missing", headers=as_alice)
        assert response.status_code == 404
