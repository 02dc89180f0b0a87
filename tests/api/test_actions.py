"""Integration tests for action (timeline) endpoints."""

from httpx import AsyncClient


async def comment(client: AsyncClient, headers: dict, **fields) -> dict:
    body = {"type": "comment_added", "title": "Left a comment", **fields}
    response = await client.post("/api/actions/", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestRecordAction:
    async def test_author_is_acting_user(self, client, as_bob, bob_api) -> None:
        action = await comment(client, as_bob)

        assert action["user"] == bob_api["id"]
        assert action["actor"]["name"] == "Bob Jones"
        assert action["department"] == "Design"
        assert action["sequence"] is not None

    async def test_department_override(self, client, as_bob) -> None:
        action = await comment(client, as_bob, department="Product")
        assert action["department"] == "Product"

    async def test_title_required_without_template(self, client, as_alice) -> None:
        response = await client.post(
            "/api/actions/", json={"type": "comment_added"}, headers=as_alice
        )

        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "title"

    async def test_unknown_type_rejected(self, client, as_alice) -> None:
        response = await client.post(
            "/api/actions/", json={"type": "liked", "title": "x"}, headers=as_alice
        )
        assert response.status_code == 422

    async def test_author_cannot_be_spoofed(self, client, as_alice, bob_api) -> None:
        response = await client.post(
            "/api/actions/",
            json={"type": "comment_added", "title": "x", "user": bob_api["id"]},
            headers=as_alice,
        )
        assert response.status_code == 422


class TestReadActions:
    async def test_newest_first(self, client, as_alice) -> None:
        for title in ("first", "second", "third"):
            await comment(client, as_alice, title=title)

        response = await client.get("/api/actions/", headers=as_alice)

        assert [a["title"] for a in response.json()] == ["third", "second", "first"]

    async def test_filters(self, client, as_alice, as_bob, alice_api) -> None:
        await comment(client, as_alice, title="mine")
        await comment(client, as_bob, title="theirs")

        by_user = await client.get(
            "/api/actions/", params={"user_id": alice_api["id"]}, headers=as_alice
        )
        by_department = await client.get(
            "/api/actions/", params={"department": "Design"}, headers=as_alice
        )

        assert [a["title"] for a in by_user.json()] == ["mine"]
        assert [a["title"] for a in by_department.json()] == ["theirs"]

    async def test_timeline_all_disables_filter(self, client, as_alice, as_bob) -> None:
        await comment(client, as_alice, title="a")
        await comment(client, as_bob, title="b")

        everything = await client.get(
            "/api/actions/recent/timeline",
            params={"project_id": "all", "department": "all"},
            headers=as_alice,
        )
        design = await client.get(
            "/api/actions/recent/timeline", params={"department": "Design"}, headers=as_alice
        )

        assert [a["title"] for a in everything.json()] == ["b", "a"]
        assert [a["title"] for a in design.json()] == ["b"]

    async def test_get_by_id(self, client, as_alice) -> None:
        action = await comment(client, as_alice)

        response = await client.get(f"/api/actions/{action['id']}", headers=as_alice)

        assert response.status_code == 200
        assert response.json()["title"] == "Left a comment"

    async def test_get_missing(self, client, as_alice) -> None:
        response = await client.get("/api/actions/missing", headers=as_alice)
        assert response.status_code == 404
