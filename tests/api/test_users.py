"""Integration tests for user endpoints."""

from httpx import AsyncClient


class TestRegister:
    async def test_register_hides_password(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/users/",
            json={"name": "Carol Diaz", "email": "Carol@Example.com", "password_hash": "x"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "carol@example.com"
        assert data["avatar"] == "CD"
        assert "password_hash" not in data

    async def test_duplicate_email_rejected(self, client: AsyncClient, alice_api: dict) -> None:
        response = await client.post(
            "/api/users/", json={"name": "Other", "email": "alice@example.com"}
        )

        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "email"

    async def test_invalid_email(self, client: AsyncClient) -> None:
        response = await client.post("/api/users/", json={"name": "X", "email": "nope"})
        assert response.status_code == 422


class TestRead:
    async def test_list_users(self, client, as_alice, bob_api) -> None:
        response = await client.get("/api/users/", headers=as_alice)

        assert response.status_code == 200
        names = [u["name"] for u in response.json()]
        assert names == ["Alice Smith", "Bob Jones"]
        assert all("password_hash" not in u for u in response.json())

    async def test_get_user(self, client, as_alice, bob_api) -> None:
        response = await client.get(f"/api/users/{bob_api['id']}", headers=as_alice)

        assert response.status_code == 200
        assert response.json()["department"] == "Design"

    async def test_get_missing_user(self, client, as_alice) -> None:
        response = await client.get("/api/users/missing", headers=as_alice)
        assert response.status_code == 404

    async def test_project_members(self, client, as_alice, bob_api) -> None:
        project = (
            await client.post(
                "/api/projects/", json={"name": "Launch", "members": [bob_api["id"]]},
                headers=as_alice,
            )
        ).json()

        response = await client.get(f"/api/users/project/{project['id']}", headers=as_alice)

        assert response.status_code == 200
        assert [u["name"] for u in response.json()] == ["Bob Jones"]


class TestUpdate:
    async def test_update_own_profile(self, client, alice_api, as_alice) -> None:
        response = await client.put(
            f"/api/users/{alice_api['id']}",
            json={"bio": "Ships things", "skills": ["python"]},
            headers=as_alice,
        )

        assert response.status_code == 200
        assert response.json()["bio"] == "Ships things"
        assert response.json()["skills"] == ["python"]

    async def test_cannot_update_someone_else(self, client, bob_api, as_alice) -> None:
        response = await client.put(
            f"/api/users/{bob_api['id']}", json={"bio": "hacked"}, headers=as_alice
        )
        assert response.status_code == 403

    async def test_cannot_change_credentials(self, client, alice_api, as_alice) -> None:
        response = await client.put(
            f"/api/users/{alice_api['id']}", json={"password_hash": "new"}, headers=as_alice
        )
        assert response.status_code == 422
