"""Fixtures for API tests: registered users and their auth headers."""

import pytest
from httpx import AsyncClient

from src.main import app


async def register(client: AsyncClient, name: str, email: str, **fields) -> dict:
    response = await client.post("/api/users/", json={"name": name, "email": email, **fields})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
async def alice_api(client: AsyncClient) -> dict:
    return await register(client, "Alice Smith", "alice@example.com", password_hash="secret")


@pytest.fixture
async def bob_api(client: AsyncClient) -> dict:
    return await register(
        client, "Bob Jones", "bob@example.com", password_hash="secret", department="Design"
    )


@pytest.fixture
def as_alice(alice_api: dict) -> dict[str, str]:
    return {"X-User-Id": alice_api["id"]}


@pytest.fixture
def as_bob(bob_api: dict) -> dict[str, str]:
    return {"X-User-Id": bob_api["id"]}


@pytest.fixture
def settle():
    """Wait for the background audit writes of the requests made so far."""

    async def _settle() -> None:
        await app.state.recorder.drain()

    return _settle
