import pytest
from httpx import AsyncClient

from careerpath.server.core.security import InvalidTokenError

pytestmark = pytest.mark.asyncio


async def _register(client: AsyncClient, email: str = "New.User@Example.com", password: str = "secret123"):
    return await client.post("/api/v1/auth/register", json={"email": email, "password": password})


async def test_register_creates_account(client: AsyncClient):
    response = await _register(client)
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "User registered successfully."
    assert isinstance(data["user_id"], int)


async def test_register_duplicate_email_conflicts(client: AsyncClient):
    await _register(client)
    response = await _register(client, email="new.user@example.com")
    assert response.status_code == 409
    assert response.json()["detail"] == "Email already registered."


async def test_register_rejects_short_password(client: AsyncClient):
    response = await _register(client, password="123")
    assert response.status_code == 400
    assert response.json()["detail"] == "Validation errors"


async def test_login_returns_token_usable_for_me(client: AsyncClient):
    await _register(client)
    response = await client.post("/api/v1/auth/login", json={"email": "new.user@example.com", "password": "secret123"})
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == "new.user@example.com"
    assert data["user"]["name"] == "new.user"
    assert data["user"]["last_login"] is not None

    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.json()["user"]["id"] == data["user"]["id"]


async def test_login_logs_activity(client: AsyncClient):
    await _register(client)
    login = await client.post("/api/v1/auth/login", json={"email": "new.user@example.com", "password": "secret123"})
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    response = await client.get("/api/v1/user/activity", headers=headers)
    assert [item["type"] for item in response.json()] == ["login"]


async def test_login_wrong_password(client: AsyncClient):
    await _register(client)
    response = await client.post("/api/v1/auth/login", json={"email": "new.user@example.com", "password": "wrong!!"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password."


async def test_login_unknown_email(client: AsyncClient):
    response = await client.post("/api/v1/auth/login", json={"email": "ghost@example.com", "password": "secret123"})
    assert response.status_code == 401


async def test_me_requires_token(client: AsyncClient):
    response = await client.get("/api/v1/auth/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "Access token required"


async def test_me_rejects_garbage_token(client: AsyncClient):
    response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or expired token"


async def test_verify_token_creates_user(client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
    claims = {"uid": "firebase-uid-1", "email": "Google.User@gmail.com", "name": "Google User", "picture": "http://x/p.png"}
    monkeypatch.setattr("careerpath.server.api.v1.auth.verify_firebase_token", lambda token: claims)

    response = await client.post("/api/v1/auth/verify-token", json={"id_token": "id-token"})
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["uid"] == "firebase-uid-1"
    assert user["email"] == "google.user@gmail.com"
    assert user["name"] == "Google User"
    assert user["photo_url"] == "http://x/p.png"

    again = await client.post("/api/v1/auth/verify-token", json={"id_token": "id-token"})
    assert again.json()["user"]["id"] == user["id"]


async def test_verify_token_links_existing_local_account(client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
    registered = await _register(client, email="linked@example.com")
    claims = {"uid": "firebase-uid-2", "email": "linked@example.com"}
    monkeypatch.setattr("careerpath.server.api.v1.auth.verify_firebase_token", lambda token: claims)

    response = await client.post("/api/v1/auth/verify-token", json={"id_token": "id-token"})
    assert response.status_code == 200
    assert response.json()["user"]["id"] == registered.json()["user_id"]
    assert response.json()["user"]["uid"] == "firebase-uid-2"


async def test_verify_token_invalid(client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
    def _reject(token):
        raise InvalidTokenError("bad token")

    monkeypatch.setattr("careerpath.server.api.v1.auth.verify_firebase_token", _reject)
    response = await client.post("/api/v1/auth/verify-token", json={"id_token": "id-token"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token"
