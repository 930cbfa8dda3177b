"""
API Tests for admin authentication endpoints
"""
import pytest
from httpx import AsyncClient


class TestLogin:

    async def test_login_success(self, client: AsyncClient):
        response = await client.post("/api/auth/login", json={"username": "admin", "password": "admin123"})

        assert response.status_code == 200
        body = response.json()
        assert body["token"]
        assert body["admin"]["username"] == "admin"
        assert "passwordHash" not in body["admin"]

    async def test_login_wrong_password(self, client: AsyncClient):
        response = await client.post("/api/auth/login", json={"username": "admin", "password": "nope"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_FAILED"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_login_missing_fields(self, client: AsyncClient):
        response = await client.post("/api/auth/login", json={"username": "admin"})

        assert response.status_code == 422


class TestSession:

    async def test_me(self, client: AsyncClient, auth_headers):
        response = await client.get("/api/auth/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["role"] == "super_admin"

    async def test_me_without_token(self, client: AsyncClient):
        response = await client.get("/api/auth/me")

        assert response.status_code == 401

    async def test_me_with_garbage_token(self, client: AsyncClient):
        response = await client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    async def test_logout_revokes_token(self, client: AsyncClient, auth_headers):
        response = await client.post("/api/auth/logout", headers=auth_headers)
        assert response.status_code == 200

        response = await client.get("/api/auth/me", headers=auth_headers)
        assert response.status_code == 401


class TestProfile:

    async def test_change_password(self, client: AsyncClient, auth_headers):
        response = await client.put("/api/auth/password", headers=auth_headers, json={
            "currentPassword": "admin123",
            "newPassword": "warden-pass",
        })
        assert response.status_code == 200

        response = await client.post("/api/auth/login", json={"username": "admin", "password": "warden-pass"})
        assert response.status_code == 200

    async def test_change_password_wrong_current(self, client: AsyncClient, auth_headers):
        response = await client.put("/api/auth/password", headers=auth_headers, json={
            "currentPassword": "wrong",
            "newPassword": "warden-pass",
        })

        assert response.status_code == 401

    @pytest.mark.parametrize("payload", [
        {"username": "ab"},
        {"email": "not-an-email"},
    ])
    async def test_invalid_profile(self, client: AsyncClient, auth_headers, payload):
        response = await client.put("/api/auth/profile", headers=auth_headers, json=payload)

        assert response.status_code == 422

    async def test_update_profile(self, client: AsyncClient, auth_headers):
        response = await client.put("/api/auth/profile", headers=auth_headers, json={"email": "warden@hostel.in"})

        assert response.status_code == 200
        assert response.json()["email"] == "warden@hostel.in"
