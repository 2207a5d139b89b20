"""
Integration tests for Authentication API endpoints.
Tests registration, login and token refresh over HTTP.
"""
import pytest

from app.utils.datetime_utils import utc_today, years_before


def _registration(**overrides):
    body = {
        "email": "john@example.com",
        "password": "SecurePassword123",
        "birth_date": years_before(utc_today(), 30).isoformat(),
        "display_name": "John",
        "gender": "male",
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
class TestAuthAPI:
    """Test cases for Authentication API endpoints."""

    async def test_register_success(self, client):
        response = await client.post("/api/auth/register", json=_registration())

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "註冊成功"
        assert isinstance(data["user_id"], int)

    async def test_register_then_login(self, client):
        await client.post("/api/auth/register", json=_registration())

        response = await client.post(
            "/api/auth/login",
            json={"email": "John@Example.com", "password": "SecurePassword123"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == "john@example.com"

    async def test_register_duplicate_email(self, client, alice):
        response = await client.post("/api/auth/register", json=_registration(email="alice@example.com"))

        assert response.status_code == 409
        assert "error" in response.json()

    async def test_register_underage(self, client):
        response = await client.post(
            "/api/auth/register",
            json=_registration(birth_date=years_before(utc_today(), 16).isoformat())
        )

        assert response.status_code == 400
        assert "18" in response.json()["error"]

    async def test_register_missing_field(self, client):
        body = _registration()
        del body["password"]

        response = await client.post("/api/auth/register", json=body)

        assert response.status_code == 400
        assert "password" in response.json()["error"]

    async def test_register_malformed_json(self, client):
        response = await client.post(
            "/api/auth/register",
            content=b"{not json",
            headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400

    async def test_login_wrong_password(self, client, alice):
        response = await client.post(
            "/api/auth/login",
            json={"email": "alice@example.com", "password": "NotThePassword1"}
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid email or password"}
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_login_suspended_account(self, client, make_user):
        await make_user("banned", is_active=False)

        response = await client.post(
            "/api/auth/login",
            json={"email": "banned@example.com", "password": "SecurePassword123"}
        )

        assert response.status_code == 401

    async def test_refresh(self, client, alice):
        login = await client.post(
            "/api/auth/login",
            json={"email": "alice@example.com", "password": "SecurePassword123"}
        )

        response = await client.post(
            "/api/auth/refresh",
            json={"refresh_token": login.json()["refresh_token"]}
        )

        assert response.status_code == 200
        assert response.json()["access_token"]

    async def test_refresh_with_access_token(self, client, alice):
        login = await client.post(
            "/api/auth/login",
            json={"email": "alice@example.com", "password": "SecurePassword123"}
        )

        response = await client.post(
            "/api/auth/refresh",
            json={"refresh_token": login.json()["access_token"]}
        )

        assert response.status_code == 401

    async def test_protected_route_requires_token(self, client):
        response = await client.get("/users/profile")

        assert response.status_code == 401
        assert "error" in response.json()

    async def test_protected_route_rejects_garbage_token(self, client):
        response = await client.get("/users/profile", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    async def test_request_id_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "abc123"})

        assert response.status_code == 200
        assert response.headers["X-Request-ID"] == "abc123"
