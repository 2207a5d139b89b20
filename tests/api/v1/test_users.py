"""
Integration tests for User API endpoints.
Tests profile, photo, interest and notification routes.
"""
import pytest

from app.config import settings


@pytest.mark.asyncio
class TestProfileAPI:
    """Test cases for the profile endpoints."""

    async def test_get_profile(self, client, auth_headers, alice):
        response = await client.get("/users/profile", headers=auth_headers(alice))

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == alice.id
        assert data["email"] == "alice@example.com"
        assert data["age"] == 27
        assert data["location"] == {"latitude": 25.0330, "longitude": 121.5654}
        assert data["photos"] == []

    async def test_update_profile(self, client, auth_headers, alice, interests):
        response = await client.put(
            "/users/profile",
            headers=auth_headers(alice),
            json={
                "bio": "Weekend hiker",
                "max_distance_km": 25,
                "interests": [interests[0].id, interests[2].id],
            }
        )

        assert response.status_code == 200
        data = response.json()
        assert data["bio"] == "Weekend hiker"
        assert data["max_distance_km"] == 25
        assert {i["name"] for i in data["interests"]} == {"Hiking", "Jazz"}
        assert data["display_name"] == "Alice"

    async def test_empty_update_is_noop(self, client, auth_headers, alice):
        response = await client.put("/users/profile", headers=auth_headers(alice), json={})

        assert response.status_code == 200
        assert response.json()["display_name"] == "Alice"

    async def test_clear_location(self, client, auth_headers, alice):
        response = await client.put("/users/profile", headers=auth_headers(alice), json={"location": None})

        assert response.status_code == 200
        assert response.json()["location"] is None

    @pytest.mark.parametrize(
        "body",
        [
            {"age_range_min": 40, "age_range_max": 30},
            {"max_distance_km": 500},
            {"interests": [424242]},
            {"show_age": None},
            {"max_distance_km": "far"},
        ],
    )
    async def test_invalid_update(self, client, auth_headers, alice, body):
        response = await client.put("/users/profile", headers=auth_headers(alice), json=body)

        assert response.status_code == 400
        assert "error" in response.json()

    async def test_deleted_user_token(self, client, auth_headers, db_session, make_user):
        ghost = await make_user("ghost")
        headers = auth_headers(ghost)
        await db_session.delete(ghost)
        await db_session.commit()

        response = await client.get("/users/profile", headers=headers)

        assert response.status_code == 404


@pytest.mark.asyncio
class TestPhotoAPI:
    """Test cases for the photo endpoints."""

    async def test_upload_photo(self, client, auth_headers, alice, png_bytes):
        response = await client.post(
            "/users/photos",
            headers=auth_headers(alice),
            files={"file": ("me.png", png_bytes, "application/octet-stream")},
            data={"caption": "At the beach"}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["is_primary"] is True
        assert data["mime_type"] == "image/png"
        assert data["caption"] == "At the beach"

        profile = await client.get("/users/profile", headers=auth_headers(alice))
        assert [p["id"] for p in profile.json()["photos"]] == [data["id"]]

    async def test_upload_not_an_image(self, client, auth_headers, alice):
        response = await client.post(
            "/users/photos",
            headers=auth_headers(alice),
            files={"file": ("me.png", b"plain text pretending", "image/png")}
        )

        assert response.status_code == 400

    async def test_upload_too_large(self, client, auth_headers, alice, png_bytes, monkeypatch):
        monkeypatch.setattr(settings, "max_photo_bytes", len(png_bytes) - 1)

        response = await client.post(
            "/users/photos",
            headers=auth_headers(alice),
            files={"file": ("me.png", png_bytes, "image/png")}
        )

        assert response.status_code == 413

    async def test_delete_photo(self, client, auth_headers, alice, png_bytes):
        upload = await client.post(
            "/users/photos",
            headers=auth_headers(alice),
            files={"file": ("me.png", png_bytes, "image/png")}
        )
        photo_id = upload.json()["id"]

        response = await client.delete(f"/users/photos/{photo_id}", headers=auth_headers(alice))
        assert response.status_code == 204

        missing = await client.delete(f"/users/photos/{photo_id}", headers=auth_headers(alice))
        assert missing.status_code == 404


@pytest.mark.asyncio
class TestCatalogueAPI:
    """Test cases for the interest catalogue and notifications."""

    async def test_list_interests(self, client, auth_headers, alice, interests):
        response = await client.get("/users/interests", headers=auth_headers(alice))

        assert response.status_code == 200
        names = {i["name"] for i in response.json()["interests"]}
        assert names == {"Hiking", "Coffee", "Jazz", "Movies"}

    async def test_notifications_empty(self, client, auth_headers, alice):
        response = await client.get("/users/notifications", headers=auth_headers(alice))

        assert response.status_code == 200
        assert response.json() == {"notifications": []}
