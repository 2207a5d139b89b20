"""
Integration tests for Match API endpoints.
Tests discovery, likes, passes and the match list over HTTP.
"""
import pytest


@pytest.mark.asyncio
class TestMatchAPI:
    """Test cases for Match API endpoints."""

    async def test_discover(self, client, auth_headers, alice, bob):
        response = await client.get("/api/matches/discover", headers=auth_headers(alice))

        assert response.status_code == 200
        data = response.json()
        assert [u["id"] for u in data["users"]] == [bob.id]
        assert data["has_more"] is False
        card = data["users"][0]
        assert card["display_name"] == "Bob"
        assert card["age"] == 29
        assert 0 < card["distance_km"] < 10
        assert "email" not in card

    async def test_discover_invalid_limit(self, client, auth_headers, alice):
        response = await client.get("/api/matches/discover?limit=0", headers=auth_headers(alice))

        assert response.status_code == 400

    async def test_like_without_match(self, client, auth_headers, alice, bob):
        response = await client.post(
            "/api/matches/like",
            headers=auth_headers(alice),
            json={"target_user_id": bob.id}
        )

        assert response.status_code == 201
        assert response.json() == {"match_id": 0, "is_matched": False, "message": "Like sent"}

    async def test_mutual_like_creates_match(self, client, auth_headers, alice, bob, published):
        await client.post("/api/matches/like", headers=auth_headers(alice), json={"target_user_id": bob.id})

        response = await client.post(
            "/api/matches/like",
            headers=auth_headers(bob),
            json={"target_user_id": alice.id}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["is_matched"] is True
        assert data["match_id"] > 0
        assert len(published("match.created")) == 1

        matches = await client.get("/api/matches", headers=auth_headers(alice))
        assert [m["match_id"] for m in matches.json()["matches"]] == [data["match_id"]]

    async def test_duplicate_like(self, client, auth_headers, alice, bob):
        await client.post("/api/matches/like", headers=auth_headers(alice), json={"target_user_id": bob.id})

        response = await client.post(
            "/api/matches/like",
            headers=auth_headers(alice),
            json={"target_user_id": bob.id}
        )

        assert response.status_code == 409

    async def test_like_self(self, client, auth_headers, alice):
        response = await client.post(
            "/api/matches/like",
            headers=auth_headers(alice),
            json={"target_user_id": alice.id}
        )

        assert response.status_code == 400

    @pytest.mark.parametrize("target", ["abc", "7", 1.5, None])
    async def test_like_non_integer_target(self, client, auth_headers, alice, target):
        response = await client.post(
            "/api/matches/like",
            headers=auth_headers(alice),
            json={"target_user_id": target}
        )

        assert response.status_code == 400

    async def test_like_unknown_user(self, client, auth_headers, alice):
        response = await client.post(
            "/api/matches/like",
            headers=auth_headers(alice),
            json={"target_user_id": 987654}
        )

        assert response.status_code == 404

    async def test_pass_is_idempotent(self, client, auth_headers, alice, bob):
        for _ in range(2):
            response = await client.post(
                "/api/matches/pass",
                headers=auth_headers(alice),
                json={"target_user_id": bob.id}
            )
            assert response.status_code == 201

        discover = await client.get("/api/matches/discover", headers=auth_headers(alice))
        assert discover.json()["users"] == []

    async def test_like_requires_auth(self, client, bob):
        response = await client.post("/api/matches/like", json={"target_user_id": bob.id})

        assert response.status_code == 401
