"""
Tests for token and password helpers.
"""
from datetime import timedelta

import pytest

from app.core.errors import Unauthenticated
from app.core.security import (
    REFRESH_TOKEN,
    create_access_token,
    create_refresh_token,
    extract_token_from_header,
    hash_password,
    user_id_from_token,
    verify_password,
)


class TestTokens:
    """Tests for JWT helpers."""

    def test_access_token_round_trip(self):
        assert user_id_from_token(create_access_token(42)) == 42

    def test_refresh_token_requires_refresh_type(self):
        token = create_refresh_token(42)

        assert user_id_from_token(token, expected_type=REFRESH_TOKEN) == 42
        with pytest.raises(Unauthenticated, match="type"):
            user_id_from_token(token)

    def test_expired_token(self):
        token = create_access_token(42, expires_delta=timedelta(seconds=-1))

        with pytest.raises(Unauthenticated, match="expired"):
            user_id_from_token(token)

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_invalid_token(self, token):
        with pytest.raises(Unauthenticated):
            user_id_from_token(token)

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Token abc", "Bearer a b"])
    def test_bad_authorization_header(self, header):
        with pytest.raises(Unauthenticated):
            extract_token_from_header(header)

    def test_bearer_is_case_insensitive(self):
        assert extract_token_from_header("bearer abc") == "abc"


class TestPasswords:
    """Tests for bcrypt hashing."""

    def test_hash_and_verify(self):
        hashed = hash_password("SecurePassword123")

        assert hashed != "SecurePassword123"
        assert verify_password("SecurePassword123", hashed)
        assert not verify_password("securepassword123", hashed)
