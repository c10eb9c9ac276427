"""
Tests for password hashing, tokens and login.
"""
import pytest

from core.errors import AuthError
from core.security import (
    authenticate,
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)
from schemas import UserCreate


class TestPasswords:

    def test_hash_and_verify(self):
        hashed = hash_password("admin123")

        assert hashed != "admin123"
        assert verify_password("admin123", hashed) is True
        assert verify_password("wrong", hashed) is False

    def test_garbage_hash(self):
        assert verify_password("admin123", "plain-text") is False
        assert verify_password("admin123", None) is False


class TestTokens:

    def test_round_trip(self):
        token = create_access_token("admin", "admin")

        payload = decode_token(token)

        assert payload["sub"] == "admin"
        assert payload["role"] == "admin"

    def test_tampered(self):
        token = create_access_token("admin", "admin")

        with pytest.raises(AuthError):
            decode_token(token[:-2] + "xx")

    def test_expired(self):
        token = create_access_token("admin", "admin", expires_minutes=-5)

        with pytest.raises(AuthError, match="expired"):
            decode_token(token)


class TestAuthenticate:

    @pytest.mark.asyncio
    async def test_admin_profile_login_records_time(self, storage):
        await storage.upsert_admin_profile({
            "username": "admin", "email": "admin@example.com",
            "password_hash": hash_password("secret1"),
        })

        assert await authenticate(storage, "admin", "secret1") == ("admin", "admin")
        assert (await storage.get_admin_profile()).last_login_at is not None
        assert await authenticate(storage, "admin", "nope") is None

    @pytest.mark.asyncio
    async def test_users_table_fallback(self, storage):
        await storage.create_user(UserCreate(username="office", password_hash=hash_password("pw"), role="staff"))

        assert await authenticate(storage, "office", "pw") == ("office", "staff")
        assert await authenticate(storage, "ghost", "pw") is None
