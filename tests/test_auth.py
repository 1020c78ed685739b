"""
Tests for credentials, password hashing and the admin policy
"""
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from teamchat.auth.jwt_handler import (
    JWTValidationError,
    TokenExpiredError,
    create_access_token,
    decode_jwt_token,
    extract_user_from_token,
)
from teamchat.auth.passwords import hash_password, password_too_long, verify_password
from teamchat.config import settings
from teamchat.policy import is_admin


def _sign(payload: dict, secret: str = None) -> str:
    return jwt.encode(payload, secret or settings.JWT_SECRET_KEY, algorithm="HS256")


class TestCredentials:

    def test_token_carries_identity_claims(self):
        token = create_access_token(7, "alice", "#ef4444")

        user = extract_user_from_token(token)

        assert user.id == 7
        assert user.username == "alice"
        assert user.color == "#ef4444"
        assert not user.is_token_expired

    def test_token_expires_after_24_hours(self):
        token = create_access_token(1, "alice", "#ef4444")

        payload = decode_jwt_token(token)

        assert payload["exp"] - payload["iat"] == 24 * 3600

    def test_expired_token_is_rejected(self):
        past = datetime.now(timezone.utc) - timedelta(hours=25)
        token = _sign({
            "sub": "1",
            "username": "alice",
            "iat": int(past.timestamp()),
            "exp": int((past + timedelta(hours=24)).timestamp()),
        })

        with pytest.raises(TokenExpiredError) as excinfo:
            extract_user_from_token(token)
        assert excinfo.value.status_code == 403

    def test_foreign_signature_is_rejected(self):
        token = _sign({"sub": "1", "username": "alice"}, secret="someone-else")

        with pytest.raises(JWTValidationError):
            decode_jwt_token(token)

    def test_garbage_and_missing_tokens_are_rejected(self):
        with pytest.raises(JWTValidationError):
            decode_jwt_token("not-a-jwt")
        with pytest.raises(JWTValidationError):
            decode_jwt_token("")

    def test_token_without_username_is_rejected(self):
        token = _sign({"sub": "1", "exp": int(datetime.now(timezone.utc).timestamp()) + 60})

        with pytest.raises(JWTValidationError):
            extract_user_from_token(token)


class TestPasswords:

    def test_hash_round_trip(self):
        hashed = hash_password("hunter2")

        assert hashed != "hunter2"
        assert verify_password("hunter2", hashed)
        assert not verify_password("hunter3", hashed)

    def test_overlong_password_never_matches(self):
        hashed = hash_password("x" * 72)

        assert verify_password("x" * 72, hashed)
        assert not verify_password("x" * 73, hashed)
        assert password_too_long("\u00e9" * 37)
        assert not password_too_long("\u00e9" * 36)

    def test_non_bcrypt_hash_never_matches(self):
        assert not verify_password("hunter2", "plain-text")
        assert not verify_password("", hash_password("x"))


class TestAdminPolicy:

    @pytest.mark.parametrize("username", ["admin", "admin_x", "SysAdmin", "ADMINISTRATOR"])
    def test_admin_substring_grants_admin(self, username):
        assert is_admin(username)

    @pytest.mark.parametrize("username", ["alice", "adm_in", "", None])
    def test_everyone_else_is_not_admin(self, username):
        assert not is_admin(username)
