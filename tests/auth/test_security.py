"""Tests for auth token functions and token-based authentication."""

from datetime import timedelta
from uuid import uuid4

import pytest
from jose import JWTError, jwt

from src.auth.dependencies import authenticate_websocket, user_from_token
from src.auth.permissions import UserRole
from src.auth.security import (
    create_access_token,
    decode_access_token,
    get_token_expiration,
)
from src.config.settings import get_settings


def _claims(role: UserRole = UserRole.STUDENT) -> dict[str, str]:
    return {"sub": str(uuid4()), "email": "test@example.com", "role": role.value}


class TestAccessToken:
    """Tests for access token creation and decoding."""

    def test_decode_access_token(self) -> None:
        """Should decode token and return payload."""
        data = _claims()
        token = create_access_token(data)
        payload = decode_access_token(token)

        assert payload["sub"] == data["sub"]
        assert payload["email"] == data["email"]
        assert payload["role"] == UserRole.STUDENT.value
        assert payload["type"] == "access"
        assert "exp" in payload
        assert "iat" in payload

    def test_decode_access_token_expired(self) -> None:
        """Should raise JWTError for expired token."""
        token = create_access_token(_claims(), expires_delta=timedelta(seconds=-1))

        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_decode_access_token_invalid(self) -> None:
        """Should raise JWTError for invalid token."""
        with pytest.raises(JWTError):
            decode_access_token("invalid.token.here")

    def test_decode_access_token_wrong_type(self) -> None:
        """Should raise JWTError if token type is not 'access'."""
        settings = get_settings()
        token = jwt.encode(
            {**_claims(), "type": "refresh"},
            settings.auth_secret_key,
            algorithm=settings.auth_algorithm,
        )

        with pytest.raises(JWTError, match="expected 'access'"):
            decode_access_token(token)

    def test_decode_access_token_missing_subject(self) -> None:
        """Tokens without a subject are rejected."""
        token = create_access_token({"email": "test@example.com"})

        with pytest.raises(JWTError, match="sub"):
            decode_access_token(token)

    def test_get_token_expiration(self) -> None:
        """Expiration is readable without verification."""
        token = create_access_token(_claims(), expires_delta=timedelta(minutes=5))
        assert get_token_expiration(token) is not None
        assert get_token_expiration("garbage") is None


class TestUserFromToken:
    """Tests for building the authenticated user from a token."""

    def test_builds_user(self) -> None:
        """Claims map onto the user."""
        data = _claims(UserRole.ADMIN)
        user = user_from_token(create_access_token(data))

        assert str(user.id) == data["sub"]
        assert user.role == UserRole.ADMIN
        assert user.is_admin is True
        assert user.issued_at is not None

    def test_defaults_to_student(self) -> None:
        """A token without role claim is a student."""
        user = user_from_token(create_access_token({"sub": str(uuid4())}))
        assert user.role == UserRole.STUDENT

    def test_malformed_subject(self) -> None:
        """A subject that is not a UUID is an invalid token."""
        with pytest.raises(JWTError):
            user_from_token(create_access_token({"sub": "not-a-uuid"}))

    def test_unknown_role(self) -> None:
        """An unknown role is an invalid token."""
        with pytest.raises(JWTError):
            user_from_token(create_access_token({"sub": str(uuid4()), "role": "root"}))


class TestAuthenticateWebsocket:
    """Tests for WebSocket token authentication."""

    def test_valid_token(self) -> None:
        """A valid token yields the user."""
        data = _claims()
        user = authenticate_websocket(create_access_token(data))
        assert user is not None
        assert str(user.id) == data["sub"]

    @pytest.mark.parametrize("token", [None, "", "invalid.token.here"])
    def test_anonymous(self, token: str | None) -> None:
        """Missing or invalid tokens yield an anonymous view."""
        assert authenticate_websocket(token) is None
