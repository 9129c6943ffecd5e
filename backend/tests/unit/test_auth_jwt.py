"""Unit tests for JWT token creation and validation"""

from uuid import uuid4

import jwt
import pytest

from docvault.auth.jwt import create_access_token, decode_token
from docvault.auth.roles import UserRole, get_allowed_roles, has_permission


class TestTokens:

    def test_round_trip_claims(self):
        user_id = uuid4()
        token = create_access_token(user_id=user_id, role="Manager")

        payload = decode_token(token)

        assert payload["sub"] == str(user_id)
        assert payload["role"] == "Manager"
        assert payload["exp"] > payload["iat"]

    def test_expired_token_rejected(self):
        token = create_access_token(user_id=uuid4(), role="User", expiry_minutes=-1)

        with pytest.raises(jwt.ExpiredSignatureError):
            decode_token(token)

    def test_tampered_token_rejected(self):
        token = create_access_token(user_id=uuid4(), role="User")
        forged = jwt.encode({"sub": str(uuid4()), "role": "Admin"}, "wrong-secret", algorithm="HS256")

        assert decode_token(token)
        with pytest.raises(jwt.InvalidTokenError):
            decode_token(forged)

    def test_garbage_rejected(self):
        with pytest.raises(jwt.InvalidTokenError):
            decode_token("not-a-jwt")


class TestRoleHierarchy:

    def test_admin_satisfies_everything(self):
        for role in UserRole:
            assert has_permission(UserRole.ADMIN, role) is True

    def test_manager(self):
        assert has_permission(UserRole.MANAGER, UserRole.MANAGER) is True
        assert has_permission(UserRole.MANAGER, UserRole.USER) is True
        assert has_permission(UserRole.MANAGER, UserRole.ADMIN) is False

    def test_user(self):
        assert has_permission(UserRole.USER, UserRole.USER) is True
        assert has_permission(UserRole.USER, UserRole.MANAGER) is False

    def test_allowed_roles_for_upload(self):
        assert get_allowed_roles(UserRole.MANAGER) == {UserRole.ADMIN, UserRole.MANAGER}
