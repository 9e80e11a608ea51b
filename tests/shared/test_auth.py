import asyncio

import pytest
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt
from shared.auth import (
    AuthUser,
    create_access_token,
    decode_access_token,
    get_current_user,
    hash_password,
    set_user_loader,
    verify_password,
)
from shared.config import get_settings
from shared.errors import UnauthorizedError


class TestPasswords:
    def test_hash_verifies(self):
        hashed = hash_password("secret123")
        assert hashed != "secret123"
        assert verify_password("secret123", hashed)
        assert not verify_password("secret124", hashed)

    def test_missing_hash(self):
        assert verify_password("secret123", None) is False


class TestTokens:
    def test_round_trip(self):
        token = create_access_token("user-001", "admin", name="Asha Rahman", email="asha@example.com")
        user = decode_access_token(token)
        assert user.id == "user-001"
        assert user.is_admin
        assert user.email == "asha@example.com"

    def test_garbage(self):
        with pytest.raises(UnauthorizedError, match="Not authorized, token failed"):
            decode_access_token("not-a-token")

    def test_wrong_secret(self):
        token = jwt.encode({"sub": "user-001", "role": "admin"}, "other-secret", algorithm=get_settings().JWT_ALGORITHM)
        with pytest.raises(UnauthorizedError):
            decode_access_token(token)

    def test_missing_subject(self):
        settings = get_settings()
        token = jwt.encode({"role": "admin"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
        with pytest.raises(UnauthorizedError):
            decode_access_token(token)


def _current_user(token):
    credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)
    return asyncio.run(get_current_user(credentials))


@pytest.fixture()
def accounts():
    """Live account records keyed by id, served through the user loader."""
    records = {}
    set_user_loader(records.get)
    yield records
    set_user_loader(None)


class TestCurrentUser:
    def test_claims_trusted_without_loader(self):
        user = _current_user(create_access_token("user-001", "admin"))
        assert user.is_admin

    def test_live_role_wins_over_claims(self, accounts):
        accounts["user-001"] = AuthUser(id="user-001", role="customer")
        user = _current_user(create_access_token("user-001", "admin"))
        assert user.role == "customer"
        assert not user.is_admin

    def test_inactive_account(self, accounts):
        accounts["user-001"] = AuthUser(id="user-001", is_active=False)
        with pytest.raises(UnauthorizedError, match="Account is deactivated"):
            _current_user(create_access_token("user-001", "customer"))

    def test_missing_account(self, accounts):
        with pytest.raises(UnauthorizedError, match="user not found"):
            _current_user(create_access_token("user-001", "customer"))

    def test_missing_token(self):
        with pytest.raises(UnauthorizedError, match="no token"):
            asyncio.run(get_current_user(None))
