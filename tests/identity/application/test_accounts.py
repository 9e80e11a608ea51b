"""Application tests for registration, login and self-service profile changes."""

import json

import pytest
from identity.user.authentication import LoginUser
from identity.user.profile import ChangePassword, UpdateProfile
from identity.user.registration import RegisterUser
from identity.user.user import User
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain
from shared.auth import verify_password
from shared.errors import ConflictError, UnauthorizedError


def _register(email="asha@example.com", password="secret123", **extra):
    command = RegisterUser(name="Asha Rahman", email=email, password=password, **extra)
    return current_domain.process(command, asynchronous=False)


def _user(user_id):
    return current_domain.repository_for(User).get(user_id)


class TestRegisterUser:
    def test_persists_hashed_password(self):
        user = _user(_register())
        assert user.email == "asha@example.com"
        assert user.password_hash != "secret123"
        assert verify_password("secret123", user.password_hash)

    def test_address_and_role(self):
        user_id = _register(role="admin", address=json.dumps({"street": "12 Lake Road", "city": "Dhaka"}))
        user = _user(user_id)
        assert user.role == "admin"
        assert user.address.city == "Dhaka"

    def test_short_password(self):
        with pytest.raises(ValidationError) as exc:
            _register(password="12345")
        assert exc.value.messages["password"] == ["Password must be at least 6 characters long"]

    def test_duplicate_email_ignores_case(self):
        _register()
        with pytest.raises(ConflictError, match="User already exists with this email"):
            _register(email="ASHA@example.com")

    def test_find_by_email(self):
        user_id = _register()
        found = current_domain.repository_for(User).find_by_email(" Asha@Example.com")
        assert str(found.id) == user_id


class TestLoginUser:
    def test_success_stamps_last_login(self):
        user_id = _register()
        assert current_domain.process(LoginUser(email="asha@example.com", password="secret123"), asynchronous=False) == user_id
        assert _user(user_id).last_login is not None

    def test_wrong_password(self):
        _register()
        with pytest.raises(UnauthorizedError, match="Invalid credentials"):
            current_domain.process(LoginUser(email="asha@example.com", password="wrong-pass"), asynchronous=False)

    def test_unknown_email(self):
        with pytest.raises(UnauthorizedError, match="Invalid credentials"):
            current_domain.process(LoginUser(email="nobody@example.com", password="secret123"), asynchronous=False)

    def test_deactivated_account(self):
        user_id = _register()
        repo = current_domain.repository_for(User)
        user = repo.get(user_id)
        user.deactivate(deactivated_by="admin-1")
        repo.add(user)

        with pytest.raises(UnauthorizedError, match="Account is deactivated"):
            current_domain.process(LoginUser(email="asha@example.com", password="secret123"), asynchronous=False)


class TestProfile:
    def test_update_profile(self):
        user_id = _register()
        changes = {"name": "Asha R.", "phone": "+8801711000000", "address": {"city": "Sylhet"}}
        current_domain.process(UpdateProfile(user_id=user_id, changes=json.dumps(changes)), asynchronous=False)

        user = _user(user_id)
        assert user.name == "Asha R."
        assert user.phone == "+8801711000000"
        assert user.address.city == "Sylhet"

    def test_email_is_not_a_profile_field(self):
        user_id = _register()
        changes = {"email": "other@example.com", "name": "Asha R."}
        current_domain.process(UpdateProfile(user_id=user_id, changes=json.dumps(changes)), asynchronous=False)
        assert _user(user_id).email == "asha@example.com"

    def test_change_password(self):
        user_id = _register()
        current_domain.process(
            ChangePassword(user_id=user_id, current_password="secret123", new_password="brand-new"),
            asynchronous=False,
        )
        assert verify_password("brand-new", _user(user_id).password_hash)

    def test_wrong_current_password(self):
        user_id = _register()
        with pytest.raises(ValidationError) as exc:
            current_domain.process(
                ChangePassword(user_id=user_id, current_password="nope-nope", new_password="brand-new"),
                asynchronous=False,
            )
        assert exc.value.messages["current_password"] == ["Current password is incorrect"]

    def test_new_password_too_short(self):
        user_id = _register()
        with pytest.raises(ValidationError) as exc:
            current_domain.process(
                ChangePassword(user_id=user_id, current_password="secret123", new_password="abc"),
                asynchronous=False,
            )
        assert "new_password" in exc.value.messages
