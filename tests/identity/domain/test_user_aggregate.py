"""Tests for the User aggregate: registration, profile changes and admin guards."""

import json

import pytest
from identity.user.events import (
    PasswordChanged,
    ProfileUpdated,
    UserActivated,
    UserDeactivated,
    UserLoggedIn,
    UserRegistered,
    UserUpdated,
)
from identity.user.user import Address, Role, User
from protean.exceptions import ValidationError
from shared.errors import ForbiddenError


def _register(**overrides):
    kwargs = {
        "name": "Asha Rahman",
        "email": "asha@example.com",
        "password_hash": "hashed-secret",
    }
    kwargs.update(overrides)
    return User.register(**kwargs)


class TestRegister:
    def test_defaults(self):
        user = _register()
        assert user.role == Role.CUSTOMER.value
        assert user.is_active is True
        assert user.is_admin is False
        assert user.created_at is not None
        assert user.last_login is None

    def test_email_is_normalized(self):
        assert _register(email="  Asha@Example.COM ").email == "asha@example.com"

    def test_name_is_trimmed(self):
        assert _register(name="  Asha Rahman  ").name == "Asha Rahman"

    def test_admin_role(self):
        assert _register(role="admin").is_admin is True

    def test_address_from_dict(self):
        user = _register(address={"street": "12 Lake Road", "city": "Dhaka", "country": "BD"})
        assert user.address.street == "12 Lake Road"
        assert user.address.city == "Dhaka"

    def test_raises_registered_event(self):
        user = _register()
        assert len(user._events) == 1
        event = user._events[0]
        assert isinstance(event, UserRegistered)
        assert event.email == "asha@example.com"

    @pytest.mark.parametrize("email", ["not-an-email", "a@b", "two words@example.com"])
    def test_malformed_email(self, email):
        with pytest.raises(ValidationError):
            _register(email=email)

    def test_malformed_phone(self):
        with pytest.raises(ValidationError):
            _register(phone="012-345")

    def test_short_name(self):
        with pytest.raises(ValidationError):
            _register(name="A")

    def test_unknown_role(self):
        with pytest.raises(ValidationError):
            _register(role="superuser")


class TestSelfService:
    def test_record_login(self):
        user = _register()
        user._events.clear()
        user.record_login()
        assert user.last_login is not None
        assert isinstance(user._events[0], UserLoggedIn)

    def test_update_profile_partial(self):
        user = _register(phone="+8801711000000")
        user.update_profile(name="Asha R.")
        assert user.name == "Asha R."
        assert user.phone == "+8801711000000"
        assert isinstance(user._events[-1], ProfileUpdated)

    def test_update_profile_clears_phone(self):
        user = _register(phone="+8801711000000")
        user.update_profile(phone="")
        assert user.phone is None

    def test_update_profile_address_and_preferences(self):
        user = _register()
        user.update_profile(address=Address(city="Sylhet"), preferences={"milk": "oat"})
        assert user.address.city == "Sylhet"
        assert json.loads(user.preferences) == {"milk": "oat"}

    def test_change_password(self):
        user = _register()
        user.change_password("new-hash")
        assert user.password_hash == "new-hash"
        assert isinstance(user._events[-1], PasswordChanged)


class TestAdminUpdate:
    def test_updates_fields(self):
        user = _register()
        user.admin_update(updated_by="admin-1", role="admin", email="NEW@example.com")
        assert user.role == "admin"
        assert user.email == "new@example.com"
        event = user._events[-1]
        assert isinstance(event, UserUpdated)
        assert json.loads(event.changed_fields) == ["email", "role"]

    def test_rejects_unknown_fields(self):
        user = _register()
        with pytest.raises(ValidationError):
            user.admin_update(updated_by="admin-1", password_hash="x")

    def test_cannot_deactivate_self(self):
        user = _register(role="admin")
        with pytest.raises(ForbiddenError, match="You cannot deactivate your own account"):
            user.admin_update(updated_by=user.id, is_active=False)

    def test_cannot_change_own_role(self):
        user = _register(role="admin")
        with pytest.raises(ForbiddenError, match="You cannot change your own role"):
            user.admin_update(updated_by=user.id, role="customer")

    def test_own_name_can_change(self):
        user = _register(role="admin")
        user.admin_update(updated_by=user.id, name="Head Admin", role="admin")
        assert user.name == "Head Admin"

    def test_no_changes_raises_no_event(self):
        user = _register()
        user._events.clear()
        user.admin_update(updated_by="admin-1")
        assert user._events == []


class TestStatus:
    def test_deactivate(self):
        user = _register()
        user.deactivate(deactivated_by="admin-1")
        assert user.is_active is False
        assert isinstance(user._events[-1], UserDeactivated)

    def test_cannot_delete_self(self):
        user = _register(role="admin")
        with pytest.raises(ForbiddenError, match="You cannot delete your own account"):
            user.deactivate(deactivated_by=user.id)

    def test_toggle_twice(self):
        user = _register()
        user.toggle_status(toggled_by="admin-1")
        assert user.is_active is False
        user.toggle_status(toggled_by="admin-1")
        assert user.is_active is True
        assert isinstance(user._events[-1], UserActivated)

    def test_cannot_toggle_self(self):
        user = _register(role="admin")
        with pytest.raises(ForbiddenError, match="You cannot change your own status"):
            user.toggle_status(toggled_by=user.id)
