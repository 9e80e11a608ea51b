"""User aggregate root with the Address value object."""

import json
import re
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, String, Text, ValueObject

from identity.domain import identity
from shared.errors import ForbiddenError

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{0,15}$")

# Attributes an admin may change on another user's account
_ADMIN_EDITABLE = {"name", "email", "role", "phone", "address", "is_active"}

# Sentinel for distinguishing "not provided" from None in partial updates
_UNSET = object()


class Role(Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


def normalize_email(email: str) -> str:
    return email.strip().lower()


@identity.value_object(part_of="User")
class Address:
    """Postal address kept on the user's profile."""

    street: String(max_length=255)
    city: String(max_length=100)
    state: String(max_length=100)
    zip_code: String(max_length=20)


def _address_from(value):
    if value is None or isinstance(value, Address):
        return value
    return Address(**{k: v for k, v in value.items() if k in ("street", "city", "state", "zip_code")})


@identity.aggregate
class User:
    """A person who can sign in to the storefront, either a customer or an admin.

    The password is stored only as a hash. Accounts are never removed; deleting
    a user deactivates it so that orders and reviews keep a valid reference.
    """

    name: String(required=True, min_length=2, max_length=50)
    email: String(required=True, max_length=254, unique=True)
    password_hash: String(required=True, max_length=255)
    role: String(choices=Role, default=Role.CUSTOMER.value)
    phone: String(max_length=16)
    address: ValueObject(Address)
    preferences: Text()  # JSON object
    is_active: Boolean(default=True)
    last_login: DateTime()
    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def email_must_be_well_formed(self):
        if self.email and not _EMAIL_PATTERN.match(self.email):
            raise ValidationError({"email": ["Please provide a valid email"]})

    @invariant.post
    def phone_must_be_well_formed(self):
        if self.phone and not _PHONE_PATTERN.match(self.phone):
            raise ValidationError({"phone": ["Please provide a valid phone number"]})

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    @classmethod
    def register(cls, name, email, password_hash, phone=None, role=Role.CUSTOMER.value, address=None):
        from identity.user.events import UserRegistered

        now = datetime.now(UTC)
        user = cls(
            name=name.strip(),
            email=normalize_email(email),
            password_hash=password_hash,
            role=role or Role.CUSTOMER.value,
            phone=phone,
            address=_address_from(address),
            created_at=now,
            updated_at=now,
        )
        user.raise_(
            UserRegistered(
                user_id=user.id,
                name=user.name,
                email=user.email,
                role=user.role,
                registered_at=now,
            )
        )
        return user

    def record_login(self):
        from identity.user.events import UserLoggedIn

        self.last_login = datetime.now(UTC)
        self.raise_(UserLoggedIn(user_id=self.id, logged_in_at=self.last_login))

    def update_profile(self, name=_UNSET, phone=_UNSET, address=_UNSET, preferences=_UNSET):
        from identity.user.events import ProfileUpdated

        with atomic_change(self):
            if name is not _UNSET and name is not None:
                self.name = name.strip()
            if phone is not _UNSET:
                self.phone = phone or None
            if address is not _UNSET:
                self.address = _address_from(address)
            if preferences is not _UNSET:
                self.preferences = json.dumps(preferences) if preferences is not None else None
            self.updated_at = datetime.now(UTC)

        self.raise_(ProfileUpdated(user_id=self.id, name=self.name, phone=self.phone))

    def change_password(self, new_password_hash):
        from identity.user.events import PasswordChanged

        self.password_hash = new_password_hash
        self.updated_at = datetime.now(UTC)
        self.raise_(PasswordChanged(user_id=self.id, changed_at=self.updated_at))

    def admin_update(self, updated_by=None, **changes):
        """Apply an admin's changes. Admins cannot demote or deactivate themselves."""
        from identity.user.events import UserUpdated

        unknown = set(changes) - _ADMIN_EDITABLE
        if unknown:
            raise ValidationError({field: ["Field cannot be updated"] for field in sorted(unknown)})

        acting_on_self = updated_by is not None and str(updated_by) == str(self.id)
        if acting_on_self and changes.get("is_active") is False:
            raise ForbiddenError("You cannot deactivate your own account")
        if acting_on_self and "role" in changes and changes["role"] != self.role:
            raise ForbiddenError("You cannot change your own role")
        if not changes:
            return

        with atomic_change(self):
            for field_name, value in changes.items():
                if field_name == "email":
                    value = normalize_email(value)
                elif field_name == "address":
                    value = _address_from(value)
                setattr(self, field_name, value)
            self.updated_at = datetime.now(UTC)

        self.raise_(
            UserUpdated(
                user_id=self.id,
                changed_fields=json.dumps(sorted(changes)),
                updated_by=updated_by,
            )
        )

    def deactivate(self, deactivated_by=None):
        from identity.user.events import UserDeactivated

        if deactivated_by is not None and str(deactivated_by) == str(self.id):
            raise ForbiddenError("You cannot delete your own account")

        self.is_active = False
        self.updated_at = datetime.now(UTC)
        self.raise_(UserDeactivated(user_id=self.id, deactivated_by=deactivated_by))

    def toggle_status(self, toggled_by=None):
        from identity.user.events import UserActivated, UserDeactivated

        if toggled_by is not None and str(toggled_by) == str(self.id):
            raise ForbiddenError("You cannot change your own status")

        self.is_active = not self.is_active
        self.updated_at = datetime.now(UTC)
        if self.is_active:
            self.raise_(UserActivated(user_id=self.id, activated_by=toggled_by))
        else:
            self.raise_(UserDeactivated(user_id=self.id, deactivated_by=toggled_by))
