"""Domain events for the User aggregate."""

from protean.fields import DateTime, Identifier, String

from identity.domain import identity


@identity.event(part_of="User")
class UserRegistered:
    """A new account was created, by self-registration or by an admin."""

    __version__ = 1

    user_id: Identifier(required=True)
    name: String(required=True)
    email: String(required=True)
    role: String(required=True)
    registered_at: DateTime(required=True)


@identity.event(part_of="User")
class UserLoggedIn:
    __version__ = 1

    user_id: Identifier(required=True)
    logged_in_at: DateTime(required=True)


@identity.event(part_of="User")
class ProfileUpdated:
    """A user changed their own name, phone, address or preferences."""

    __version__ = 1

    user_id: Identifier(required=True)
    name: String(required=True)
    phone: String()


@identity.event(part_of="User")
class PasswordChanged:
    __version__ = 1

    user_id: Identifier(required=True)
    changed_at: DateTime(required=True)


@identity.event(part_of="User")
class UserUpdated:
    """An admin changed account attributes of a user."""

    __version__ = 1

    user_id: Identifier(required=True)
    changed_fields: String(required=True)  # JSON array of field names
    updated_by: Identifier()


@identity.event(part_of="User")
class UserActivated:
    __version__ = 1

    user_id: Identifier(required=True)
    activated_by: Identifier()


@identity.event(part_of="User")
class UserDeactivated:
    __version__ = 1

    user_id: Identifier(required=True)
    deactivated_by: Identifier()
