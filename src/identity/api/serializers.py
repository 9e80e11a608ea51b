"""Response payloads for the User aggregate. The password hash never leaves the domain."""

from identity.user.user import User
from shared.jsontext import loads_json


def user_data(user: User) -> dict:
    address = user.address
    return {
        "id": str(user.id),
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "phone": user.phone,
        "address": (
            {
                "street": address.street,
                "city": address.city,
                "state": address.state,
                "zip_code": address.zip_code,
            }
            if address
            else None
        ),
        "preferences": loads_json(user.preferences, default={}),
        "is_active": user.is_active,
        "last_login": user.last_login,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


def user_summary(user: User) -> dict:
    return {
        "id": str(user.id),
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "created_at": user.created_at,
        "last_login": user.last_login,
    }
