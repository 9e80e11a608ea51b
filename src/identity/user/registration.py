"""User registration, used by self sign-up and by admins creating accounts."""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from identity.domain import identity
from identity.user.user import User
from shared.auth import hash_password
from shared.errors import ConflictError

logger = structlog.get_logger(__name__)

MIN_PASSWORD_LENGTH = 6


def ensure_password_strength(password: str, field: str = "password"):
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError({field: [f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"]})


def ensure_email_available(email: str, exclude_user_id=None):
    existing = current_domain.repository_for(User).find_by_email(email)
    if existing is not None and str(existing.id) != str(exclude_user_id):
        raise ConflictError("User already exists with this email")


@identity.command(part_of="User")
class RegisterUser:
    name: String(required=True, max_length=50)
    email: String(required=True, max_length=254)
    password: String(required=True, max_length=128)
    phone: String(max_length=16)
    role: String(max_length=20)
    address: Text()  # JSON: street, city, state, zip_code
    created_by: Identifier()


@identity.command_handler(part_of=User)
class RegisterUserHandler:
    @handle(RegisterUser)
    def register_user(self, command):
        ensure_password_strength(command.password)
        ensure_email_available(command.email)

        user = User.register(
            name=command.name,
            email=command.email,
            password_hash=hash_password(command.password),
            phone=command.phone,
            role=command.role,
            address=json.loads(command.address) if command.address else None,
        )
        current_domain.repository_for(User).add(user)
        logger.info(
            "User registered",
            user_id=str(user.id),
            role=user.role,
            created_by=str(command.created_by) if command.created_by else None,
        )
        return str(user.id)
