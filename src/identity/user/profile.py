"""Self-service profile and password management."""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from identity.domain import identity
from identity.user.registration import ensure_password_strength
from identity.user.user import User
from shared.auth import hash_password, verify_password

logger = structlog.get_logger(__name__)

_PROFILE_FIELDS = ("name", "phone", "address", "preferences")


@identity.command(part_of="User")
class UpdateProfile:
    user_id: Identifier(required=True)
    changes: Text(required=True)  # JSON object with any of name, phone, address, preferences


@identity.command(part_of="User")
class ChangePassword:
    user_id: Identifier(required=True)
    current_password: String(required=True, max_length=128)
    new_password: String(required=True, max_length=128)


@identity.command_handler(part_of=User)
class ManageProfileHandler:
    @handle(UpdateProfile)
    def update_profile(self, command):
        changes = json.loads(command.changes)
        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)
        user.update_profile(**{k: v for k, v in changes.items() if k in _PROFILE_FIELDS})
        repo.add(user)
        logger.info("Profile updated", user_id=str(user.id), fields=sorted(changes))

    @handle(ChangePassword)
    def change_password(self, command):
        ensure_password_strength(command.new_password, field="new_password")

        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)
        if not verify_password(command.current_password, user.password_hash):
            raise ValidationError({"current_password": ["Current password is incorrect"]})

        user.change_password(hash_password(command.new_password))
        repo.add(user)
        logger.info("Password changed", user_id=str(user.id))
