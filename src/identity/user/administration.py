"""Admin account management: edit, soft delete and toggle status."""

import json

import structlog
from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from identity.domain import identity
from identity.user.registration import ensure_email_available
from identity.user.user import User

logger = structlog.get_logger(__name__)


@identity.command(part_of="User")
class UpdateUser:
    user_id: Identifier(required=True)
    changes: Text(required=True)  # JSON object of attribute -> new value
    updated_by: Identifier(required=True)


@identity.command(part_of="User")
class DeleteUser:
    user_id: Identifier(required=True)
    deleted_by: Identifier(required=True)


@identity.command(part_of="User")
class ToggleUserStatus:
    user_id: Identifier(required=True)
    toggled_by: Identifier(required=True)


@identity.command_handler(part_of=User)
class UserAdministrationHandler:
    @handle(UpdateUser)
    def update_user(self, command):
        changes = json.loads(command.changes)
        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)
        if changes.get("email"):
            ensure_email_available(changes["email"], exclude_user_id=user.id)

        user.admin_update(updated_by=command.updated_by, **changes)
        repo.add(user)
        logger.info("User updated", user_id=str(user.id), updated_by=str(command.updated_by), fields=sorted(changes))

    @handle(DeleteUser)
    def delete_user(self, command):
        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)
        user.deactivate(deactivated_by=command.deleted_by)
        repo.add(user)
        logger.info("User deleted", user_id=str(user.id), deleted_by=str(command.deleted_by))

    @handle(ToggleUserStatus)
    def toggle_status(self, command):
        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)
        user.toggle_status(toggled_by=command.toggled_by)
        repo.add(user)
        logger.info("User status toggled", user_id=str(user.id), is_active=user.is_active)
        return user.is_active
