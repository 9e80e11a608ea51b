"""Login: verify credentials and stamp the last login time."""

import structlog
from protean import handle
from protean.fields import String
from protean.utils.globals import current_domain

from identity.domain import identity
from identity.user.user import User
from shared.auth import verify_password
from shared.errors import UnauthorizedError

logger = structlog.get_logger(__name__)


@identity.command(part_of="User")
class LoginUser:
    email: String(required=True, max_length=254)
    password: String(required=True, max_length=128)


@identity.command_handler(part_of=User)
class AuthenticationHandler:
    @handle(LoginUser)
    def login(self, command):
        repo = current_domain.repository_for(User)
        user = repo.find_by_email(command.email)
        if user is None:
            raise UnauthorizedError("Invalid credentials")
        if not user.is_active:
            raise UnauthorizedError("Account is deactivated")
        if not verify_password(command.password, user.password_hash):
            logger.warning("Login rejected", user_id=str(user.id))
            raise UnauthorizedError("Invalid credentials")

        user.record_login()
        repo.add(user)
        logger.info("User logged in", user_id=str(user.id))
        return str(user.id)
