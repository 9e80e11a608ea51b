"""Repository for the User aggregate."""

from identity.domain import identity
from identity.user.user import User, normalize_email
from shared.querying import fetch_all


@identity.repository(part_of=User)
class UserRepository:
    def find_by_email(self, email: str) -> User | None:
        return self._dao.query.filter(email=normalize_email(email)).all().first

    def find_all(self) -> list[User]:
        return fetch_all(self._dao)
