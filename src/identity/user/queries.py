"""Read-side helpers for the admin user screens."""

from dataclasses import dataclass
from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from identity.domain import identity
from identity.user.user import Role, User
from shared.auth import AuthUser
from shared.errors import NotFoundError
from shared.querying import paginate

_EPOCH = datetime.min.replace(tzinfo=UTC)


@dataclass
class UserFilters:
    role: str | None = None
    is_active: bool | None = None
    search: str | None = None
    page: int = 1
    limit: int = 10


def _created(user: User) -> datetime:
    created = user.created_at
    if created is None:
        return _EPOCH
    return created if created.tzinfo else created.replace(tzinfo=UTC)


def _matches(user: User, filters: UserFilters) -> bool:
    if filters.role and user.role != filters.role:
        return False
    if filters.is_active is not None and user.is_active != filters.is_active:
        return False
    if filters.search:
        needle = filters.search.lower()
        if needle not in (user.name or "").lower() and needle not in (user.email or "").lower():
            return False
    return True


def list_users(filters: UserFilters) -> tuple[list[User], dict]:
    """Users matching ``filters``, newest first, one page at a time."""
    users = [u for u in current_domain.repository_for(User).find_all() if _matches(u, filters)]
    users.sort(key=_created, reverse=True)
    return paginate(users, filters.page, filters.limit)


def user_stats() -> dict:
    users = current_domain.repository_for(User).find_all()
    active = sum(1 for u in users if u.is_active)
    return {
        "total_users": len(users),
        "active_users": active,
        "inactive_users": len(users) - active,
        "admin_users": sum(1 for u in users if u.role == Role.ADMIN.value),
        "customer_users": sum(1 for u in users if u.role == Role.CUSTOMER.value),
    }


def recent_users(limit: int = 5) -> list[User]:
    users = [u for u in current_domain.repository_for(User).find_all() if u.is_active]
    users.sort(key=_created, reverse=True)
    return users[:limit]


def get_user(user_id: str) -> User:
    try:
        return current_domain.repository_for(User).get(user_id)
    except ObjectNotFoundError:
        raise NotFoundError("User not found") from None


def load_auth_user(user_id: str) -> AuthUser | None:
    """Live account state for a token subject, read inside the identity domain.

    Installed with ``shared.auth.set_user_loader`` so that every authenticated
    request, whichever domain serves it, sees the current role and status.
    """
    with identity.domain_context():
        try:
            user = current_domain.repository_for(User).get(user_id)
        except ObjectNotFoundError:
            return None
        return AuthUser(
            id=str(user.id),
            role=user.role,
            name=user.name,
            email=user.email,
            is_active=user.is_active,
        )
