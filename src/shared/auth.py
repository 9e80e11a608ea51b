"""Password hashing, JWT issuance and the FastAPI auth dependencies."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError

from shared.config import get_settings
from shared.errors import ForbiddenError, UnauthorizedError

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
security = HTTPBearer(auto_error=False)


class AuthUser(BaseModel):
    """Identity carried by an access token."""

    id: str
    role: str = "customer"
    name: str | None = None
    email: str | None = None
    is_active: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


# Resolves the live account behind a token subject; None when the account is gone
UserLoader = Callable[[str], AuthUser | None]
_user_loader: UserLoader | None = None


def set_user_loader(loader: UserLoader | None) -> None:
    """Install the account lookup used by `get_current_user`.

    Without a loader the token claims are trusted as issued.
    """
    global _user_loader
    _user_loader = loader


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: str, role: str, name: str | None = None, email: str | None = None) -> str:
    settings = get_settings()
    expires_at = datetime.now(UTC) + timedelta(days=settings.JWT_EXPIRE_DAYS)
    claims = {
        "sub": str(user_id),
        "role": role,
        "name": name,
        "email": email,
        "exp": expires_at,
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> AuthUser:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        return AuthUser(
            id=payload["sub"],
            role=payload.get("role", "customer"),
            name=payload.get("name"),
            email=payload.get("email"),
        )
    except (JWTError, KeyError, ValidationError):
        raise UnauthorizedError("Not authorized, token failed") from None


async def get_current_user(
    token: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> AuthUser:
    """Validate the bearer token and return the authenticated user.

    When a user loader is installed, role and active state come from the
    account rather than the token, so demotions and deactivations apply to
    tokens already issued.
    """
    if token is None or not token.credentials:
        raise UnauthorizedError("Not authorized, no token")
    user = decode_access_token(token.credentials)
    if _user_loader is None:
        return user

    account = _user_loader(user.id)
    if account is None:
        raise UnauthorizedError("Not authorized, user not found")
    if not account.is_active:
        raise UnauthorizedError("Account is deactivated")
    return account


async def require_admin(current_user: Annotated[AuthUser, Depends(get_current_user)]) -> AuthUser:
    """Ensure the user has the 'admin' role."""
    if not current_user.is_admin:
        raise ForbiddenError("Admin privileges required")
    return current_user


CurrentUser = Annotated[AuthUser, Depends(get_current_user)]
AdminUser = Annotated[AuthUser, Depends(require_admin)]
