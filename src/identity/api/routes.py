"""FastAPI endpoints for the Identity domain: authentication and user administration."""

import json

from fastapi import APIRouter, Query
from protean.utils.globals import current_domain

from identity.api.schemas import (
    AdminUpdateUserRequest,
    ChangePasswordRequest,
    CreateUserRequest,
    LoginRequest,
    RegisterRequest,
    RoleName,
    UpdateProfileRequest,
)
from identity.api.serializers import user_data, user_summary
from identity.user.administration import DeleteUser, ToggleUserStatus, UpdateUser
from identity.user.authentication import LoginUser
from identity.user.profile import ChangePassword, UpdateProfile
from identity.user.queries import UserFilters, get_user, list_users, recent_users, user_stats
from identity.user.registration import RegisterUser
from identity.user.user import User
from shared.auth import AdminUser, CurrentUser, create_access_token
from shared.envelope import success
from shared.errors import UnauthorizedError


def _token_for(user: User) -> str:
    return create_access_token(str(user.id), user.role, name=user.name, email=user.email)


def _session(user_id: str) -> dict:
    user = current_domain.repository_for(User).get(user_id)
    return {"user": user_data(user), "token": _token_for(user)}


# ---------------------------------------------------------------------------
# Auth Router
# ---------------------------------------------------------------------------
auth_router = APIRouter(prefix="/api/auth", tags=["auth"])


@auth_router.post("/register", status_code=201)
async def register(body: RegisterRequest):
    command = RegisterUser(name=body.name, email=body.email, password=body.password, phone=body.phone)
    user_id = current_domain.process(command, asynchronous=False)
    return success(_session(user_id), message="User registered successfully")


@auth_router.post("/login")
async def login(body: LoginRequest):
    user_id = current_domain.process(LoginUser(email=body.email, password=body.password), asynchronous=False)
    return success(_session(user_id), message="Login successful")


@auth_router.get("/me")
async def me(user: CurrentUser):
    return success({"user": user_data(get_user(user.id))})


@auth_router.put("/profile")
async def update_profile(body: UpdateProfileRequest, user: CurrentUser):
    changes = body.model_dump(exclude_unset=True, mode="json")
    current_domain.process(UpdateProfile(user_id=user.id, changes=json.dumps(changes)), asynchronous=False)
    return success({"user": user_data(get_user(user.id))}, message="Profile updated successfully")


@auth_router.put("/password")
async def change_password(body: ChangePasswordRequest, user: CurrentUser):
    command = ChangePassword(
        user_id=user.id,
        current_password=body.current_password,
        new_password=body.new_password,
    )
    current_domain.process(command, asynchronous=False)
    return success(message="Password changed successfully")


@auth_router.post("/logout")
async def logout(user: CurrentUser):
    # Tokens are stateless; the client discards its copy.
    return success(message="Logged out successfully")


@auth_router.post("/refresh")
async def refresh(user: CurrentUser):
    account = get_user(user.id)
    if not account.is_active:
        raise UnauthorizedError("Account is deactivated")
    return success({"token": _token_for(account)}, message="Token refreshed successfully")


# ---------------------------------------------------------------------------
# Users Router (admin)
# ---------------------------------------------------------------------------
users_router = APIRouter(prefix="/api/users", tags=["users"])


@users_router.get("")
async def list_users_endpoint(
    admin: AdminUser,
    role: RoleName | None = None,
    is_active: bool | None = None,
    search: str | None = Query(None, min_length=1, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    filters = UserFilters(role=role, is_active=is_active, search=search, page=page, limit=limit)
    users, pagination = list_users(filters)
    return success({"users": [user_data(u) for u in users], "pagination": pagination})


@users_router.get("/stats/overview")
async def users_stats(admin: AdminUser):
    return success({"overview": user_stats()})


@users_router.get("/recent/list")
async def recent_users_endpoint(admin: AdminUser, limit: int = Query(5, ge=1, le=50)):
    return success({"users": [user_summary(u) for u in recent_users(limit)]})


@users_router.get("/{user_id}")
async def get_user_endpoint(user_id: str, admin: AdminUser):
    return success({"user": user_data(get_user(user_id))})


@users_router.post("", status_code=201)
async def create_user(body: CreateUserRequest, admin: AdminUser):
    command = RegisterUser(
        name=body.name,
        email=body.email,
        password=body.password,
        phone=body.phone,
        role=body.role,
        address=json.dumps(body.address.model_dump()) if body.address else None,
        created_by=admin.id,
    )
    user_id = current_domain.process(command, asynchronous=False)
    return success({"user": user_data(get_user(user_id))}, message="User created successfully")


@users_router.put("/{user_id}")
async def update_user(user_id: str, body: AdminUpdateUserRequest, admin: AdminUser):
    changes = body.model_dump(exclude_unset=True, mode="json")
    command = UpdateUser(user_id=user_id, changes=json.dumps(changes), updated_by=admin.id)
    current_domain.process(command, asynchronous=False)
    return success({"user": user_data(get_user(user_id))}, message="User updated successfully")


@users_router.delete("/{user_id}")
async def delete_user(user_id: str, admin: AdminUser):
    current_domain.process(DeleteUser(user_id=user_id, deleted_by=admin.id), asynchronous=False)
    return success(message="User deleted successfully")


@users_router.patch("/{user_id}/toggle-status")
async def toggle_user_status(user_id: str, admin: AdminUser):
    is_active = current_domain.process(ToggleUserStatus(user_id=user_id, toggled_by=admin.id), asynchronous=False)
    user = get_user(user_id)
    state = "activated" if is_active else "deactivated"
    return success({"user": user_data(user)}, message=f"User {state} successfully")
