"""Pydantic request schemas for the Identity API."""

from typing import Any, Literal

from pydantic import BaseModel, Field

RoleName = Literal["customer", "admin"]

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
PHONE_PATTERN = r"^\+?[1-9]\d{0,15}$"


class AddressSchema(BaseModel):
    street: str | None = Field(None, max_length=255)
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=100)
    zip_code: str | None = Field(None, max_length=20)


# --- Auth Request Schemas ---


class RegisterRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Jane Doe",
                    "email": "jane.doe@example.com",
                    "password": "secret123",
                    "phone": "+8801711000000",
                }
            ]
        }
    }

    name: str = Field(..., min_length=2, max_length=50)
    email: str = Field(..., max_length=254, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6, max_length=128)
    phone: str | None = Field(None, pattern=PHONE_PATTERN)


class LoginRequest(BaseModel):
    email: str = Field(..., max_length=254)
    password: str = Field(..., min_length=1, max_length=128)


class UpdateProfileRequest(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=50)
    phone: str | None = Field(None, pattern=PHONE_PATTERN)
    address: AddressSchema | None = None
    preferences: dict[str, Any] | None = None


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=6, max_length=128)


# --- Admin Request Schemas ---


class CreateUserRequest(RegisterRequest):
    role: RoleName = "customer"
    address: AddressSchema | None = None


class AdminUpdateUserRequest(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=50)
    email: str | None = Field(None, max_length=254, pattern=EMAIL_PATTERN)
    role: RoleName | None = None
    phone: str | None = Field(None, pattern=PHONE_PATTERN)
    address: AddressSchema | None = None
    is_active: bool | None = None
