from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator
from app.models.enums import UserRole
from app.utils.sanitization import sanitize_string
from app.utils.timestamps import ensure_utc


class UserBase(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)

    @field_validator("username", "first_name", "last_name", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class RegisterRequest(UserBase):
    password: str = Field(..., min_length=1)
    # Checked by the credential store so an unknown value fails as InvalidRole
    role: str | None = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserUpdate(BaseModel):
    username: str | None = Field(None, min_length=1, max_length=50)
    email: EmailStr | None = None
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    password: str | None = Field(None, min_length=1)
    # Admin-only fields
    role: str | None = None
    is_active: bool | None = None

    @field_validator("username", "first_name", "last_name", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    role: UserRole
    is_active: bool
    display_name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def as_utc(cls, v):
        return ensure_utc(v)

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserResponse
    redirectTo: str
    message: str | None = None


class RoleResponse(BaseModel):
    role: UserRole
    redirectTo: str


class MessageResponse(BaseModel):
    message: str
