"""Pydantic schemas for users, profiles and auth."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class ThemeSettings(BaseModel):
    mode: str = "dark"  # dark | light | system
    primary_color: str = "#D4AF37"
    accent_color: str = ""


class ProfileSettings(BaseModel):
    currency: str = "BRL"
    language: str = "pt-BR"
    theme: ThemeSettings = ThemeSettings()
    first_day_of_week: int = 0  # 0=Sunday, 1=Monday
    date_format: str = "DD/MM/YYYY"


class ThemeSettingsUpdate(BaseModel):
    mode: str | None = Field(None, pattern="^(dark|light|system)$")
    primary_color: str | None = None
    accent_color: str | None = None


class ProfileSettingsUpdate(BaseModel):
    currency: str | None = None
    language: str | None = None
    theme: ThemeSettingsUpdate | None = None
    first_day_of_week: int | None = Field(None, ge=0, le=6)
    date_format: str | None = None


class ProfileResponse(BaseModel):
    id: UUID
    user_id: UUID
    name: str
    avatar: str | None = None
    bio: str | None = None
    role: str = "user"
    settings: ProfileSettings = ProfileSettings()
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    avatar: str | None = None
    bio: str | None = None
    settings: ProfileSettingsUpdate | None = None


class UserResponse(BaseModel):
    id: UUID
    email: str
    created_at: datetime

    model_config = {"from_attributes": True}


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=100)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenRefresh(BaseModel):
    refresh_token: str


class AuthResponse(BaseModel):
    user: UserResponse
    profile: ProfileResponse
    token: str
    refresh_token: str
    token_type: str = "bearer"


class MeResponse(BaseModel):
    user: UserResponse
    profile: ProfileResponse


class UserListItem(BaseModel):
    id: UUID
    email: str
    name: str
    avatar: str | None = None
    role: str
    created_at: datetime


class UserListResponse(BaseModel):
    users: list[UserListItem]
    total: int
    page: int
    limit: int


class UpdateUserRoleRequest(BaseModel):
    role: str = Field(..., pattern="^(admin|author|user)$")
