from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


def _required(value: str) -> str:
    if not value.strip():
        raise ValueError("All fields are required")
    return value


def _optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not value.strip():
        return None
    return value


# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

    @field_validator("password")
    @classmethod
    def password_required(cls, value: str) -> str:
        if not value:
            raise ValueError("Email and password are required")
        return value


# Schema for registration and admin user creation
class UserCreate(UserBase):
    fullname: str
    password: str

    @field_validator("fullname", "password")
    @classmethod
    def fields_required(cls, value: str) -> str:
        return _required(value)


# Self-service profile changes; at least one field must be set
class ProfileUpdate(BaseModel):
    fullname: Optional[str] = None
    password: Optional[str] = None

    @field_validator("fullname", "password")
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        return _optional(value)


# Admin edits are limited to name and password
class AdminUserUpdate(ProfileUpdate):
    pass


class ResetCodeRequest(UserBase):
    pass


class PasswordReset(UserBase):
    code: str
    newPassword: str

    @field_validator("code", "newPassword")
    @classmethod
    def fields_required(cls, value: str) -> str:
        return _required(value)


# Output schema for user profile details, never carries secrets
class UserResponse(BaseModel):
    id: int
    fullname: str
    email: str
    role: List[str] = Field(validation_alias="role_names")
    createdAt: Optional[datetime] = Field(default=None, validation_alias="created_at")
    updatedAt: Optional[datetime] = Field(default=None, validation_alias="updated_at")

    class Config:
        from_attributes = True


# Compact row for the dashboard's recent users panel
class RecentUser(BaseModel):
    id: int
    fullname: str
    email: str
    createdAt: datetime = Field(validation_alias="created_at")

    class Config:
        from_attributes = True


class TokenPair(BaseModel):
    accessToken: str
    refreshToken: str


class LoginResult(TokenPair):
    user: UserResponse
