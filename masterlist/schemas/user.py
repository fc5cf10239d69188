"""User schemas"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from masterlist.utils.access import normalize_role


def _canonical_role(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    role = normalize_role(value)
    if role is None:
        raise ValueError("role must be one of: administrator, moderator")
    return role.value


def _canonical_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    email = value.strip().lower()
    local, _, domain = email.partition("@")
    if not local or "." not in domain or " " in email:
        raise ValueError("Please enter a valid email address")
    return email


class UserCreate(BaseModel):
    """Schema for creating a dashboard account"""

    email: str = Field(..., max_length=255)
    username: str = Field(..., min_length=1, max_length=100)
    role: str = Field("moderator", description="administrator | moderator")
    password: str = Field(..., min_length=6, description="Password (never stored in plain text)")
    display_name: Optional[str] = Field(None, max_length=255)
    active: bool = True

    @field_validator("role")
    @classmethod
    def check_role(cls, value):
        return _canonical_role(value)

    @field_validator("email")
    @classmethod
    def check_email(cls, value):
        return _canonical_email(value)

    @field_validator("username")
    @classmethod
    def strip_username(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("username is required")
        return value


class UserUpdate(BaseModel):
    """Partial update of an account by an administrator. Omitted fields are left alone."""

    email: Optional[str] = Field(None, max_length=255)
    username: Optional[str] = Field(None, min_length=1, max_length=100)
    role: Optional[str] = None
    password: Optional[str] = Field(None, description="Set a new password; blank leaves it unchanged")
    display_name: Optional[str] = Field(None, max_length=255)
    active: Optional[bool] = None

    @field_validator("role")
    @classmethod
    def check_role(cls, value):
        return _canonical_role(value)

    @field_validator("email")
    @classmethod
    def check_email(cls, value):
        return _canonical_email(value)

    @field_validator("password")
    @classmethod
    def blank_password_is_unset(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        if len(value) < 6:
            raise ValueError("password must be at least 6 characters")
        return value


class UserResponse(BaseModel):
    """Schema for an account (never includes the password digest)"""

    uid: str
    email: str
    username: str
    display_name: Optional[str] = None
    role: str
    active: bool
    created_by: Optional[str] = None
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("role", mode="before")
    @classmethod
    def legacy_role(cls, value):
        role = normalize_role(value)
        return role.value if role else value


class UserStats(BaseModel):
    total: int
    active: int
    inactive: int
    administrators: int
    moderators: int


class ProfileUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=1, max_length=100)
    display_name: Optional[str] = Field(None, max_length=255)


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)
