"""User administration schemas."""

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, EmailStr, Field, model_validator

from src.models.enums import UserStatus
from src.schemas.group import GroupSummary

if TYPE_CHECKING:
    from src.models.user import User
    from src.services.identifiers import IdentifierCodec


class UserCreate(BaseModel):
    """Create a new user account."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., max_length=128)
    first_name: str | None = Field(None, max_length=255)
    last_name: str | None = Field(None, max_length=255)
    group_ids: list[int] = Field(default_factory=list)
    activate: bool | None = None  # None falls back to the configured default


class UserUpdate(BaseModel):
    """Update a user's profile fields. Passwords go through PasswordChange."""

    email: EmailStr | None = Field(None, max_length=255)
    first_name: str | None = Field(None, max_length=255)
    last_name: str | None = Field(None, max_length=255)
    permissions: dict[str, bool] | None = None


class PasswordChange(BaseModel):
    """Change a user's password."""

    old_password: str | None = Field(None, max_length=128)
    new_password: str = Field(..., max_length=128)
    new_password_confirmation: str = Field(..., max_length=128)

    @model_validator(mode="after")
    def passwords_match(self) -> "PasswordChange":
        if self.new_password != self.new_password_confirmation:
            raise ValueError("The new password confirmation does not match.")
        return self


class GroupMemberships(BaseModel):
    """Full replacement set of group ids for a user."""

    group_ids: list[int] = Field(default_factory=list)


class UserResponse(BaseModel):
    """User information response. ``id`` is the obfuscated identifier."""

    id: str
    email: str
    first_name: str | None
    last_name: str | None
    status: UserStatus
    activated: bool
    permissions: dict[str, bool]
    groups: list[GroupSummary]
    last_login: datetime | None
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_user(cls, user: "User", codec: "IdentifierCodec") -> "UserResponse":
        return cls(
            id=codec.encode(user.id),
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            status=user.status,
            activated=bool(user.activated),
            permissions=user.permissions or {},
            groups=[GroupSummary.model_validate(group) for group in user.groups],
            last_login=user.last_login,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserPage(BaseModel):
    """One page of users."""

    items: list[UserResponse]
    page: int
    page_size: int
    total: int


class UserActionResponse(BaseModel):
    """Result of a user mutation, with a message suitable for display."""

    message: str
    user: UserResponse | None = None
