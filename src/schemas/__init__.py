"""Pydantic schemas for API requests and responses."""

from src.schemas.auth import AccountActivation, AuthResponse, UserLogin
from src.schemas.group import (
    GroupActionResponse,
    GroupCreate,
    GroupResponse,
    GroupSummary,
    GroupUpdate,
)
from src.schemas.user import (
    GroupMemberships,
    PasswordChange,
    UserActionResponse,
    UserCreate,
    UserPage,
    UserResponse,
    UserUpdate,
)

__all__ = [
    "UserLogin",
    "AccountActivation",
    "AuthResponse",
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "UserPage",
    "UserActionResponse",
    "PasswordChange",
    "GroupMemberships",
    "GroupCreate",
    "GroupUpdate",
    "GroupSummary",
    "GroupResponse",
    "GroupActionResponse",
]
