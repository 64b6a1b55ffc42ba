"""User administration API endpoints.

Users are addressed by obfuscated identifiers; the service layer only ever
sees the decoded internal ids.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    get_account_service,
    get_admin_user,
    get_current_user,
    get_user_id,
)
from src.models.user import User
from src.schemas.user import (
    GroupMemberships,
    PasswordChange,
    UserActionResponse,
    UserCreate,
    UserPage,
    UserResponse,
    UserUpdate,
)
from src.services.account_service import AccountService, OperationResult
from src.services.identifiers import IdentifierCodec, get_identifier_codec

router = APIRouter(prefix="/api/v1/users", tags=["users"])

AdminUser = Annotated[User, Depends(get_admin_user)]
CurrentUser = Annotated[User, Depends(get_current_user)]
Accounts = Annotated[AccountService, Depends(get_account_service)]
Codec = Annotated[IdentifierCodec, Depends(get_identifier_codec)]
UserId = Annotated[int, Depends(get_user_id)]


def _action_response(result: OperationResult, codec: IdentifierCodec) -> UserActionResponse:
    user = UserResponse.from_user(result.user, codec) if result.user is not None else None
    return UserActionResponse(message=result.message, user=user)


@router.get("", response_model=UserPage)
async def list_users(
    admin: AdminUser,
    accounts: Accounts,
    codec: Codec,
    page: Annotated[int, Query()] = 0,
    page_size: Annotated[int | None, Query()] = None,
):
    """Get a page of users with their status."""
    result = accounts.list_users(admin, page, page_size)
    return UserPage(
        items=[UserResponse.from_user(user, codec) for user in result.items],
        page=result.page,
        page_size=result.page_size,
        total=result.total,
    )


@router.post("", response_model=UserActionResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    admin: AdminUser,
    user_data: UserCreate,
    accounts: Accounts,
    codec: Codec,
):
    """Create a new user account."""
    return _action_response(accounts.create_user(admin, user_data), codec)


@router.get("/{user_hash}", response_model=UserResponse)
async def get_user(admin: AdminUser, user_id: UserId, accounts: Accounts, codec: Codec):
    """Get a specific user."""
    return UserResponse.from_user(accounts.get_user(admin, user_id), codec)


@router.put("/{user_hash}", response_model=UserActionResponse)
async def update_user(
    admin: AdminUser,
    user_id: UserId,
    user_data: UserUpdate,
    accounts: Accounts,
    codec: Codec,
):
    """Update a user's profile."""
    return _action_response(accounts.update_user(admin, user_id, user_data), codec)


@router.delete("/{user_hash}", response_model=UserActionResponse)
async def delete_user(admin: AdminUser, user_id: UserId, accounts: Accounts, codec: Codec):
    """Remove a user."""
    return _action_response(accounts.delete_user(admin, user_id), codec)


@router.put("/{user_hash}/memberships", response_model=UserActionResponse)
async def update_group_memberships(
    admin: AdminUser,
    user_id: UserId,
    memberships: GroupMemberships,
    accounts: Accounts,
    codec: Codec,
):
    """Replace the user's group memberships."""
    result = accounts.set_group_memberships(admin, user_id, memberships.group_ids)
    return _action_response(result, codec)


@router.post("/{user_hash}/password", response_model=UserActionResponse)
async def change_password(
    current_user: CurrentUser,
    user_id: UserId,
    password_data: PasswordChange,
    accounts: Accounts,
    codec: Codec,
):
    """Change a password. Admins may skip the old password; others may only change their own."""
    result = accounts.change_password(
        current_user, user_id, password_data.old_password, password_data.new_password
    )
    return _action_response(result, codec)


@router.post("/{user_hash}/suspend", response_model=UserActionResponse)
async def suspend_user(admin: AdminUser, user_id: UserId, accounts: Accounts, codec: Codec):
    """Suspend a user."""
    return _action_response(accounts.suspend(admin, user_id), codec)


@router.post("/{user_hash}/unsuspend", response_model=UserActionResponse)
async def unsuspend_user(admin: AdminUser, user_id: UserId, accounts: Accounts, codec: Codec):
    """Lift a user's suspension."""
    return _action_response(accounts.unsuspend(admin, user_id), codec)


@router.post("/{user_hash}/ban", response_model=UserActionResponse)
async def ban_user(admin: AdminUser, user_id: UserId, accounts: Accounts, codec: Codec):
    """Ban a user."""
    return _action_response(accounts.ban(admin, user_id), codec)


@router.post("/{user_hash}/unban", response_model=UserActionResponse)
async def unban_user(admin: AdminUser, user_id: UserId, accounts: Accounts, codec: Codec):
    """Lift a user's ban."""
    return _action_response(accounts.unban(admin, user_id), codec)


@router.post("/{user_hash}/activate", response_model=UserActionResponse)
async def activate_user(admin: AdminUser, user_id: UserId, accounts: Accounts, codec: Codec):
    """Activate a pending user."""
    return _action_response(accounts.activate(admin, user_id), codec)
