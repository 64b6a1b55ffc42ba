"""Group administration API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_admin_user, get_group_service
from src.models.user import User
from src.schemas.group import GroupActionResponse, GroupCreate, GroupResponse, GroupUpdate
from src.services.account_service import OperationResult
from src.services.group_service import GroupService

router = APIRouter(prefix="/api/v1/groups", tags=["groups"])

AdminUser = Annotated[User, Depends(get_admin_user)]
Groups = Annotated[GroupService, Depends(get_group_service)]


def _action_response(result: OperationResult) -> GroupActionResponse:
    group = result.payload.get("group")
    return GroupActionResponse(
        message=result.message,
        group=GroupResponse.model_validate(group) if group is not None else None,
    )


@router.get("", response_model=list[GroupResponse])
async def list_groups(admin: AdminUser, groups: Groups):
    """Get all groups."""
    return groups.list_groups(admin)


@router.post("", response_model=GroupActionResponse, status_code=status.HTTP_201_CREATED)
async def create_group(admin: AdminUser, group_data: GroupCreate, groups: Groups):
    """Create a group."""
    return _action_response(groups.create_group(admin, group_data))


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(admin: AdminUser, group_id: int, groups: Groups):
    """Get a specific group."""
    return groups.get_group(admin, group_id)


@router.put("/{group_id}", response_model=GroupActionResponse)
async def update_group(admin: AdminUser, group_id: int, group_data: GroupUpdate, groups: Groups):
    """Update a group's name or permissions."""
    return _action_response(groups.update_group(admin, group_id, group_data))


@router.delete("/{group_id}", response_model=GroupActionResponse)
async def delete_group(admin: AdminUser, group_id: int, groups: Groups):
    """Remove a group and its memberships."""
    return _action_response(groups.delete_group(admin, group_id))
