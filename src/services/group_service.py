"""Group administration service."""

import logging

from sqlalchemy.orm import Session

from src.config import get_settings
from src.models.group import Group
from src.models.user import User
from src.schemas.group import GroupCreate, GroupUpdate
from src.services.account_service import OperationResult, commit_or_rollback
from src.services.exceptions import Conflict, NotFound, ValidationError
from src.services.group_store import GroupStore
from src.services.permissions import require_capability

logger = logging.getLogger(__name__)


class GroupService:
    """Service for creating, editing and removing permission groups."""

    def __init__(self, db: Session):
        self.db = db
        self.groups = GroupStore(db)

    def _get_group_or_404(self, group_id: int) -> Group:
        group = self.groups.find_by_id(group_id)
        if group is None:
            raise NotFound("Group not found.")
        return group

    def _validate_permissions(self, permissions: dict[str, bool]) -> dict[str, bool]:
        allowed = get_settings().default_permissions
        unknown = sorted(name for name in permissions if name not in allowed)
        if unknown:
            message = f"Unknown permission: {', '.join(unknown)}."
            raise ValidationError(message, errors={"permissions": [message]})
        return {name: bool(granted) for name, granted in permissions.items()}

    def _check_name_free(self, name: str, group_id: int | None = None) -> None:
        existing = self.groups.find_by_name(name)
        if existing is not None and existing.id != group_id:
            raise Conflict("A group with that name already exists.")

    def list_groups(self, actor: User | None) -> list[Group]:
        require_capability(actor)
        return self.groups.list()

    def get_group(self, actor: User | None, group_id: int) -> Group:
        require_capability(actor)
        return self._get_group_or_404(group_id)

    def create_group(self, actor: User | None, data: GroupCreate) -> OperationResult:
        require_capability(actor)
        permissions = self._validate_permissions(data.permissions)
        self._check_name_free(data.name)
        group = Group(name=data.name, permissions=permissions)
        self.groups.insert(group)
        commit_or_rollback(self.db)
        self.db.refresh(group)
        logger.info(f"Group {group.id} '{group.name}' created by {actor.id}")
        return OperationResult(message="Group created.", payload={"group": group})

    def update_group(self, actor: User | None, group_id: int, data: GroupUpdate) -> OperationResult:
        require_capability(actor)
        group = self._get_group_or_404(group_id)
        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        if "permissions" in fields:
            fields["permissions"] = self._validate_permissions(fields["permissions"])
        if "name" in fields:
            self._check_name_free(fields["name"], group_id)
        self.groups.update(group_id, fields)
        commit_or_rollback(self.db)
        self.db.refresh(group)
        logger.info(f"Group {group_id} updated by {actor.id}")
        return OperationResult(message="Group updated.", payload={"group": group})

    def delete_group(self, actor: User | None, group_id: int) -> OperationResult:
        """Remove a group; its memberships go with it."""
        require_capability(actor)
        if not self.groups.delete(group_id):
            raise NotFound("Group not found.")
        commit_or_rollback(self.db)
        logger.info(f"Group {group_id} deleted by {actor.id}")
        return OperationResult(message="Group removed.")
