"""Group store: persistence of groups and user memberships."""

from typing import Any

from sqlalchemy.orm import Session

from src.models.group import Group
from src.models.user import User


class GroupStore:
    """Data access for groups. Methods flush but never commit."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, group_id: int) -> Group | None:
        return self.db.get(Group, group_id)

    def find_by_name(self, name: str) -> Group | None:
        return self.db.query(Group).filter(Group.name == name).first()

    def find_many(self, group_ids: list[int]) -> list[Group]:
        """Get the groups with the given ids; missing ids are simply absent."""
        if not group_ids:
            return []
        return self.db.query(Group).filter(Group.id.in_(set(group_ids))).order_by(Group.id).all()

    def insert(self, group: Group) -> int:
        self.db.add(group)
        self.db.flush()
        return group.id

    def update(self, group_id: int, fields: dict[str, Any]) -> Group | None:
        group = self.find_by_id(group_id)
        if group is None:
            return None
        for key in ("name", "permissions"):
            if key in fields:
                setattr(group, key, fields[key])
        self.db.flush()
        return group

    def delete(self, group_id: int) -> bool:
        group = self.find_by_id(group_id)
        if group is None:
            return False
        self.db.delete(group)
        self.db.flush()
        return True

    def set_memberships(self, user_id: int, group_ids: list[int]) -> None:
        """Replace the user's memberships with exactly ``group_ids``."""
        user = self.db.get(User, user_id)
        if user is None:
            return
        user.groups = self.find_many(group_ids)
        self.db.flush()

    def list(self) -> list[Group]:
        return self.db.query(Group).order_by(Group.name).all()
