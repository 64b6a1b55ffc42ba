"""SQLAlchemy models."""

from src.models.group import Group, users_groups
from src.models.throttle import Throttle
from src.models.user import User

__all__ = [
    "User",
    "Group",
    "Throttle",
    "users_groups",
]
