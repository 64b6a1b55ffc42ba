"""User model."""

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from src.config import get_settings
from src.database import Base
from src.models.enums import UserStatus
from src.models.group import users_groups
from src.models.mixins import TimestampMixin

SUPERUSER_PERMISSION = "superuser"


class User(Base, TimestampMixin):
    """User account managed through the admin API."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    permissions = Column(JSON, nullable=False, default=dict)  # user-level overrides
    activated = Column(Boolean, nullable=False, default=False)
    activated_at = Column(DateTime(timezone=True), nullable=True)
    activation_code = Column(String(64), nullable=True, index=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    session_version = Column(Integer, nullable=False, default=1)

    # Relationships
    groups = relationship(
        "Group", secondary=users_groups, back_populates="users", order_by="Group.id"
    )
    throttle = relationship(
        "Throttle", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    @property
    def is_banned(self) -> bool:
        return self.throttle is not None and bool(self.throttle.banned)

    @property
    def is_suspended(self) -> bool:
        if self.throttle is None:
            return False
        return self.throttle.is_suspended(get_settings().suspension_minutes)

    @property
    def status(self) -> UserStatus:
        """Derive the display status; a ban outranks a suspension."""
        if self.is_banned:
            return UserStatus.BANNED
        if self.is_suspended:
            return UserStatus.SUSPENDED
        if self.activated:
            return UserStatus.ACTIVE
        return UserStatus.PENDING

    @property
    def merged_permissions(self) -> dict[str, bool]:
        """Group grants combined, then overridden by user-level permissions."""
        merged: dict[str, bool] = {}
        for group in self.groups:
            for name, granted in (group.permissions or {}).items():
                merged[name] = merged.get(name, False) or bool(granted)
        for name, granted in (self.permissions or {}).items():
            merged[name] = bool(granted)
        return merged

    def has_access(self, permission: str) -> bool:
        """Check whether the user holds a capability."""
        permissions = self.merged_permissions
        if permissions.get(SUPERUSER_PERMISSION):
            return True
        return permissions.get(permission, False)
