"""Group model and user/group membership table."""

from sqlalchemy import JSON, Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.mixins import TimestampMixin

users_groups = Table(
    "users_groups",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("group_id", Integer, ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True),
)


class Group(Base, TimestampMixin):
    """Named permission group."""

    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    permissions = Column(JSON, nullable=False, default=dict)  # {"admin": true, ...}

    # Relationships
    users = relationship("User", secondary=users_groups, back_populates="groups")
