"""User store: persistence of users, passwords and throttle flags."""

import logging
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from src.config import get_settings
from src.models.enums import ThrottleFlag
from src.models.throttle import Throttle
from src.models.user import User
from src.services.auth import get_password_hash, verify_password

logger = logging.getLogger(__name__)

# Fields that may never be written through update()
PROTECTED_FIELDS = {"id", "password_hash", "session_version", "created_at", "updated_at"}


class UserStore:
    """Data access for users. Methods flush but never commit."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    def find_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def insert(self, user: User) -> int:
        """Add a new user and return its assigned id."""
        user.email = user.email.strip().lower()
        self.db.add(user)
        self.db.flush()
        return user.id

    def update(self, user_id: int, fields: dict[str, Any]) -> User | None:
        user = self.find_by_id(user_id)
        if user is None:
            return None
        for key, value in fields.items():
            if key in PROTECTED_FIELDS or not hasattr(user, key):
                continue
            if key == "email" and value is not None:
                value = value.strip().lower()
            setattr(user, key, value)
        self.db.flush()
        return user

    def delete(self, user_id: int) -> bool:
        user = self.find_by_id(user_id)
        if user is None:
            return False
        self.db.delete(user)
        self.db.flush()
        return True

    def list(self, offset: int, limit: int) -> list[User]:
        """Get a page of users ordered by id."""
        return self.db.query(User).order_by(User.id).offset(offset).limit(limit).all()

    def count(self) -> int:
        return self.db.query(func.count(User.id)).scalar() or 0

    def verify_password(self, user_id: int, plaintext: str) -> bool:
        user = self.find_by_id(user_id)
        if user is None:
            return False
        return verify_password(plaintext, user.password_hash)

    def set_password(self, user_id: int, plaintext: str) -> None:
        """Hash and store a new password, revoking existing sessions."""
        user = self.find_by_id(user_id)
        if user is None:
            return
        user.password_hash = get_password_hash(plaintext)
        user.session_version = (user.session_version or 0) + 1
        self.db.flush()

    def get_throttle(self, user_id: int) -> Throttle | None:
        """Get the user's throttle record, creating it on first use."""
        user = self.find_by_id(user_id)
        if user is None:
            return None
        if user.throttle is None:
            user.throttle = Throttle(attempts=0, suspended=False, banned=False)
            self.db.flush()
        return user.throttle

    def set_flag(self, user_id: int, flag: ThrottleFlag, value: bool) -> None:
        """Set or clear the suspend/ban flag."""
        throttle = self.get_throttle(user_id)
        if throttle is None:
            return
        if flag == ThrottleFlag.SUSPENDED:
            if value:
                throttle.suspend(get_settings().suspension_minutes)
            else:
                throttle.unsuspend()
        elif flag == ThrottleFlag.BANNED:
            if value:
                throttle.ban()
                # Banned users lose every outstanding session
                throttle.user.session_version = (throttle.user.session_version or 0) + 1
            else:
                throttle.unban()
        self.db.flush()
