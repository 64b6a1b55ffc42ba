"""Login throttle model holding suspend and ban flags."""

from datetime import UTC, datetime, timedelta

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship

from src.database import Base


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class Throttle(Base):
    """Failed-login counter and lock flags for a single user."""

    __tablename__ = "throttle"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    attempts = Column(Integer, nullable=False, default=0)
    last_attempt_at = Column(DateTime(timezone=True), nullable=True)
    suspended = Column(Boolean, nullable=False, default=False)
    suspended_at = Column(DateTime(timezone=True), nullable=True)
    banned = Column(Boolean, nullable=False, default=False)
    banned_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    user = relationship("User", back_populates="throttle")

    def is_suspended(self, suspension_minutes: int | None = None) -> bool:
        """Check whether the suspension is in force.

        With ``suspension_minutes`` set, a suspension expires that many
        minutes after it started; otherwise it lasts until lifted.
        """
        if not self.suspended:
            return False
        if suspension_minutes is None or self.suspended_at is None:
            return True
        expires_at = _as_utc(self.suspended_at) + timedelta(minutes=suspension_minutes)
        return datetime.now(UTC) < expires_at

    def suspend(self, suspension_minutes: int | None = None) -> None:
        """Start a suspension.

        A suspension still in force keeps its original start time; a lapsed
        one is restarted.
        """
        if not self.is_suspended(suspension_minutes):
            self.suspended = True
            self.suspended_at = datetime.now(UTC)

    def unsuspend(self) -> None:
        """Clear the suspend flag and reset failed attempts."""
        self.suspended = False
        self.suspended_at = None
        self.attempts = 0

    def ban(self) -> None:
        """Set the ban flag."""
        if not self.banned:
            self.banned = True
            self.banned_at = datetime.now(UTC)

    def unban(self) -> None:
        """Clear the ban flag."""
        self.banned = False
        self.banned_at = None

    def add_attempt(self) -> None:
        """Record a failed login attempt."""
        self.attempts = (self.attempts or 0) + 1
        self.last_attempt_at = datetime.now(UTC)

    def clear_attempts(self) -> None:
        """Reset the failed login counter."""
        self.attempts = 0
        self.last_attempt_at = None
