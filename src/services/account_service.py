"""Account administration: user lifecycle, flags, memberships and passwords.

Every public method takes the acting principal first and checks its
capability before touching the stores. Methods work on internal ids only;
obfuscated identifiers are decoded at the API boundary.
"""

import logging
import secrets
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from kombu.exceptions import OperationalError as KombuOperationalError
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from src.config import get_settings
from src.models.enums import ThrottleFlag
from src.models.user import User
from src.schemas.user import UserCreate, UserUpdate
from src.services.auth import get_password_hash
from src.services.exceptions import (
    Conflict,
    InvalidCredentials,
    NotFound,
    Unavailable,
    ValidationError,
)
from src.services.group_store import GroupStore
from src.services.permissions import require_capability, require_self_or_capability
from src.services.user_store import UserStore

logger = logging.getLogger(__name__)

NON_NULLABLE_PROFILE_FIELDS = ("email", "permissions")


@dataclass
class OperationResult:
    """Outcome of a successful operation, with a message for display."""

    message: str
    user: User | None = None
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class PageResult:
    """A page of users."""

    items: list[User]
    page: int
    page_size: int
    total: int


@contextmanager
def store_errors(db: Session):
    """Roll back and translate store failures into service errors."""
    try:
        yield
    except IntegrityError as e:
        db.rollback()
        raise Conflict("That record conflicts with an existing one.") from e
    except (OperationalError, PoolTimeoutError) as e:
        db.rollback()
        logger.error(f"Account store unavailable: {e}")
        raise Unavailable() from e


def commit_or_rollback(db: Session) -> None:
    """Commit the session, translating store failures into service errors."""
    with store_errors(db):
        db.commit()


def validate_password_policy(password: str, field_name: str = "password") -> None:
    """Check a plaintext password against the configured policy."""
    settings = get_settings()
    problems = []
    if len(password) < settings.password_min_length:
        problems.append(
            f"The {field_name.replace('_', ' ')} must be at least "
            f"{settings.password_min_length} characters."
        )
    if settings.password_require_mixed and not (
        any(ch.isalpha() for ch in password) and any(ch.isdigit() for ch in password)
    ):
        problems.append(f"The {field_name.replace('_', ' ')} must contain letters and digits.")
    if problems:
        raise ValidationError(problems[0], errors={field_name: problems})


class AccountService:
    """Service for administering user accounts."""

    def __init__(self, db: Session):
        self.db = db
        self.users = UserStore(db)
        self.groups = GroupStore(db)
        self.settings = get_settings()

    def _get_user_or_404(self, user_id: int) -> User:
        user = self.users.find_by_id(user_id)
        if user is None:
            raise NotFound()
        return user

    def _check_groups_exist(self, group_ids: list[int]) -> list[int]:
        """Return de-duplicated group ids, raising NotFound for unknown ones."""
        wanted = sorted(set(group_ids))
        found = {group.id for group in self.groups.find_many(wanted)}
        missing = [group_id for group_id in wanted if group_id not in found]
        if missing:
            raise NotFound(f"Group not found: {', '.join(str(m) for m in missing)}.")
        return wanted

    def list_users(
        self, actor: User | None, page: int = 0, page_size: int | None = None
    ) -> PageResult:
        """Get one page of users; pages past the end are empty."""
        require_capability(actor)
        page_size = self.settings.users_per_page if page_size is None else page_size
        if page < 0:
            raise ValidationError(
                "The page must be zero or greater.", errors={"page": ["Must be >= 0."]}
            )
        if page_size < 1:
            raise ValidationError(
                "The page size must be at least 1.", errors={"page_size": ["Must be >= 1."]}
            )
        return PageResult(
            items=self.users.list(page * page_size, page_size),
            page=page,
            page_size=page_size,
            total=self.users.count(),
        )

    def create_user(self, actor: User | None, data: UserCreate) -> OperationResult:
        """Create a user, either activated immediately or pending activation."""
        require_capability(actor)
        validate_password_policy(data.password)
        if self.users.find_by_email(data.email):
            raise Conflict("A user with that email address already exists.")
        group_ids = self._check_groups_exist(data.group_ids)

        activate = self.settings.activate_on_create if data.activate is None else data.activate
        user = User(
            email=data.email,
            password_hash=get_password_hash(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            permissions={},
            activated=activate,
            activated_at=datetime.now(UTC) if activate else None,
            activation_code=None if activate else secrets.token_urlsafe(32),
            session_version=1,
        )
        with store_errors(self.db):
            user_id = self.users.insert(user)
            self.groups.set_memberships(user_id, group_ids)
        commit_or_rollback(self.db)
        self.db.refresh(user)
        logger.info(f"User {user_id} created by {actor.id} (activated={activate})")

        payload = {"activated": activate}
        if activate:
            message = "User created and activated."
        else:
            from src.tasks.activation import send_activation_email

            try:
                send_activation_email.delay(user_id)
                message = "User created. An activation notice has been sent."
                payload["notice_queued"] = True
            except KombuOperationalError as e:
                # The user row is already committed; report rather than fail
                logger.error(f"Could not queue activation notice for user {user_id}: {e}")
                message = (
                    "User created, but the activation notice could not be sent. "
                    "Activate the user manually or try again later."
                )
                payload["notice_queued"] = False
        return OperationResult(message=message, user=user, payload=payload)

    def get_user(self, actor: User | None, user_id: int) -> User:
        require_capability(actor)
        return self._get_user_or_404(user_id)

    def update_user(self, actor: User | None, user_id: int, data: UserUpdate) -> OperationResult:
        """Update profile fields. Passwords are changed through change_password."""
        require_capability(actor)
        user = self._get_user_or_404(user_id)
        fields = data.model_dump(exclude_unset=True)
        # Names may be cleared; email and permissions may not
        for key in NON_NULLABLE_PROFILE_FIELDS:
            if key in fields and fields[key] is None:
                del fields[key]
        if "email" in fields:
            existing = self.users.find_by_email(fields["email"])
            if existing is not None and existing.id != user.id:
                raise Conflict("A user with that email address already exists.")
        with store_errors(self.db):
            self.users.update(user_id, fields)
        commit_or_rollback(self.db)
        self.db.refresh(user)
        logger.info(f"User {user_id} updated by {actor.id}: {sorted(fields)}")
        return OperationResult(message="Profile updated.", user=user)

    def delete_user(self, actor: User | None, user_id: int) -> OperationResult:
        require_capability(actor)
        if not self.users.delete(user_id):
            raise NotFound()
        commit_or_rollback(self.db)
        logger.info(f"User {user_id} deleted by {actor.id}")
        return OperationResult(message="User removed.")

    def set_group_memberships(
        self, actor: User | None, user_id: int, group_ids: list[int]
    ) -> OperationResult:
        """Replace the user's memberships with exactly ``group_ids``."""
        require_capability(actor)
        user = self._get_user_or_404(user_id)
        wanted = self._check_groups_exist(group_ids)
        self.groups.set_memberships(user_id, wanted)
        commit_or_rollback(self.db)
        self.db.refresh(user)
        logger.info(f"User {user_id} memberships set to {wanted} by {actor.id}")
        return OperationResult(message="Group memberships updated.", user=user)

    def change_password(
        self,
        actor: User | None,
        user_id: int,
        old_password: str | None,
        new_password: str,
    ) -> OperationResult:
        """Change a password.

        Admins may reset any password without the old one. Everyone else may
        only change their own and must supply the current password.
        """
        privileged = require_self_or_capability(actor, user_id)
        user = self._get_user_or_404(user_id)
        if not privileged and not self.users.verify_password(user_id, old_password or ""):
            logger.warning(f"Password change for user {user_id} rejected: wrong old password")
            raise InvalidCredentials(errors={"old_password": [InvalidCredentials.default_message]})
        validate_password_policy(new_password, "new_password")

        self.users.set_password(user_id, new_password)
        commit_or_rollback(self.db)
        self.db.refresh(user)
        logger.info(f"Password for user {user_id} changed by {actor.id} (privileged={privileged})")
        return OperationResult(message="Your password has been changed.", user=user)

    def _set_flag(
        self, actor: User | None, user_id: int, flag: ThrottleFlag, value: bool, message: str
    ) -> OperationResult:
        require_capability(actor)
        user = self._get_user_or_404(user_id)
        self.users.set_flag(user_id, flag, value)
        commit_or_rollback(self.db)
        self.db.refresh(user)
        logger.info(f"User {user_id} {flag.value}={value} by {actor.id}")
        return OperationResult(message=message, user=user)

    def suspend(self, actor: User | None, user_id: int) -> OperationResult:
        return self._set_flag(
            actor, user_id, ThrottleFlag.SUSPENDED, True, "User has been suspended."
        )

    def unsuspend(self, actor: User | None, user_id: int) -> OperationResult:
        return self._set_flag(
            actor, user_id, ThrottleFlag.SUSPENDED, False, "Suspension removed for user."
        )

    def ban(self, actor: User | None, user_id: int) -> OperationResult:
        return self._set_flag(actor, user_id, ThrottleFlag.BANNED, True, "User has been banned.")

    def unban(self, actor: User | None, user_id: int) -> OperationResult:
        return self._set_flag(actor, user_id, ThrottleFlag.BANNED, False, "User has been unbanned.")

    def activate(self, actor: User | None, user_id: int) -> OperationResult:
        """Activate a pending user; activating an active user changes nothing."""
        require_capability(actor)
        user = self._get_user_or_404(user_id)
        if not user.activated:
            self.users.update(
                user_id,
                {"activated": True, "activated_at": datetime.now(UTC), "activation_code": None},
            )
            commit_or_rollback(self.db)
            self.db.refresh(user)
            logger.info(f"User {user_id} activated by {actor.id}")
        return OperationResult(message="User has been activated.", user=user)

    def activate_with_code(self, email: str, code: str) -> OperationResult:
        """Activate an account from the emailed link. Needs no principal."""
        user = self.users.find_by_email(email)
        if user is not None and user.activated:
            raise Conflict("This account has already been activated.")
        if (
            user is None
            or not user.activation_code
            or not secrets.compare_digest(user.activation_code, code)
        ):
            logger.warning("Rejected activation attempt with an invalid code")
            raise ValidationError(
                "The activation code is invalid.", errors={"code": ["Invalid activation code."]}
            )
        self.users.update(
            user.id,
            {"activated": True, "activated_at": datetime.now(UTC), "activation_code": None},
        )
        commit_or_rollback(self.db)
        self.db.refresh(user)
        logger.info(f"User {user.id} activated with their activation code")
        return OperationResult(message="Your account has been activated.", user=user)
