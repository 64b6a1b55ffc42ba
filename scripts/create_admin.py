#!/usr/bin/env python3
"""Bootstrap an administrator account.

Creates an "Admins" group granting the admin permission (if missing) and an
activated user belonging to it. Running it again for an existing email only
makes sure that user is active and in the group.

Usage:
    ADMIN_EMAIL=admin@example.com ADMIN_PASSWORD=secret123 python scripts/create_admin.py
"""

import os
import sys
from datetime import UTC, datetime

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.database import Base, SessionLocal, engine
from src.models import Group, User
from src.services.account_service import validate_password_policy
from src.services.auth import get_password_hash
from src.services.exceptions import ValidationError
from src.services.group_store import GroupStore
from src.services.user_store import UserStore

ADMIN_GROUP_NAME = "Admins"


def create_admin(email: str, password: str) -> None:
    """Create or repair the bootstrap administrator."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    users = UserStore(session)
    groups = GroupStore(session)

    try:
        group = groups.find_by_name(ADMIN_GROUP_NAME)
        if group is None:
            group = Group(name=ADMIN_GROUP_NAME, permissions={"admin": True, "users": True})
            groups.insert(group)
            print(f"Created group '{ADMIN_GROUP_NAME}'")

        user = users.find_by_email(email)
        if user is None:
            user = User(
                email=email,
                password_hash=get_password_hash(password),
                permissions={},
                activated=True,
                activated_at=datetime.now(UTC),
                session_version=1,
            )
            users.insert(user)
            print(f"Created admin user {email}")
        elif not user.activated:
            users.update(user.id, {"activated": True, "activated_at": datetime.now(UTC)})

        current = [g.id for g in user.groups]
        if group.id not in current:
            groups.set_memberships(user.id, current + [group.id])

        session.commit()
        print(f"{email} is an administrator")
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    admin_email = os.getenv("ADMIN_EMAIL")
    admin_password = os.getenv("ADMIN_PASSWORD")
    if not admin_email or not admin_password:
        sys.exit("ADMIN_EMAIL and ADMIN_PASSWORD must be set")
    try:
        validate_password_policy(admin_password)
    except ValidationError as e:
        sys.exit(e.message)
    create_admin(admin_email, admin_password)
