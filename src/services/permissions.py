"""Capability checks run before every administrative operation."""

import logging

from src.models.user import User
from src.services.exceptions import Forbidden

logger = logging.getLogger(__name__)

ADMIN = "admin"


def require_capability(principal: User | None, capability: str = ADMIN) -> User:
    """Raise Forbidden unless the principal holds the capability."""
    if principal is None or not principal.has_access(capability):
        logger.warning(
            f"Denied '{capability}' to user {principal.id if principal is not None else None}"
        )
        raise Forbidden(f"You need the '{capability}' permission to do that.")
    return principal


def require_self_or_capability(
    principal: User | None, user_id: int, capability: str = ADMIN
) -> bool:
    """Allow the principal to act on their own account or with the capability.

    Returns True when access was granted through the capability.
    """
    if principal is not None and principal.has_access(capability):
        return True
    if principal is not None and principal.id == user_id:
        return False
    require_capability(principal, capability)
    return True
