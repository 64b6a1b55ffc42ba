"""FastAPI dependencies for authentication, services and identifiers."""

from typing import Annotated

from fastapi import Depends, HTTPException, Path, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from src.database import get_db
from src.models.user import User
from src.services.account_service import AccountService
from src.services.auth import decode_access_token
from src.services.exceptions import DecodeError, NotFound
from src.services.group_service import GroupService
from src.services.identifiers import IdentifierCodec, get_identifier_codec
from src.services.permissions import ADMIN, require_capability

security = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token.

    Tokens issued before the user's last password change or ban carry a
    stale session version and are rejected.
    """
    token = credentials.credentials
    payload = decode_access_token(token)

    if payload is None:
        raise _unauthorized("Invalid authentication credentials")

    user_id = payload.get("sub")
    if user_id is None:
        raise _unauthorized("Invalid authentication credentials")

    user = db.get(User, int(user_id))
    if user is None:
        raise _unauthorized("User not found")

    if payload.get("ver") != user.session_version:
        raise _unauthorized("Session has expired")

    if user.is_banned:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This account has been banned.",
        )

    return user


def get_account_service(
    db: Annotated[Session, Depends(get_db)],
) -> AccountService:
    """Get account service with dependencies."""
    return AccountService(db)


def get_group_service(
    db: Annotated[Session, Depends(get_db)],
) -> GroupService:
    """Get group service with dependencies."""
    return GroupService(db)


def get_user_id(
    user_hash: Annotated[str, Path(description="Obfuscated user identifier")],
    codec: Annotated[IdentifierCodec, Depends(get_identifier_codec)],
) -> int:
    """Decode the obfuscated user id from the URL; undecodable ids are 404s."""
    try:
        return codec.decode(user_hash)
    except DecodeError as e:
        raise NotFound() from e


def get_admin_user(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Guard for admin-only routes; runs before the route body and its service call."""
    return require_capability(current_user, ADMIN)
