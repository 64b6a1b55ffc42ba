"""Authentication service for JWT and password handling."""

import logging
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from src.config import get_settings
from src.models.user import User
from src.services.exceptions import Forbidden

logger = logging.getLogger(__name__)

settings = get_settings()

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def create_access_token(user_id: int, email: str, session_version: int = 1) -> str:
    """Create a JWT access token bound to the user's current session version."""
    expire = datetime.now(UTC) + timedelta(minutes=settings.jwt_expiration_minutes)
    to_encode = {
        "sub": str(user_id),
        "email": email,
        "ver": session_version,
        "exp": expire,
    }
    encoded_jwt = jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return encoded_jwt


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return payload
    except JWTError:
        return None


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    """Authenticate a user by email and password.

    Returns None on unknown email or wrong password. Raises Forbidden for
    banned, suspended or not yet activated accounts. Failed attempts are
    counted and the account is suspended once the configured limit is hit.
    """
    from src.services.user_store import UserStore

    store = UserStore(db)
    user = store.find_by_email(email)
    if not user:
        return None

    if user.is_banned:
        logger.warning(f"Login rejected for banned user {user.id}")
        raise Forbidden("This account has been banned.")
    if user.is_suspended:
        logger.warning(f"Login rejected for suspended user {user.id}")
        raise Forbidden("This account has been suspended.")
    if user.throttle is not None and user.throttle.suspended:
        # Lapsed suspension: start counting failures from zero again
        user.throttle.unsuspend()

    if not verify_password(password, user.password_hash):
        throttle = store.get_throttle(user.id)
        throttle.add_attempt()
        if throttle.attempts >= settings.throttle_attempt_limit:
            throttle.suspend(settings.suspension_minutes)
            logger.warning(f"User {user.id} suspended after {throttle.attempts} failed logins")
        db.commit()
        return None

    if not user.activated:
        raise Forbidden("This account has not been activated.")

    store.get_throttle(user.id).clear_attempts()
    user.last_login = datetime.now(UTC)
    db.commit()
    db.refresh(user)
    return user
