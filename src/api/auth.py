"""Authentication API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import EmailStr
from sqlalchemy.orm import Session

from src.api.dependencies import get_account_service, get_current_user
from src.database import get_db
from src.models.user import User
from src.schemas.auth import AccountActivation, AuthResponse, UserLogin
from src.schemas.user import UserActionResponse, UserResponse
from src.services.account_service import AccountService
from src.services.auth import authenticate_user, create_access_token
from src.services.identifiers import IdentifierCodec, get_identifier_codec

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    db: Annotated[Session, Depends(get_db)],
    codec: Annotated[IdentifierCodec, Depends(get_identifier_codec)],
):
    """Login with email and password."""
    user = authenticate_user(db, credentials.email, credentials.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(user.id, user.email, user.session_version)

    return AuthResponse(
        access_token=access_token,
        user=UserResponse.from_user(user, codec),
    )


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
    codec: Annotated[IdentifierCodec, Depends(get_identifier_codec)],
):
    """Get current user information."""
    return UserResponse.from_user(current_user, codec)


@router.post("/logout")
async def logout(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Logout (client should discard token)."""
    return {"message": "Logged out successfully"}


def _activate(
    accounts: AccountService, codec: IdentifierCodec, email: str, code: str
) -> UserActionResponse:
    result = accounts.activate_with_code(email, code)
    return UserActionResponse(
        message=result.message, user=UserResponse.from_user(result.user, codec)
    )


@router.get("/activate", response_model=UserActionResponse)
async def activate_from_link(
    email: Annotated[EmailStr, Query()],
    code: Annotated[str, Query(min_length=1, max_length=128)],
    accounts: Annotated[AccountService, Depends(get_account_service)],
    codec: Annotated[IdentifierCodec, Depends(get_identifier_codec)],
):
    """Activate an account by following the link in the activation notice."""
    return _activate(accounts, codec, email, code)


@router.post("/activate", response_model=UserActionResponse)
async def activate(
    activation: AccountActivation,
    accounts: Annotated[AccountService, Depends(get_account_service)],
    codec: Annotated[IdentifierCodec, Depends(get_identifier_codec)],
):
    """Activate an account with the emailed code."""
    return _activate(accounts, codec, activation.email, activation.code)
