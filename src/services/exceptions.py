"""Error kinds raised by the account administration services.

Every error carries a message that can be shown to an end user as-is.
"""

from fastapi import status


class AccountServiceError(Exception):
    """Base class for account administration failures."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "The request could not be completed."

    def __init__(self, message: str | None = None, errors: dict[str, list[str]] | None = None):
        self.message = message or self.default_message
        self.errors = errors or {}
        super().__init__(self.message)


class Forbidden(AccountServiceError):
    """The acting principal lacks the required capability."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You are not permitted to do that."


class NotFound(AccountServiceError):
    """A user, group or decoded identifier does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "User not found."


class ValidationError(AccountServiceError):
    """One or more fields are invalid; ``errors`` maps field to messages."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "The given data was invalid."


class Conflict(AccountServiceError):
    """A unique constraint would be violated."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "That record already exists."


class InvalidCredentials(AccountServiceError):
    """The old password did not match."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "You did not provide the correct original password."


class Unavailable(AccountServiceError):
    """The data store timed out or could not be reached. Safe to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "The account store is temporarily unavailable. Please try again."


class DecodeError(ValueError):
    """An external identifier could not be decoded."""
