"""Reversible obfuscation of internal user ids for use in URLs."""

from functools import lru_cache

from hashids import Hashids

from src.config import get_settings
from src.services.exceptions import DecodeError


class IdentifierCodec:
    """Encode sequential ids as hashids and decode them back."""

    def __init__(self, salt: str, min_length: int = 0):
        self._hashids = Hashids(salt=salt, min_length=min_length)

    def encode(self, internal_id: int) -> str:
        if internal_id < 0:
            raise ValueError("Identifiers must be non-negative")
        return self._hashids.encode(internal_id)

    def decode(self, token: str) -> int:
        """Decode a token produced by ``encode``.

        Anything else, including tokens that decode to several numbers or
        that are not the canonical encoding of their value, raises DecodeError.
        """
        if not token:
            raise DecodeError("Empty identifier")
        try:
            values = self._hashids.decode(token)
        except (ValueError, TypeError) as e:
            raise DecodeError(f"Malformed identifier: {token!r}") from e
        if len(values) != 1:
            raise DecodeError(f"Malformed identifier: {token!r}")
        internal_id = values[0]
        if self._hashids.encode(internal_id) != token:
            raise DecodeError(f"Malformed identifier: {token!r}")
        return internal_id


@lru_cache
def get_identifier_codec() -> IdentifierCodec:
    """Get the codec configured from settings."""
    settings = get_settings()
    return IdentifierCodec(settings.hashids_salt, settings.hashids_min_length)
