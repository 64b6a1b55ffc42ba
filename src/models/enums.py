"""Enums for model fields."""

from enum import Enum


class UserStatus(str, Enum):
    """Account status derived from activation and throttle flags.

    Precedence when several apply: BANNED > SUSPENDED > ACTIVE/PENDING.
    """

    PENDING = "Pending"
    ACTIVE = "Active"
    SUSPENDED = "Suspended"
    BANNED = "Banned"


class ThrottleFlag(str, Enum):
    """Lock flags stored on a user's throttle record."""

    SUSPENDED = "suspended"
    BANNED = "banned"
