from lingopal.models.base import Base
from lingopal.models.friend import (
    REQUEST_ACCEPTED,
    REQUEST_PENDING,
    FriendRequest,
    Friendship,
    ordered_pair,
)
from lingopal.models.user import User

__all__ = [
    "Base",
    "User",
    "FriendRequest",
    "Friendship",
    "REQUEST_PENDING",
    "REQUEST_ACCEPTED",
    "ordered_pair",
]
