"""Models package for the friendships backend"""

from .common import get_session, CamelModel
from .friendable import Friendable, FriendableMixin, ref
from .friendship import (
    Friendship,
    FriendshipGroup,
    FriendshipStatus,
    InvalidStatus,
    where_group,
)
from .types import UtcAwareDateTime
from .user import User

__all__ = [
    "CamelModel",
    "Friendable",
    "FriendableMixin",
    "Friendship",
    "FriendshipGroup",
    "FriendshipStatus",
    "InvalidStatus",
    "User",
    "UtcAwareDateTime",
    "get_session",
    "ref",
    "where_group",
]
