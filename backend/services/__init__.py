from .events import EventDispatcher, FriendshipEvent, log_event
from .friendship import FriendshipService

__all__ = ["EventDispatcher", "FriendshipEvent", "FriendshipService", "log_event"]
