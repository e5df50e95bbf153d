import logging
from enum import Enum
from typing import Callable

from models.friendable import Friendable
from utils.logs import ratelimited_log

logger = logging.getLogger("friendships.events")


class FriendshipEvent(str, Enum):
    sent = "sent"
    accepted = "accepted"
    denied = "denied"
    cancelled = "cancelled"
    blocked = "blocked"
    unblocked = "unblocked"


Handler = Callable[[FriendshipEvent, Friendable, Friendable], None]


def log_event(event: FriendshipEvent, actor: Friendable, target: Friendable) -> None:
    logger.info(
        f"{event.value}: {actor.get_morph_class()}:{actor.id}"
        f" -> {target.get_morph_class()}:{target.id}"
    )


class EventDispatcher:
    """Fire and forget notifications for friendship transitions.

    Handlers run after the transition is committed; whatever they raise is
    logged and dropped, the transition result stands.
    """

    def __init__(self, *handlers: Handler):
        self._handlers: list[tuple[Handler, frozenset[FriendshipEvent]]] = []
        for handler in handlers:
            self.subscribe(handler)

    def subscribe(self, handler: Handler, *events: FriendshipEvent) -> Handler:
        """Register a handler for some events, all of them when none is given"""
        wanted = frozenset(FriendshipEvent(e) for e in events) or frozenset(
            FriendshipEvent
        )
        self._handlers.append((handler, wanted))
        return handler

    def unsubscribe(self, handler: Handler) -> None:
        self._handlers = [(h, e) for h, e in self._handlers if h is not handler]

    def emit(
        self, event: FriendshipEvent, actor: Friendable, target: Friendable
    ) -> None:
        logger.debug(f"Emitting {event.value} to {len(self._handlers)} handlers")
        for handler, events in list(self._handlers):
            if event not in events:
                continue
            try:
                handler(event, actor, target)
            except Exception as e:
                name = getattr(handler, "__name__", repr(handler))
                ratelimited_log(
                    logger.exception,
                    f"Friendship {event.value} handler {name} failed: {e}",
                )
