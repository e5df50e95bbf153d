"""The contract an entity has to honour to take part in friendships.

Friendship rows store polymorphic references: an id plus a "morph" string
naming the entity type, so users, pages or bots can all befriend each other
through the same two tables.
"""

from typing import Any, Protocol, runtime_checkable

Ref = tuple[str, Any]


@runtime_checkable
class Friendable(Protocol):
    id: Any

    @classmethod
    def get_morph_class(cls) -> str: ...


class FriendableMixin:
    """Default morph class for SQLModel tables: the table name."""

    @classmethod
    def get_morph_class(cls) -> str:
        return getattr(cls, "__tablename__", None) or cls.__name__.lower()


def ref(model: Friendable) -> Ref:
    """(morph, id) identity, ids are compared as strings like the tables store them"""
    return model.get_morph_class(), str(model.id)
