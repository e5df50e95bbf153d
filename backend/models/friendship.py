import datetime
from enum import Enum

from sqlalchemy import UniqueConstraint, Column, and_, false, or_
from sqlmodel import SQLModel, Field, Relationship

import settings
from .friendable import Friendable, Ref
from .types import UtcAwareDateTime, utcnow


class InvalidStatus(ValueError):
    """A status-scoped query was given something that isn't a FriendshipStatus"""


class FriendshipStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    denied = "denied"
    blocked = "blocked"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            return cls.__members__.get(value.lower())
        return None

    @classmethod
    def coerce(cls, value: "FriendshipStatus | str") -> "FriendshipStatus":
        try:
            return cls(value)
        except ValueError:
            raise InvalidStatus(
                f"Status parameter isn't a valid status type: {value!r}"
            ) from None


class Friendship(SQLModel, table=True):
    """A directed edge, sender -> recipient. Symmetric once accepted."""

    __tablename__ = settings.FRIENDSHIPS_TABLE

    id: int | None = Field(default=None, primary_key=True)

    # Polymorphic ends of the edge, fixed at creation
    sender_id: str = Field(index=True)
    sender_type: str = Field(index=True)
    recipient_id: str = Field(index=True)
    recipient_type: str = Field(index=True)

    status: FriendshipStatus = Field(default=FriendshipStatus.pending, index=True)

    created_at: datetime.datetime = Field(
        default_factory=utcnow,
        sa_column=Column(UtcAwareDateTime(), nullable=False),
    )
    updated_at: datetime.datetime | None = Field(
        default=None,
        sa_column=Column(UtcAwareDateTime(), nullable=True),
    )

    groups: list["FriendshipGroup"] = Relationship(
        back_populates="friendship", cascade_delete=True
    )

    @classmethod
    def create(
        cls, sender: Friendable, recipient: Friendable, status: FriendshipStatus
    ) -> "Friendship":
        return cls(
            sender_id=str(sender.id),
            sender_type=sender.get_morph_class(),
            recipient_id=str(recipient.id),
            recipient_type=recipient.get_morph_class(),
            status=status,
        )

    # Query helpers
    @classmethod
    def where_sender(cls, model: Friendable):
        return and_(
            cls.sender_id == str(model.id),
            cls.sender_type == model.get_morph_class(),
        )

    @classmethod
    def where_recipient(cls, model: Friendable):
        return and_(
            cls.recipient_id == str(model.id),
            cls.recipient_type == model.get_morph_class(),
        )

    @classmethod
    def between(cls, a: Friendable, b: Friendable):
        """Rows linking a and b, whichever of them sent it"""
        return or_(
            and_(cls.where_sender(a), cls.where_recipient(b)),
            and_(cls.where_sender(b), cls.where_recipient(a)),
        )

    @classmethod
    def involving(cls, model: Friendable):
        return or_(cls.where_sender(model), cls.where_recipient(model))

    @classmethod
    def side_in(cls, refs: set[Ref]):
        """Rows where either side is one of the given (morph, id) refs"""
        clauses = []
        for morph in sorted({morph for morph, _ in refs}):
            ids = sorted(str(ident) for m, ident in refs if m == morph)
            clauses.append(and_(cls.sender_type == morph, cls.sender_id.in_(ids)))
            clauses.append(
                and_(cls.recipient_type == morph, cls.recipient_id.in_(ids))
            )
        return or_(false(), *clauses)

    def sender_ref(self) -> Ref:
        return self.sender_type, self.sender_id

    def recipient_ref(self) -> Ref:
        return self.recipient_type, self.recipient_id


class FriendshipGroup(SQLModel, table=True):
    """One party's classification of an accepted friendship.

    ``friend_*`` points at the party being filed under the group, so each side
    of a friendship keeps its own tags.
    """

    __tablename__ = settings.FRIENDSHIP_GROUPS_TABLE
    __table_args__ = (
        UniqueConstraint(
            "friendship_id",
            "group_id",
            "friend_id",
            "friend_type",
            name="uq_friendship_group",
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    friendship_id: int = Field(
        foreign_key=f"{settings.FRIENDSHIPS_TABLE}.id",
        ondelete="CASCADE",
        index=True,
    )
    group_id: int = Field(index=True)
    friend_id: str
    friend_type: str

    friendship: Friendship | None = Relationship(back_populates="groups")


def where_group(statement, model: Friendable, group_id: int | None):
    """Restrict a Friendship statement to the rows `model` filed under group_id.

    The tags that count are the ones naming the other party, that is the ones
    whose friend is not `model` itself.
    """
    if group_id is None:
        return statement
    morph = model.get_morph_class()
    return statement.join(
        FriendshipGroup,
        and_(
            FriendshipGroup.friendship_id == Friendship.id,
            FriendshipGroup.group_id == group_id,
            or_(
                and_(
                    FriendshipGroup.friend_id != str(model.id),
                    FriendshipGroup.friend_type == morph,
                ),
                FriendshipGroup.friend_type != morph,
            ),
        ),
    )
