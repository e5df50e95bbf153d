"""Friendship state machine and the friend-set queries built on it.

Every operation reads ``actor`` as the entity doing the call and the second
argument as the other party. Rows are directional (sender -> recipient) but
"the friendship between A and B" is always looked up in both orientations.
"""

import logging

from sqlmodel import Session, delete, select, update

import settings
from models.friendable import Friendable, Ref, ref
from models.friendship import (
    Friendship,
    FriendshipGroup,
    FriendshipStatus,
    where_group,
)
from models.types import utcnow
from services.events import EventDispatcher, FriendshipEvent, log_event
from utils.pagination import (
    PaginateType,
    count,
    get_or_paginate,
    resolve_paginator,
)

logger = logging.getLogger("friendships.service")


def _describe(model: Friendable) -> str:
    morph, ident = ref(model)
    return f"{morph}:{ident}"


class FriendshipService:
    def __init__(
        self,
        session: Session,
        *,
        groups: dict[str, int] | None = None,
        events: EventDispatcher | None = None,
        notify_noop: bool | None = None,
    ):
        self.session = session
        self.groups = dict(settings.FRIENDSHIP_GROUPS if groups is None else groups)
        self.events = events if events is not None else EventDispatcher(log_event)
        self.notify_noop = (
            settings.NOTIFY_NOOP_TRANSITIONS if notify_noop is None else notify_noop
        )

    # Internals
    def _group_id(self, group_slug: str | None) -> int | None:
        if not group_slug:
            return None
        return self.groups.get(group_slug)

    def _notify(
        self,
        event: FriendshipEvent,
        actor: Friendable,
        target: Friendable,
        affected: int | None = None,
    ):
        if affected == 0 and not self.notify_noop:
            logger.debug(f"Nothing changed, not notifying {event.value}")
            return
        self.events.emit(event, actor, target)

    def _exists(self, *criteria) -> bool:
        statement = select(Friendship.id).where(*criteria).limit(1)
        return self.session.exec(statement).first() is not None

    def _find_friendship(self, actor: Friendable, target: Friendable):
        return (
            select(Friendship)
            .where(Friendship.between(actor, target))
            .order_by(Friendship.id)
        )

    def _find_friendships(
        self,
        actor: Friendable,
        status: FriendshipStatus | str | None = None,
        group_slug: str | None = None,
    ):
        statement = select(Friendship).where(Friendship.involving(actor))
        if status is not None:
            statement = statement.where(
                Friendship.status == FriendshipStatus.coerce(status)
            )
        statement = where_group(statement, actor, self._group_id(group_slug))
        return statement.order_by(Friendship.id)

    def _delete_friendships(self, *criteria) -> int:
        ids = self.session.exec(select(Friendship.id).where(*criteria)).all()
        if not ids:
            return 0
        # bulk deletes skip the ORM cascade, drop the tags first
        self.session.exec(
            delete(FriendshipGroup).where(FriendshipGroup.friendship_id.in_(ids))
        )
        result = self.session.exec(delete(Friendship).where(Friendship.id.in_(ids)))
        return result.rowcount

    def _respond(
        self,
        actor: Friendable,
        sender: Friendable,
        status: FriendshipStatus,
        event: FriendshipEvent,
    ) -> int:
        result = self.session.exec(
            update(Friendship)
            .where(
                Friendship.between(actor, sender),
                Friendship.where_recipient(actor),
                Friendship.status == FriendshipStatus.pending,
            )
            .values(status=status, updated_at=utcnow())
        )
        self.session.commit()
        logger.debug(
            f"{_describe(actor)} {status.value} the request of {_describe(sender)}"
            f" ({result.rowcount} rows)"
        )
        self._notify(event, actor, sender, result.rowcount)
        return result.rowcount

    def _friend_refs(
        self, actor: Friendable, group_slug: str | None = None
    ) -> set[Ref]:
        """The other party of every accepted friendship of actor"""
        statement = select(
            Friendship.sender_type,
            Friendship.sender_id,
            Friendship.recipient_type,
            Friendship.recipient_id,
        ).where(
            Friendship.involving(actor),
            Friendship.status == FriendshipStatus.accepted,
        )
        statement = where_group(statement, actor, self._group_id(group_slug))
        refs = set()
        for sender_type, sender_id, recipient_type, recipient_id in self.session.exec(
            statement
        ):
            refs.add((sender_type, sender_id))
            refs.add((recipient_type, recipient_id))
        refs.discard(ref(actor))
        return refs

    def _mutual_refs(self, actor: Friendable, other: Friendable) -> set[Ref]:
        mutual = self._friend_refs(actor) & self._friend_refs(other)
        return mutual - {ref(actor), ref(other)}

    def _friends_of_friends_refs(
        self, actor: Friendable, group_slug: str | None = None
    ) -> set[Ref]:
        friends = self._friend_refs(actor)
        # the group only narrows which of actor's friends are followed
        seeds = self._friend_refs(actor, group_slug) if group_slug else friends
        if not seeds:
            return set()
        statement = select(
            Friendship.sender_type,
            Friendship.sender_id,
            Friendship.recipient_type,
            Friendship.recipient_id,
        ).where(
            Friendship.status == FriendshipStatus.accepted,
            Friendship.side_in(seeds),
        )
        refs = set()
        for sender_type, sender_id, recipient_type, recipient_id in self.session.exec(
            statement
        ):
            refs.add((sender_type, sender_id))
            refs.add((recipient_type, recipient_id))
        return refs - friends - {ref(actor)}

    @staticmethod
    def _of_model(refs: set[Ref], model: type) -> set[Ref]:
        morph = model.get_morph_class()
        return {r for r in refs if r[0] == morph}

    @staticmethod
    def _entities(model: type, refs: set[Ref]):
        """Select the `model` rows behind the refs carrying its morph class"""
        morph = model.get_morph_class()
        ids = sorted(ident for m, ident in refs if m == morph)
        return select(model).where(model.id.in_(ids)).order_by(model.id)

    # Transitions
    def befriend(self, actor: Friendable, recipient: Friendable) -> Friendship | bool:
        """Send a friend request, False when can_befriend refuses it"""
        if not self.can_befriend(actor, recipient):
            logger.debug(
                f"{_describe(actor)} cannot befriend {_describe(recipient)}"
            )
            return False
        friendship = Friendship.create(actor, recipient, FriendshipStatus.pending)
        self.session.add(friendship)
        self.session.commit()
        logger.debug(f"{_describe(actor)} befriended {_describe(recipient)}")
        self.events.emit(FriendshipEvent.sent, actor, recipient)
        return friendship

    def unfriend(self, actor: Friendable, target: Friendable) -> int:
        """Delete whatever links the two, whatever its status"""
        deleted = self._delete_friendships(Friendship.between(actor, target))
        self.session.commit()
        logger.debug(
            f"{_describe(actor)} unfriended {_describe(target)} ({deleted} rows)"
        )
        self._notify(FriendshipEvent.cancelled, actor, target, deleted)
        return deleted

    def accept_friend_request(self, actor: Friendable, sender: Friendable) -> int:
        return self._respond(
            actor, sender, FriendshipStatus.accepted, FriendshipEvent.accepted
        )

    def deny_friend_request(self, actor: Friendable, sender: Friendable) -> int:
        return self._respond(
            actor, sender, FriendshipStatus.denied, FriendshipEvent.denied
        )

    def block_friend(self, actor: Friendable, target: Friendable) -> Friendship:
        """Replace any friendship with a block sent by actor.

        When target already blocks actor their row is left in place, the two
        blocks then coexist.
        """
        if not self.is_blocked_by(actor, target):
            self._delete_friendships(Friendship.between(actor, target))
        friendship = Friendship.create(actor, target, FriendshipStatus.blocked)
        self.session.add(friendship)
        self.session.commit()
        logger.debug(f"{_describe(actor)} blocked {_describe(target)}")
        self.events.emit(FriendshipEvent.blocked, actor, target)
        return friendship

    def unblock_friend(self, actor: Friendable, target: Friendable) -> int:
        """Lift the blocks actor sent; a block received can't be lifted"""
        deleted = self._delete_friendships(
            Friendship.between(actor, target),
            Friendship.where_sender(actor),
            Friendship.status == FriendshipStatus.blocked,
        )
        self.session.commit()
        logger.debug(
            f"{_describe(actor)} unblocked {_describe(target)} ({deleted} rows)"
        )
        self._notify(FriendshipEvent.unblocked, actor, target, deleted)
        return deleted

    def group_friend(
        self, actor: Friendable, friend: Friendable, group_slug: str
    ) -> bool:
        """File an accepted friend under a group, True only when a tag is added"""
        group_id = self._group_id(group_slug)
        if group_id is None:
            return False
        friendship = self.session.exec(
            self._find_friendship(actor, friend).where(
                Friendship.status == FriendshipStatus.accepted
            )
        ).first()
        if friendship is None:
            return False

        morph, friend_id = ref(friend)
        existing = self.session.exec(
            select(FriendshipGroup).where(
                FriendshipGroup.friendship_id == friendship.id,
                FriendshipGroup.group_id == group_id,
                FriendshipGroup.friend_id == friend_id,
                FriendshipGroup.friend_type == morph,
            )
        ).first()
        if existing:
            return False

        self.session.add(
            FriendshipGroup(
                friendship_id=friendship.id,
                group_id=group_id,
                friend_id=friend_id,
                friend_type=morph,
            )
        )
        self.session.commit()
        logger.debug(
            f"{_describe(actor)} grouped {_describe(friend)} under {group_slug}"
        )
        return True

    def ungroup_friend(
        self, actor: Friendable, friend: Friendable, group_slug: str | None = None
    ) -> int:
        """Remove friend from one group, or from all of them without a slug"""
        if self.get_friendship(actor, friend) is None:
            return 0
        morph, friend_id = ref(friend)
        criteria = [
            FriendshipGroup.friendship_id.in_(
                select(Friendship.id).where(Friendship.between(actor, friend))
            ),
            FriendshipGroup.friend_id == friend_id,
            FriendshipGroup.friend_type == morph,
        ]
        group_id = self._group_id(group_slug)
        if group_id is not None:
            criteria.append(FriendshipGroup.group_id == group_id)
        result = self.session.exec(delete(FriendshipGroup).where(*criteria))
        self.session.commit()
        logger.debug(
            f"{_describe(actor)} ungrouped {_describe(friend)}"
            f" from {group_slug or 'all groups'} ({result.rowcount} tags)"
        )
        return result.rowcount

    # Relationship checks
    def can_befriend(self, actor: Friendable, target: Friendable) -> bool:
        """May actor send target a request?

        A block actor placed on target is lifted on the way, so blocking
        someone and then befriending them works in one call.
        """
        if ref(actor) == ref(target):
            return False
        if self.has_blocked(actor, target):
            self.unblock_friend(actor, target)
            return True
        return not self._exists(
            Friendship.between(actor, target),
            Friendship.status != FriendshipStatus.denied,
        )

    def is_friend_with(self, actor: Friendable, target: Friendable) -> bool:
        return self._exists(
            Friendship.between(actor, target),
            Friendship.status == FriendshipStatus.accepted,
        )

    def has_friend_request_from(self, actor: Friendable, sender: Friendable) -> bool:
        return self._exists(
            Friendship.where_sender(sender),
            Friendship.where_recipient(actor),
            Friendship.status == FriendshipStatus.pending,
        )

    def has_sent_friend_request_to(
        self, actor: Friendable, recipient: Friendable
    ) -> bool:
        return self._exists(
            Friendship.where_sender(actor),
            Friendship.where_recipient(recipient),
            Friendship.status == FriendshipStatus.pending,
        )

    def has_blocked(self, actor: Friendable, target: Friendable) -> bool:
        return self._exists(
            Friendship.where_sender(actor),
            Friendship.where_recipient(target),
            Friendship.status == FriendshipStatus.blocked,
        )

    def is_blocked_by(self, actor: Friendable, target: Friendable) -> bool:
        return self.has_blocked(target, actor)

    # Friendship rows
    def get_friendship(
        self, actor: Friendable, target: Friendable
    ) -> Friendship | None:
        return self.session.exec(self._find_friendship(actor, target)).first()

    def friendships_by_status(
        self,
        actor: Friendable,
        status: FriendshipStatus | str | None = None,
        group_slug: str | None = None,
    ) -> list[Friendship]:
        """Rows with actor on either side; status None matches them all"""
        return list(
            self.session.exec(self._find_friendships(actor, status, group_slug)).all()
        )

    def get_all_friendships(
        self, actor: Friendable, group_slug: str | None = None
    ) -> list[Friendship]:
        return self.friendships_by_status(actor, None, group_slug)

    def get_pending_friendships(
        self, actor: Friendable, group_slug: str | None = None
    ) -> list[Friendship]:
        return self.friendships_by_status(actor, FriendshipStatus.pending, group_slug)

    def get_accepted_friendships(
        self, actor: Friendable, group_slug: str | None = None
    ) -> list[Friendship]:
        return self.friendships_by_status(actor, FriendshipStatus.accepted, group_slug)

    def get_denied_friendships(self, actor: Friendable) -> list[Friendship]:
        return self.friendships_by_status(actor, FriendshipStatus.denied)

    def get_blocked_friendships(self, actor: Friendable) -> list[Friendship]:
        return self.friendships_by_status(actor, FriendshipStatus.blocked)

    def _friend_requests(self, actor: Friendable):
        return (
            select(Friendship)
            .where(
                Friendship.where_recipient(actor),
                Friendship.status == FriendshipStatus.pending,
            )
            .order_by(Friendship.id)
        )

    def get_friend_requests(self, actor: Friendable, per_page: int = 0, page: int = 1):
        """Incoming pending requests, paginated when per_page > 0"""
        return get_or_paginate(
            self.session, self._friend_requests(actor), per_page, page
        )

    def get_friend_requests_count(self, actor: Friendable) -> int:
        return count(self.session, self._friend_requests(actor))

    # Sender scoped listings
    def scoped_status_query(
        self, actor: Friendable, status: FriendshipStatus | str
    ):
        """Rows sent by actor with the given status"""
        status = FriendshipStatus.coerce(status)
        return (
            select(Friendship)
            .where(Friendship.where_sender(actor), Friendship.status == status)
            .order_by(Friendship.id)
        )

    def _scoped(self, actor, status, per_page, paginate_type, page):
        return resolve_paginator(
            self.session,
            self.scoped_status_query(actor, status),
            per_page,
            paginate_type,
            page,
        )

    def blocked_friends(
        self,
        actor: Friendable,
        per_page: int = 0,
        paginate_type: PaginateType | str = PaginateType.default,
        page: int = 1,
    ):
        return self._scoped(
            actor, FriendshipStatus.blocked, per_page, paginate_type, page
        )

    def accepted_friends(
        self,
        actor: Friendable,
        per_page: int = 0,
        paginate_type: PaginateType | str = PaginateType.default,
        page: int = 1,
    ):
        return self._scoped(
            actor, FriendshipStatus.accepted, per_page, paginate_type, page
        )

    def denied_friends(
        self,
        actor: Friendable,
        per_page: int = 0,
        paginate_type: PaginateType | str = PaginateType.default,
        page: int = 1,
    ):
        return self._scoped(
            actor, FriendshipStatus.denied, per_page, paginate_type, page
        )

    def pending_friends(
        self,
        actor: Friendable,
        per_page: int = 0,
        paginate_type: PaginateType | str = PaginateType.default,
        page: int = 1,
    ):
        return self._scoped(
            actor, FriendshipStatus.pending, per_page, paginate_type, page
        )

    # Friend sets, these return the friend entities, not Friendship rows
    def get_friends(
        self,
        actor: Friendable,
        per_page: int = 0,
        group_slug: str | None = None,
        *,
        page: int = 1,
        model: type | None = None,
    ):
        statement = self._entities(
            model or type(actor), self._friend_refs(actor, group_slug)
        )
        return get_or_paginate(self.session, statement, per_page, page)

    def get_friends_count(
        self,
        actor: Friendable,
        group_slug: str | None = None,
        *,
        model: type | None = None,
    ) -> int:
        """Same set as get_friends, so the same entity type"""
        return len(
            self._of_model(
                self._friend_refs(actor, group_slug), model or type(actor)
            )
        )

    def get_mutual_friends(
        self,
        actor: Friendable,
        other: Friendable,
        per_page: int = 0,
        *,
        page: int = 1,
        model: type | None = None,
    ):
        statement = self._entities(
            model or type(actor), self._mutual_refs(actor, other)
        )
        return get_or_paginate(self.session, statement, per_page, page)

    def get_mutual_friends_count(
        self, actor: Friendable, other: Friendable, *, model: type | None = None
    ) -> int:
        return len(
            self._of_model(self._mutual_refs(actor, other), model or type(actor))
        )

    def get_friends_of_friends(
        self,
        actor: Friendable,
        per_page: int = 0,
        group_slug: str | None = None,
        *,
        page: int = 1,
        model: type | None = None,
    ):
        """People one accepted hop away from actor's friends.

        With a group slug only the friends actor filed under that group are
        followed. Neither actor nor any of its direct friends is part of the
        result.
        """
        statement = self._entities(
            model or type(actor), self._friends_of_friends_refs(actor, group_slug)
        )
        return get_or_paginate(self.session, statement, per_page, page)
