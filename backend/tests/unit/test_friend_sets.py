import pytest
from sqlmodel import SQLModel, Field

from models.friendable import FriendableMixin
from utils.pagination import Page


def ids(entities):
    return sorted(e.id for e in entities)


@pytest.fixture
def network(make_users, befriended, service):
    """
    u1 - u2 - u5
     \\   |
      \\  u3 - u6
       u4       (u4 has a pending request to u6, u7 is blocked by u1)
    """
    u1, u2, u3, u4, u5, u6, u7 = make_users(7)
    befriended(u1, u2)
    befriended(u1, u3)
    befriended(u4, u1)
    befriended(u2, u3)
    befriended(u2, u5)
    befriended(u6, u3)
    service.befriend(u4, u6)
    service.block_friend(u1, u7)
    return u1, u2, u3, u4, u5, u6, u7


def test_friends_are_collected_from_both_directions(service, network):
    u1, u2, u3, u4, u5, u6, u7 = network

    assert ids(service.get_friends(u1)) == ["u2", "u3", "u4"]
    assert ids(service.get_friends(u3)) == ["u1", "u2", "u6"]
    assert ids(service.get_friends(u7)) == []
    assert service.get_friends_count(u1) == 3
    assert service.get_friends_count(u6) == 1


def test_pending_and_blocked_are_not_friends(service, network):
    u1, u2, u3, u4, u5, u6, u7 = network

    assert "u6" not in ids(service.get_friends(u4))
    assert "u7" not in ids(service.get_friends(u1))


def test_mutual_friends(service, network):
    u1, u2, u3, u4, u5, u6, u7 = network

    assert ids(service.get_mutual_friends(u1, u2)) == ["u3"]
    assert ids(service.get_mutual_friends(u2, u1)) == ["u3"]
    assert ids(service.get_mutual_friends(u1, u3)) == ["u2"]
    assert ids(service.get_mutual_friends(u4, u5)) == []
    assert service.get_mutual_friends_count(u1, u2) == 1
    assert service.get_mutual_friends_count(u5, u6) == 0


def test_mutual_friends_never_contain_the_pair(service, network):
    u1, u2, u3, *_ = network

    # u1 and u2 are each other's friend, and both friends of u3
    mutual = ids(service.get_mutual_friends(u2, u3))
    assert mutual == ["u1"]
    assert "u2" not in mutual and "u3" not in mutual


def test_friends_of_friends(service, network):
    u1, u2, u3, u4, u5, u6, u7 = network

    fof = ids(service.get_friends_of_friends(u1))
    assert fof == ["u5", "u6"]
    friends = set(ids(service.get_friends(u1)))
    assert not (set(fof) & (friends | {"u1"}))

    assert ids(service.get_friends_of_friends(u5)) == ["u1", "u3"]
    assert ids(service.get_friends_of_friends(u7)) == []


def test_friends_of_friends_in_a_group(service, network):
    u1, u2, u3, *_ = network

    # a tag filed by u2 says nothing about u1's groups
    assert service.group_friend(u2, u3, "family")
    assert ids(service.get_friends_of_friends(u1, 0, "family")) == []

    assert service.group_friend(u1, u2, "family")
    assert ids(service.get_friends_of_friends(u1, 0, "family")) == ["u5"]

    assert service.group_friend(u1, u3, "family")
    assert ids(service.get_friends_of_friends(u1, 0, "family")) == ["u5", "u6"]
    assert service.get_friends_of_friends(u1, 1, "family").total == 2

    assert ids(service.get_friends_of_friends(u1, 0, "close_friends")) == []


def test_paginated_friends(service, network):
    u1, *_ = network

    everything = service.get_friends(u1, 0)
    assert isinstance(everything, list)
    assert len(everything) == 3

    page = service.get_friends(u1, 2)
    assert isinstance(page, Page)
    assert len(page) == 2
    assert page.total == 3
    assert page.last_page == 2
    assert page.has_more_pages

    last = service.get_friends(u1, 2, page=2)
    assert ids(last.items) == ["u4"]
    assert not last.has_more_pages

    assert service.get_mutual_friends(u1, network[1], 5).total == 1
    assert service.get_friends_of_friends(u1, 1).total == 2


class Bot(FriendableMixin, SQLModel, table=True):
    __tablename__ = "bots"

    id: str = Field(primary_key=True)
    name: str


def test_friends_of_another_type(service, make_users, test_session, test_engine):
    Bot.__table__.create(test_engine, checkfirst=True)
    u1, u2 = make_users(2)
    # same id as a user, different morph class
    bot = Bot(id="u2", name="Helper")
    test_session.add(bot)
    test_session.commit()

    service.befriend(u1, bot)
    service.accept_friend_request(bot, u1)

    assert service.is_friend_with(u1, bot)
    assert not service.is_friend_with(u1, u2)
    assert service.get_friends(u1) == []
    assert [b.name for b in service.get_friends(u1, model=Bot)] == ["Helper"]
    assert service.get_friends_count(u1) == 0
    assert service.get_friends_count(u1, model=Bot) == 1
    assert service.get_friends_count(u1, model=type(u1)) == 0
    assert ids(service.get_friends(bot, model=type(u1))) == ["u1"]


def test_counts_match_the_listed_friends(
    service, make_users, befriended, test_session, test_engine
):
    Bot.__table__.create(test_engine, checkfirst=True)
    u1, u2, u3 = make_users(3)
    bot = Bot(id="b1", name="Helper")
    test_session.add(bot)
    test_session.commit()

    befriended(u1, u2)
    befriended(u1, bot)
    befriended(u3, bot)
    befriended(u3, u2)

    friends = service.get_friends(u1)
    assert ids(friends) == ["u2"]
    assert service.get_friends_count(u1) == len(friends)
    assert service.get_friends(u1, 5).total == service.get_friends_count(u1)
    assert service.get_friends_count(u1, model=Bot) == 1

    mutual = service.get_mutual_friends(u1, u3)
    assert ids(mutual) == ["u2"]
    assert service.get_mutual_friends_count(u1, u3) == len(mutual)
    assert service.get_mutual_friends_count(u1, u3, model=Bot) == 1
