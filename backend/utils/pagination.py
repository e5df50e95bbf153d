"""Turn a select statement into a full list or a page of it.

A per-page size of 0 (or below) means "everything"; any positive size returns
one page.
"""

import math
from enum import Enum
from typing import Generic, TypeVar

from sqlmodel import Session, func, select

from models.common import CamelModel

T = TypeVar("T")


class InvalidPaginationType(ValueError):
    pass


class PaginateType(str, Enum):
    default = "default"  # length aware, runs a COUNT(*)
    simple = "simple"  # only knows if there is a next page


class _BasePage(CamelModel, Generic[T]):
    items: list[T]
    per_page: int
    current_page: int

    def __len__(self):
        return len(self.items)


class Page(_BasePage[T], Generic[T]):
    total: int

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def has_more_pages(self) -> bool:
        return self.current_page < self.last_page


class SimplePage(_BasePage[T], Generic[T]):
    has_more_pages: bool


def count(session: Session, statement) -> int:
    subquery = statement.order_by(None).subquery()
    return session.exec(select(func.count()).select_from(subquery)).one()


def _offset(statement, per_page: int, page: int):
    return statement.offset((page - 1) * per_page)


def paginate(session: Session, statement, per_page: int, page: int = 1) -> Page:
    page = max(page, 1)
    items = session.exec(_offset(statement, per_page, page).limit(per_page)).all()
    return Page(
        items=list(items),
        total=count(session, statement),
        per_page=per_page,
        current_page=page,
    )


def simple_paginate(
    session: Session, statement, per_page: int, page: int = 1
) -> SimplePage:
    page = max(page, 1)
    # one extra row tells whether a next page exists
    items = list(
        session.exec(_offset(statement, per_page, page).limit(per_page + 1)).all()
    )
    return SimplePage(
        items=items[:per_page],
        per_page=per_page,
        current_page=page,
        has_more_pages=len(items) > per_page,
    )


def _wants_everything(per_page: int | None) -> bool:
    return per_page is None or per_page <= 0


def get_or_paginate(session: Session, statement, per_page: int | None, page: int = 1):
    if _wants_everything(per_page):
        return list(session.exec(statement).all())
    return paginate(session, statement, per_page, page)


def resolve_paginator(
    session: Session,
    statement,
    per_page: int | None = 0,
    paginate_type: PaginateType | str = PaginateType.default,
    page: int = 1,
):
    """Pick the pagination style: a list, a Page or a SimplePage"""
    try:
        paginate_type = PaginateType(paginate_type)
    except ValueError:
        raise InvalidPaginationType(
            f"Unknown pagination type: {paginate_type!r}"
        ) from None

    if _wants_everything(per_page):
        return list(session.exec(statement).all())
    if paginate_type is PaginateType.simple:
        return simple_paginate(session, statement, per_page, page)
    return paginate(session, statement, per_page, page)
