"""User model, the friendable entity shipped with the package"""

import datetime

from sqlalchemy import func
from sqlmodel import SQLModel, Field, Column

from .common import CamelModel
from .friendable import FriendableMixin
from .types import UtcAwareDateTime, utcnow


class User(FriendableMixin, SQLModel, CamelModel, table=True):
    __tablename__ = "users"

    id: str = Field(primary_key=True)
    name: str
    email: str = Field(unique=True, index=True)
    username: str | None = Field(default=None, index=True, unique=True, nullable=True)
    created_at: datetime.datetime = Field(
        default_factory=utcnow,
        sa_column=Column(UtcAwareDateTime(), nullable=False),
    )
    updated_at: datetime.datetime | None = Field(
        default=None,
        sa_column=Column(UtcAwareDateTime(), onupdate=func.now(), nullable=True),
    )

    def __str__(self):
        return self.username or self.email
