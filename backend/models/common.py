"""Common database utilities and base models"""

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlmodel import SQLModel, create_engine, Session

import logging

logger = logging.getLogger("friendships.db")


def get_engine():  # pragma: no cover
    from settings import DATABASE_URL

    return create_engine(DATABASE_URL)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def get_session() -> Generator[Session, None, None]:  # pragma: no cover
    """Yield a database session, always closes it."""
    session = Session(get_engine(), expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()


@contextmanager
def get_db() -> Generator[Session, None, None]:  # pragma: no cover
    """Context manager for database session.

    A failing block is rolled back and the error re-raised, so a transition
    never leaves half of its statements applied.
    """
    engine = get_engine()
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
    except Exception as e:
        logger.exception(f"Exception in the database session rolling back - {e}")
        session.rollback()
        raise
    finally:
        session.close()
        engine.dispose()


def create_tables(engine) -> None:
    """Create every registered table, used by tests and throwaway databases"""
    # register the tables on SQLModel.metadata
    from . import friendship, user  # noqa: F401

    SQLModel.metadata.create_all(engine)


def update_database():  # pragma: no cover
    """Init the DB or run the Alembic migrations"""
    import alembic.config

    import settings

    if not Path("alembic.ini").is_file():
        os.chdir(settings.BACKEND_DIR)

    try:
        alembic.config.main(
            argv=[
                "--raiseerr",
                "upgrade",
                "head",
            ]
        )
    except Exception as e:
        logger.exception(f"Cannot run DB migrations: {e}")
        raise
