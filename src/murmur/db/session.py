"""Database session configuration."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Generator
from typing import Any, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from murmur.core.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")
SessionFactory = Callable[[], Session]


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import murmur.models  # noqa: E402,F401

_connect_args = (
    {"check_same_thread": False}
    if settings.effective_database_url.startswith("sqlite")
    else {}
)

engine = create_engine(
    settings.effective_database_url,
    pool_pre_ping=True,
    echo=settings.sql_debug,
    connect_args=_connect_args,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


async def run_in_session(
    session_factory: SessionFactory,
    func: Callable[..., T],
    *args: Any,
    **kwargs: Any,
) -> T:
    """Run ``func(db, *args, **kwargs)`` in a worker thread with its own session.

    The event loop stays free for other connections while the unit of work runs.
    Data-store errors are rolled back, logged and re-raised as ``PersistenceFailure``.
    """
    from murmur.services.errors import PersistenceFailure

    def _work() -> T:
        db = session_factory()
        try:
            return func(db, *args, **kwargs)
        except SQLAlchemyError as err:
            db.rollback()
            logger.error("Persistence failure in %s: %s", func.__name__, err, exc_info=True)
            raise PersistenceFailure() from err
        finally:
            db.close()

    return await asyncio.to_thread(_work)
