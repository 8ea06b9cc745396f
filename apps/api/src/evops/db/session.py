from collections.abc import Callable, Iterator
from typing import TypeVar

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from evops.core.config import settings

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

T = TypeVar("T")


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def add_or_get(db: Session, obj: T, lookup: Callable[[], T | None]) -> T:
    """Insert ``obj`` inside a savepoint and return it.

    If a concurrent transaction already inserted the same unique key, only the
    savepoint is rolled back and the row found by ``lookup`` is returned.
    """
    try:
        with db.begin_nested():
            db.add(obj)
    except IntegrityError:
        existing = lookup()
        if existing is None:
            raise
        return existing
    return obj
