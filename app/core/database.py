"""Database connection, session management and transactional scopes."""

import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.exc import NoResultFound, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import settings
from app.core.errors import AppError, InternalError, NotFoundError

logger = logging.getLogger(__name__)


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_kwargs(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency that yields a DB session and closes it when done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception:
        return False


@contextmanager
def transaction(db: Session, action: str) -> Iterator[Session]:
    """
    Run a unit of work and commit it once; roll back everything on failure.

    Application errors propagate unchanged. A missing or concurrently deleted
    row becomes NotFoundError; any other SQLAlchemy error is logged and
    surfaced as InternalError without leaking details to the client.
    """
    try:
        yield db
        db.commit()
    except AppError:
        db.rollback()
        raise
    except (NoResultFound, StaleDataError) as e:
        db.rollback()
        raise NotFoundError() from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Database error", extra={"action": action})
        raise InternalError() from e
