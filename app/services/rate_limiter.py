"""Login rate limiting: fixed-budget attempt counter per client key over a sliding window."""

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from fastapi import Request
from sqlalchemy import case, delete
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from app.core.errors import TooManyAttemptsError
from app.models import LoginAttempt

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything stored here is UTC.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def client_ip(request: Request) -> str:
    """Resolve the rate-limit key: first X-Forwarded-For entry, then socket peer, then 'unknown'."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


class LoginAttemptStore(ABC):
    """Storage for per-key attempt windows. increment must be atomic per key."""

    @abstractmethod
    def increment(self, key: str, now: datetime, window: timedelta) -> tuple[int, datetime]:
        """Count one attempt; return (count, reset_at) for the key's current window."""

    @abstractmethod
    def reset(self, key: str) -> None:
        """Forget the key entirely."""

    @abstractmethod
    def purge_expired(self, now: datetime) -> int:
        """Drop windows that ended before now; return how many were removed."""


@dataclass
class _Window:
    count: int
    reset_at: datetime


class InMemoryLoginAttemptStore(LoginAttemptStore):
    """
    Process-local store for single-instance deployments.

    Expired windows are swept during increment at most once per window length,
    so the map only holds keys seen within roughly the last two windows.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._windows: dict[str, _Window] = {}
        self._next_sweep: datetime | None = None

    def size(self) -> int:
        """Number of keys currently tracked."""
        with self._lock:
            return len(self._windows)

    def _drop_expired(self, now: datetime) -> int:
        expired = [k for k, w in self._windows.items() if w.reset_at <= now]
        for k in expired:
            del self._windows[k]
        return len(expired)

    def increment(self, key: str, now: datetime, window: timedelta) -> tuple[int, datetime]:
        with self._lock:
            if self._next_sweep is None or now >= self._next_sweep:
                self._drop_expired(now)
                self._next_sweep = now + window
            current = self._windows.get(key)
            if current is None or current.reset_at <= now:
                current = _Window(count=1, reset_at=now + window)
                self._windows[key] = current
            else:
                current.count += 1
            return current.count, current.reset_at

    def reset(self, key: str) -> None:
        with self._lock:
            self._windows.pop(key, None)

    def purge_expired(self, now: datetime) -> int:
        with self._lock:
            return self._drop_expired(now)


class DatabaseLoginAttemptStore(LoginAttemptStore):
    """
    Store shared by every app instance, kept in the login_attempts table.

    increment is a single INSERT ... ON CONFLICT DO UPDATE ... RETURNING, so
    concurrent attempts for one key never lose updates.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def increment(self, key: str, now: datetime, window: timedelta) -> tuple[int, datetime]:
        table = LoginAttempt.__table__
        reset_at = now + window
        with self._session_factory() as db:
            insert = (
                postgresql_insert
                if db.get_bind().dialect.name == "postgresql"
                else sqlite_insert
            )
            expired = table.c.reset_at <= now
            stmt = (
                insert(table)
                .values(key=key, count=1, reset_at=reset_at)
                .on_conflict_do_update(
                    index_elements=[table.c.key],
                    set_={
                        "count": case((expired, 1), else_=table.c.count + 1),
                        "reset_at": case((expired, reset_at), else_=table.c.reset_at),
                    },
                )
                .returning(table.c.count, table.c.reset_at)
            )
            row = db.execute(stmt).one()
            db.commit()
        return row.count, _as_utc(row.reset_at)

    def reset(self, key: str) -> None:
        with self._session_factory() as db:
            db.execute(delete(LoginAttempt).where(LoginAttempt.key == key))
            db.commit()

    def purge_expired(self, now: datetime) -> int:
        with self._session_factory() as db:
            result = db.execute(delete(LoginAttempt).where(LoginAttempt.reset_at <= now))
            db.commit()
        return result.rowcount or 0


class LoginRateLimiter:
    """
    At most max_attempts per key within window; the next attempt raises TooManyAttemptsError.

    An attempt after the window has elapsed starts a new window at count 1.
    reset() clears the key (used after a successful login).
    """

    def __init__(
        self,
        store: LoginAttemptStore,
        max_attempts: int = 5,
        window: timedelta = timedelta(minutes=15),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.max_attempts = max_attempts
        self.window = window
        self._clock = clock

    def hit(self, key: str) -> int:
        """Record an attempt for key; return the attempt count or raise when over budget."""
        count, _ = self.store.increment(key, self._clock(), self.window)
        if count > self.max_attempts:
            logger.warning(
                "Login rate limit exceeded",
                extra={"client_key": key, "attempts": count},
            )
            raise TooManyAttemptsError(retry_after_seconds=int(self.window.total_seconds()))
        return count

    def reset(self, key: str) -> None:
        self.store.reset(key)

    def purge_expired(self) -> int:
        return self.store.purge_expired(self._clock())


def build_login_rate_limiter(
    settings: "Settings",
    session_factory: Callable[[], Session] | None = None,
) -> LoginRateLimiter:
    """Build the limiter for the configured backend."""
    if settings.LOGIN_RATE_LIMIT_BACKEND == "database":
        if session_factory is None:
            raise ValueError("The database rate-limit backend needs a session factory")
        store: LoginAttemptStore = DatabaseLoginAttemptStore(session_factory)
    else:
        store = InMemoryLoginAttemptStore()
    return LoginRateLimiter(
        store,
        max_attempts=settings.LOGIN_RATE_LIMIT_MAX_ATTEMPTS,
        window=timedelta(minutes=settings.LOGIN_RATE_LIMIT_WINDOW_MINUTES),
    )
