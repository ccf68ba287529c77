"""
CLI entrypoint for the login-attempt cleanup job. Run from cron, e.g.:

  python -m app.cleanup

Or hourly: 0 * * * * cd /path/to/app && .venv/bin/python -m app.cleanup

Only meaningful with LOGIN_RATE_LIMIT_BACKEND=database; expired rows are
otherwise reset lazily on the next attempt from the same client.
"""

import logging
import sys
from datetime import timedelta

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.services.rate_limiter import DatabaseLoginAttemptStore, LoginRateLimiter

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Delete login_attempts rows whose window has elapsed."""
    settings = get_settings()
    limiter = LoginRateLimiter(
        DatabaseLoginAttemptStore(SessionLocal),
        max_attempts=settings.LOGIN_RATE_LIMIT_MAX_ATTEMPTS,
        window=timedelta(minutes=settings.LOGIN_RATE_LIMIT_WINDOW_MINUTES),
    )
    try:
        purged = limiter.purge_expired()
        logger.info("Cleanup completed: login_attempts_deleted=%s", purged)
        return 0
    except Exception as e:
        logger.exception("Cleanup job failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
