"""Health check endpoint: database connectivity and upload storage."""

import os
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse
from app.services.storage import upload_root

router = APIRouter()


def _uploads_writable() -> bool:
    root = upload_root()
    return root.is_dir() and os.access(root, os.W_OK)


@router.get("/", response_model=HealthResponse)
def get_health(db: Annotated[Session, Depends(get_db)]) -> HealthResponse:
    """
    Report database and upload storage status. Public; used by load balancers.

    Status is "degraded" when either check fails; the endpoint itself still answers 200.
    """
    db_ok = check_db_connected(db)
    uploads_ok = _uploads_writable()
    return HealthResponse(
        status="ok" if db_ok and uploads_ok else "degraded",
        environment=settings.APP_ENV,
        database="connected" if db_ok else "disconnected",
        uploads="writable" if uploads_ok else "unavailable",
        rate_limit_backend=settings.LOGIN_RATE_LIMIT_BACKEND,
    )
