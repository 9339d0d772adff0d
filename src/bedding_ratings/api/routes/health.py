"""Health check route handlers.

``GET /api/health``
    Dependency check: verifies the process can reach the database
    (``SELECT 1``).  Always returns HTTP 200; the ``status`` field
    distinguishes ``"ok"`` from ``"degraded"``.

The process-level liveness probe ``GET /health`` lives in ``main.py``.
These endpoints are diagnostic and must never raise HTTP 5xx errors.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import sqlalchemy as sa
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from bedding_ratings import __version__
from bedding_ratings.core.database import AsyncSessionLocal

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


async def _check_database() -> str:
    """Run ``SELECT 1`` against the configured database.

    Returns:
        ``"ok"`` if the query succeeds, ``"error"`` otherwise.
    """
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(sa.text("SELECT 1"))
        return "ok"
    except Exception:
        logger.exception("Health check: database unreachable")
        return "error"


@router.get("/api/health", include_in_schema=True)
async def system_health() -> JSONResponse:
    """Return process health including database connectivity.

    Returns:
        JSON with keys: ``status``, ``version``, ``database``, ``timestamp``.
    """
    db_status = await _check_database()
    payload = {
        "status": "ok" if db_status == "ok" else "degraded",
        "version": __version__,
        "database": db_status,
        "timestamp": datetime.now(UTC).isoformat(),
    }
    logger.info("system_health_check", extra={"health": payload})
    return JSONResponse(payload)
