"""Health check endpoints."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from gasopt.core.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Quick liveness probe."""
    return {"status": "healthy", "service": "gasopt-ledger"}


@router.get("/health/ready")
async def readiness_check(
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Readiness check — verifies the database answers."""
    checks: dict[str, dict] = {}
    overall = True
    start = time.perf_counter()

    try:
        result = await db.execute(text("SELECT 1"))
        result.scalar()
        checks["database"] = {"status": "up"}
    except Exception as e:
        logger.warning("Readiness: database check failed: %s", e)
        checks["database"] = {"status": "down", "error": str(e)}
        overall = False

    elapsed = round((time.perf_counter() - start) * 1000, 1)

    return {
        "status": "healthy" if overall else "degraded",
        "service": "gasopt-ledger",
        "checks": checks,
        "latency_ms": elapsed,
    }
