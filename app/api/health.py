"""Liveness and readiness checks"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.config import settings
from app.core.clock import SiteClock, get_clock
from app.database import get_db
from app.repositories.tables import TableDirectory

logger = structlog.get_logger()

router = APIRouter()

VERSION = "1.0.0"


def ping_broker() -> str:
    """Ask the Celery workers to answer; reminders and sweeps depend on them"""
    from app.jobs.celery_app import celery_app

    try:
        replies = celery_app.control.ping(timeout=1)
    except Exception as e:
        return f"failed: {str(e)}"
    return "ok" if replies else "failed: no workers"


@router.get("")
async def health(clock: SiteClock = Depends(get_clock)):
    """Basic health check, with the site's local time"""
    return {
        "status": "healthy",
        "service": "tablebook",
        "version": VERSION,
        "timezone": settings.site_timezone,
        "local_time": clock.now().isoformat(timespec="minutes"),
    }


@router.get("/ready")
async def ready(db: AsyncSession = Depends(get_db)):
    """Ready once the database answers, tables exist to book and workers respond"""
    checks = {}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"failed: {str(e)}"

    if checks["database"] == "ok":
        in_service = await TableDirectory(db).list(include_out_of_service=False)
        checks["tables"] = "ok" if in_service else "failed: no tables in service"

    checks["workers"] = ping_broker()

    all_ok = all(v == "ok" for v in checks.values())
    if not all_ok:
        logger.warning("Readiness check failed", checks=checks)

    return {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
    }
