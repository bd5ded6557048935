"""Liveness and readiness probes (no authentication)."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from docspace import __version__

router = APIRouter()


async def _database_status(request: Request) -> str:
    try:
        async with request.app.state.db_session_factory() as session:
            await session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        return f"error: {exc}"
    return "ok"


def _storage_status(request: Request) -> str:
    root = request.app.state.storage.root
    return "ok" if root.is_dir() else f"missing: {root}"


@router.get("/health")
async def health_check():
    return {"status": "healthy", "service": "docspace-api", "version": __version__}


@router.get("/health/ready")
async def readiness(request: Request):
    """503 until both the database and the storage root are usable."""
    checks = {"database": await _database_status(request), "storage": _storage_status(request)}
    ready = all(status == "ok" for status in checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "not_ready", "checks": checks},
    )
