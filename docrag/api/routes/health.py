"""Liveness and readiness endpoints."""

from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

router = APIRouter()


async def check_storage(session_factory: async_sessionmaker[AsyncSession]) -> tuple[bool, str]:
    """Probe the database, and on PostgreSQL the pgvector extension.

    Returns:
        (is_ok, status_message)
    """
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))

            if session.get_bind().dialect.name == "postgresql":
                result = await session.execute(
                    text("SELECT 1 FROM pg_extension WHERE extname = 'vector'")
                )
                if result.first() is None:
                    return (False, "pgvector extension missing")
    except (SQLAlchemyError, OSError) as e:
        return (False, f"error: {type(e).__name__}")

    return (True, "ok")


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe; answers as long as the process is serving."""
    return {"status": "ok", "service": "docrag"}


@router.get("/healthz", response_model=None)
async def healthz(request: Request) -> dict[str, Any] | JSONResponse:
    """Readiness probe.

    Returns:
        200 with component status when storage is usable, 503 otherwise.
        ``providers`` reports whether OpenAI or the offline providers are wired.
    """
    storage_ok, storage_status = await check_storage(request.app.state.session_factory)

    body = {
        "status": "ok" if storage_ok else "degraded",
        "components": {
            "db": storage_status,
            "providers": request.app.state.provider_mode,
        },
    }

    if not storage_ok:
        return JSONResponse(content=body, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return body
