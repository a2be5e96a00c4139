"""FastAPI application for the test-lab dashboard."""

import logging
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from testlab_insights.db.connection import engine, get_session
from testlab_insights.db.models import Base
from testlab_insights.memory import record_store

logging.basicConfig(
    level=logging.DEBUG if settings.debug_database else settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

app = FastAPI(title="Test-Lab Insights API", version=API_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Include modular routers
# ---------------------------------------------------------------------------
from testlab_insights.action.routers.dashboard import router as dashboard_router  # noqa: E402
from testlab_insights.action.routers.results import router as results_router  # noqa: E402

app.include_router(results_router)
app.include_router(dashboard_router)


@app.on_event("startup")
async def _ensure_tables():
    """Create the results table if it does not exist yet."""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured")
    except Exception:
        # The dashboard still serves synthetic data without a database
        logger.exception("Failed to ensure database schema")


@app.exception_handler(Exception)
async def _global_error_handler(request: Request, exc: Exception):
    """Catch-all: ensure every unhandled error returns JSON, not raw HTML."""
    logger.exception("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={
            "detail": f"Server error: {exc}",
            "error": str(exc),
            "status": "failed",
        },
    )


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "version": API_VERSION, "timestamp": _now()}


@app.get("/health/db")
async def health_db(session: AsyncSession = Depends(get_session)):
    try:
        await record_store.ping(session)
    except Exception as exc:
        logger.warning("Database health check failed: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"status": "ERROR", "database": "disconnected", "error": str(exc)},
        )
    return {"status": "OK", "database": "connected", "timestamp": _now()}
