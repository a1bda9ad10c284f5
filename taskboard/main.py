"""taskboard - shared task board with per-assignee completion."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from taskboard.core.config import constants, settings
from taskboard.core.db_client import close_connection, get_connection, init_db
from taskboard.core.logging import configure_logfire, instrument_fastapi
from taskboard.interface.api_router import register_error_handlers, router as api_router


logger = logging.getLogger(__name__)


async def check_database_connectivity() -> None:
    """Verify the SQLite record store can be opened and queried.

    Raises:
        ConnectionError: If the database cannot be reached
    """
    try:
        conn = await get_connection()
        await conn.execute("SELECT 1")
    except (aiosqlite.Error, OSError) as e:
        raise ConnectionError(f"Record store connectivity check failed: {e}") from e
    logger.info("startup_validation", extra={"stage": "database", "status": "ok"})


async def validate_startup_configuration() -> None:
    """Validate settings and record store connectivity, exiting on failure.

    - The configured timezone must be known
    - Production requires a Logfire token
    - The SQLite record store must be reachable
    """
    logger.info("startup_validation_begin")

    try:
        settings.local_timezone()
        if settings.is_production:
            settings.require_credential("logfire_token", "Pydantic Logfire")
        logger.info("startup_validation", extra={"stage": "settings", "status": "ok"})

        await check_database_connectivity()

        logger.info("startup_validation_complete", extra={"environment": settings.environment})

    except (ValueError, ConnectionError) as e:
        logger.error("startup_validation_failed", extra={"error": str(e)})
        print(f"\nStartup validation failed: {e}\n", file=sys.stderr)  # noqa: T201
        sys.exit(1)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Configure logging first so validation logs are captured
    configure_logfire()
    await validate_startup_configuration()

    await init_db()
    logger.info("Database initialized", extra={"db_path": settings.sqlite_db_path})
    yield
    await close_connection()


app = FastAPI(
    title="taskboard",
    description="Shared task board where every assignee completes a task independently",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

register_error_handlers(app)
app.include_router(api_router)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=constants.HTTP_OK)
