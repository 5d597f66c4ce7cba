"""tasktracker - Task Tracker API with optimistic concurrency control."""

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from tasktracker.core.config import Settings, constants, settings
from tasktracker.core.logging import configure_logfire, instrument_fastapi, log_with_request_context
from tasktracker.core.memory_store import InMemoryTaskStore
from tasktracker.core.sqlite_store import SqliteTaskStore
from tasktracker.core.store import TaskStore
from tasktracker.interface.problem_handlers import register_exception_handlers
from tasktracker.interface.task_router import router as task_router


logger = logging.getLogger(__name__)


async def open_store(app_settings: Settings) -> TaskStore:
    """Open the task store selected by ``app_settings.store_backend``."""
    if app_settings.store_backend == "memory":
        logger.info("startup_store", extra={"backend": "memory"})
        return InMemoryTaskStore()

    logger.info("startup_store", extra={"backend": "sqlite", "db_path": app_settings.sqlite_db_path})
    return await SqliteTaskStore.connect(app_settings.sqlite_db_path)


def validate_startup_configuration(app_settings: Settings) -> None:
    """Warn about configuration that leaves parts of the API unusable."""
    try:
        app_settings.require_credential("api_token", "API token")
        logger.info("startup_validation", extra={"stage": "credentials", "status": "ok"})
    except ValueError as e:
        logger.warning("startup_validation", extra={"stage": "credentials", "status": "missing", "error": str(e)})


async def log_requests(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """Log every completed request with its status code and duration."""
    start = time.perf_counter()
    # 500 unless call_next returns a response
    status_code = constants.HTTP_SERVER_ERROR
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        log_with_request_context(
            logger,
            "info",
            "request_completed",
            request_id=request.headers.get("x-request-id"),
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )


def create_app(*, app_settings: Settings | None = None, store: TaskStore | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        app_settings: Settings to use (defaults to the environment-loaded settings)
        store: Pre-built task store; when omitted, one is opened at startup
            from ``app_settings`` and closed at shutdown

    Returns:
        Configured FastAPI application
    """
    app_settings = app_settings or settings

    # Configure logging first so startup logs are captured
    configure_logfire(app_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Application lifespan context manager."""
        validate_startup_configuration(app_settings)

        owns_store = app.state.store is None
        if owns_store:
            app.state.store = await open_store(app_settings)
        yield
        if owns_store:
            await app.state.store.close()
            app.state.store = None

    app = FastAPI(
        title="tasktracker",
        description="Task Tracker API with optimistic concurrency control",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.store = store

    # Instrument FastAPI with Logfire
    instrument_fastapi(app)

    register_exception_handlers(app)
    app.middleware("http")(log_requests)

    # Register routers
    app.include_router(task_router)

    @app.get("/health")
    async def health_check() -> JSONResponse:
        """Health check endpoint."""
        return JSONResponse(content={"status": "ok", "timestamp": datetime.now(UTC).isoformat()}, status_code=200)

    return app


app = create_app()
