"""taskpulse - per-assignee task progress tracking and productivity analytics."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from taskpulse.core.db_client import close_connection, init_db
from taskpulse.core.errors import (
    ErrorSeverity,
    TaskPulseError,
    ValidationError,
    classify_error_with_response,
    status_code_for,
)
from taskpulse.core.logging import configure_logfire, instrument_fastapi
from taskpulse.interface.admin_tasks_router import router as admin_tasks_router
from taskpulse.interface.analytics_router import router as analytics_router
from taskpulse.interface.my_tasks_router import router as my_tasks_router


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    configure_logfire()

    await init_db()
    logger.info("Database initialized")

    yield
    # Shutdown
    await close_connection()


app = FastAPI(
    title="taskpulse",
    description="Per-assignee task progress tracking and productivity analytics",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

# Register routers
app.include_router(my_tasks_router)
app.include_router(analytics_router)
app.include_router(admin_tasks_router)


@app.exception_handler(TaskPulseError)
async def handle_taskpulse_error(request: Request, exc: TaskPulseError) -> JSONResponse:
    """Map domain failures to a structured JSON error body."""
    response = classify_error_with_response(exc)
    log = logger.error if response.severity in {ErrorSeverity.HIGH, ErrorSeverity.CRITICAL} else logger.info
    log(
        "request_failed",
        extra={"path": request.url.path, "code": response.code, "error": exc.message},
    )
    return JSONResponse(content=response.model_dump(mode="json"), status_code=status_code_for(exc))


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed requests in the same shape as other validation failures."""
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    return await handle_taskpulse_error(request, ValidationError(f"Invalid request: {details}"))


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=200)
