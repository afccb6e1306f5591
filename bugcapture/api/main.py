"""FastAPI application for the development ingestion endpoint.

This module configures a small FastAPI application that accepts bug reports
in the capture client's wire format, for local testing and demos. Reports are
held in memory only.
"""

import logging
import os
import time
import uuid
from datetime import datetime
from typing import Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .routes import bug_reports_router
from .routes.bug_reports import SUBMIT_PROCEDURE
from .schemas import HealthResponse, TrpcErrorCode, trpc_error
from .store import ReportStore

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"
APP_TITLE = "Bug Capture Ingestion API"
APP_DESCRIPTION = """
Development ingestion endpoint for bug capture reports.

Accepts `POST /api/trpc/bugReports.submit` with `{"json": <report>}` and
answers in the tRPC envelope. Reports are kept in memory.
"""

PROJECT_KEYS_ENV = "BUG_CAPTURE_PROJECT_KEYS"


def _project_keys_from_env() -> list:
    value = os.environ.get(PROJECT_KEYS_ENV, "")
    return [key.strip() for key in value.split(",") if key.strip()]


def create_app(
    project_keys: Optional[Iterable[str]] = None,
    store: Optional[ReportStore] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        project_keys: Accepted project keys; read from BUG_CAPTURE_PROJECT_KEYS when omitted
        store: Report store to use; a new in-memory store when omitted

    Returns:
        Configured FastAPI application instance
    """
    if store is None:
        keys = _project_keys_from_env() if project_keys is None else project_keys
        store = ReportStore(keys)

    app = FastAPI(
        title=APP_TITLE,
        description=APP_DESCRIPTION,
        version=APP_VERSION,
    )
    app.state.report_store = store
    app.state.started_at = datetime.utcnow()

    # Reports are posted from arbitrary page origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_id_and_logging(request: Request, call_next):
        """Add request ID and logging middleware."""
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        duration = time.time() - start_time
        logger.info(
            f"Request completed: {request.method} {request.url.path} - {response.status_code}",
            extra={
                "request_id": request_id,
                "status_code": response.status_code,
                "duration_ms": round(duration * 1000, 2),
            }
        )
        return response

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        request_id = getattr(request.state, "request_id", None)
        logger.error(f"Unhandled exception in request {request_id}: {exc}", exc_info=True)

        return JSONResponse(
            status_code=500,
            content=trpc_error(
                TrpcErrorCode.INTERNAL_SERVER_ERROR,
                "An unexpected error occurred",
                SUBMIT_PROCEDURE,
            ),
        )

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check():
        """Health check endpoint."""
        uptime = (datetime.utcnow() - app.state.started_at).total_seconds()
        return HealthResponse(
            status="healthy",
            version=APP_VERSION,
            reports_stored=len(app.state.report_store),
            uptime_seconds=uptime,
        )

    app.include_router(bug_reports_router, prefix="/api")

    return app
