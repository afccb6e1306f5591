"""Bug report submission route.

Accepts the capture client's tRPC-style request at
``POST /api/trpc/bugReports.submit`` and answers in the tRPC envelope.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ...models.capture import BugReportPayload
from ..schemas import TrpcErrorCode, trpc_error, trpc_result
from ..store import ReportStore

logger = logging.getLogger(__name__)

SUBMIT_PROCEDURE = "bugReports.submit"

router = APIRouter(
    prefix="/trpc",
    tags=["Bug Reports"],
)


def get_report_store(request: Request) -> ReportStore:
    """Dependency to provide the application's report store."""
    return request.app.state.report_store


def _error_response(error_code: tuple, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=error_code[2],
        content=trpc_error(error_code, message, SUBMIT_PROCEDURE),
    )


@router.post(
    f"/{SUBMIT_PROCEDURE}",
    summary="Submit bug report",
    description="Validate a captured bug report and store it for its project.",
)
async def submit_bug_report(
    request: Request,
    store: ReportStore = Depends(get_report_store),
) -> Any:
    """Accept one bug report."""
    try:
        body = await request.json()
    except ValueError:
        return _error_response(TrpcErrorCode.BAD_REQUEST, "Request body must be JSON")

    data = body.get("json", body) if isinstance(body, dict) else None
    if not isinstance(data, dict):
        return _error_response(TrpcErrorCode.BAD_REQUEST, "Request body must be an object")

    try:
        payload = BugReportPayload.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Rejected invalid bug report: {e.error_count()} validation errors")
        return _error_response(TrpcErrorCode.BAD_REQUEST, str(e))

    if not store.is_known_project(payload.project_key):
        logger.warning(f"Rejected bug report for unknown project key {payload.project_key!r}")
        return _error_response(TrpcErrorCode.NOT_FOUND, "Invalid project key")

    report = store.add(payload)
    return trpc_result({"id": report.id, "success": True})
