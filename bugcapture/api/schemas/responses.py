"""Response schemas for the development ingestion endpoint.

Submissions are answered in the tRPC envelope the capture client expects:
``{"result": {"data": {"json": ...}}}`` on success and
``{"error": {"json": {"message", "code", "data": {"code", "httpStatus"}}}}``
on failure.
"""

from datetime import datetime
from typing import Any, Dict, Literal

from pydantic import BaseModel, Field


class TrpcErrorCode:
    """tRPC error codes with their JSON-RPC numbers and HTTP statuses."""
    BAD_REQUEST = ("BAD_REQUEST", -32600, 400)
    NOT_FOUND = ("NOT_FOUND", -32004, 404)
    INTERNAL_SERVER_ERROR = ("INTERNAL_SERVER_ERROR", -32603, 500)


def trpc_result(data: Any) -> Dict[str, Any]:
    """Wrap a procedure result in the tRPC success envelope."""
    return {"result": {"data": {"json": data}}}


def trpc_error(error_code: tuple, message: str, path: str) -> Dict[str, Any]:
    """Build the tRPC error envelope for a failed procedure call."""
    code, rpc_code, http_status = error_code
    return {
        "error": {
            "json": {
                "message": message,
                "code": rpc_code,
                "data": {
                    "code": code,
                    "httpStatus": http_status,
                    "path": path,
                },
            }
        }
    }


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: Literal['healthy', 'degraded', 'unhealthy'] = Field(
        ...,
        description="Overall service health status"
    )

    version: str = Field(
        ...,
        description="API version"
    )

    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="Health check timestamp"
    )

    reports_stored: int = Field(
        ...,
        ge=0,
        description="Number of reports held in memory"
    )

    uptime_seconds: float = Field(
        ...,
        ge=0,
        description="Application uptime in seconds"
    )
