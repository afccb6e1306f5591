"""API schemas for the development ingestion endpoint."""

from .responses import (
    HealthResponse,
    TrpcErrorCode,
    trpc_error,
    trpc_result,
)

__all__ = [
    "HealthResponse",
    "TrpcErrorCode",
    "trpc_error",
    "trpc_result",
]
