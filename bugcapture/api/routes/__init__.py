"""API routes for the development ingestion endpoint."""

from .bug_reports import router as bug_reports_router

__all__ = [
    "bug_reports_router",
]
