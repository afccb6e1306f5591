"""Development ingestion endpoint for bug capture reports."""

from .main import create_app
from .store import ReportStore, StoredReport

__all__ = ["create_app", "ReportStore", "StoredReport"]
