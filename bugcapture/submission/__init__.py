"""Submission to the bug report ingestion API."""

from .client import SubmissionClient, DEFAULT_SUBMIT_PATH

__all__ = ["SubmissionClient", "DEFAULT_SUBMIT_PATH"]
