"""CLI module for bug capture.

This package provides the ``bug-capture`` command for recording pages with
bug capture attached and running the development ingestion endpoint.
"""

from .main import app, cli_main, ExitCode

__all__ = [
    'app',
    'cli_main',
    'ExitCode',
]
