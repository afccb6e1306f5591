"""Floating report launcher for captured pages."""

from .widget import LauncherWidget, BUTTON_ID, OVERLAY_ID

__all__ = ["LauncherWidget", "BUTTON_ID", "OVERLAY_ID"]
