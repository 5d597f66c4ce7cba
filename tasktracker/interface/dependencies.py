"""FastAPI dependencies resolving per-app state."""

from fastapi import Request

from tasktracker.core.config import Settings
from tasktracker.core.store import TaskStore


def get_store(request: Request) -> TaskStore:
    """Return the task store owned by the running app."""
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    """Return the settings the app was created with."""
    return request.app.state.settings
