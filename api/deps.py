from fastapi import Request

from core.config import Settings, get_settings
from middleware.exchange import Exchange


def get_app_settings(request: Request) -> Settings:
    """
    Settings the running app was built with.

    Falls back to the cached environment settings when the app was not built
    through create_app().
    """
    return getattr(request.app.state, "settings", None) or get_settings()


def get_exchange(request: Request) -> Exchange | None:
    """Exchange of the current request, or None when no pipeline ran"""
    return getattr(request.state, "exchange", None)
