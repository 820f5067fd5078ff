"""Shared FastAPI dependencies."""
from __future__ import annotations

from fitflex.config import get_settings


def get_current_user_id() -> str:
    """Identity of the caller.

    There is no login yet, so every request acts as the configured demo user.
    Routers depend on this instead of reading the setting so the services
    always receive the user id explicitly.
    """
    return get_settings().demo_user_id
