"""Durable registry for mentorship users, sessions, and bookings."""

from __future__ import annotations

from typing import Any

from .core import MentorshipCore, open_core
from .database import Database, resolve_database_path


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the HTTP application."""

    from .service import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "Database",
    "MentorshipCore",
    "create_app",
    "open_core",
    "resolve_database_path",
]
