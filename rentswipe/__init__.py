"""Core utilities for the RentSwipe authentication service."""

from __future__ import annotations

from typing import Any

from .database import Database


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the auth HTTP application."""

    from .service import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "Database",
    "create_app",
]
