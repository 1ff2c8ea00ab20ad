"""Infrastructure module for the application."""

from .config import get_settings

__all__ = [
    "get_settings",
]
