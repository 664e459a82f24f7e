"""CLI output module."""

from .themes import Theme, get_theme, list_themes
from .renderer import ReviewRenderer

__all__ = [
    "Theme",
    "get_theme",
    "list_themes",
    "ReviewRenderer",
]
