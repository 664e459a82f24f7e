"""
Glimpse command-line interface.

Provides the ``glimpse`` command, interactive provider setup and
rich terminal rendering of reviews.
"""

from .app import main
from .output import ReviewRenderer

__all__ = ["main", "ReviewRenderer"]
