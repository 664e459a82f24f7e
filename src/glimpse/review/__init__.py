"""Review dispatch: turning triggers into generation requests."""

from .context import build_context, build_request
from .dispatcher import ReviewDispatcher
from .task_pool import ReviewTaskPool
from .verdict import parse_review

__all__ = [
    "build_context",
    "build_request",
    "ReviewDispatcher",
    "ReviewTaskPool",
    "parse_review",
]
