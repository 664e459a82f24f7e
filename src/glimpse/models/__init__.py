"""Data models shared across the pipeline."""

from .review_models import (
    Batch,
    ChangeEvent,
    FileDiff,
    FlushReason,
    ReviewRequest,
    ReviewResult,
    ReviewTrigger,
    StagedState,
    TriggerKind,
)

__all__ = [
    "Batch",
    "ChangeEvent",
    "FileDiff",
    "FlushReason",
    "ReviewRequest",
    "ReviewResult",
    "ReviewTrigger",
    "StagedState",
    "TriggerKind",
]
