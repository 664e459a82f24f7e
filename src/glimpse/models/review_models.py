"""Data models for change detection and review dispatch."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class ChangeEvent(BaseModel):
    """A logical file believed to have changed (always the normalized path)."""

    path: str = Field(description="Normalized path of the changed file")

    class Config:
        """Pydantic configuration."""

        frozen = True


class FlushReason(str, Enum):
    """Why the batcher handed a batch downstream."""

    SIZE = "size"
    DEBOUNCE = "debounce"
    SHUTDOWN = "shutdown"


class Batch(BaseModel):
    """Ordered, non-empty group of change events from one debounce window."""

    events: List[ChangeEvent] = Field(description="Events in arrival order")
    reason: FlushReason = Field(default=FlushReason.DEBOUNCE)

    class Config:
        """Pydantic configuration."""

        use_enum_values = True

    @field_validator("events")
    @classmethod
    def _not_empty(cls, value: List[ChangeEvent]) -> List[ChangeEvent]:
        if not value:
            raise ValueError("a batch must contain at least one event")
        return value

    @property
    def paths(self) -> List[str]:
        return [event.path for event in self.events]

    def __len__(self) -> int:
        return len(self.events)


class StagedState(BaseModel):
    """Fingerprint of the git staging area."""

    hash: str = Field(description="Digest of staged content")
    staged_files: List[str] = Field(default_factory=list)


class FileDiff(BaseModel):
    """Diff text for one file."""

    path: str
    content: str


class TriggerKind(str, Enum):
    """Source of a review trigger."""

    FILE_BATCH = "file_batch"
    STAGED_CHANGE = "staged_change"


class ReviewTrigger(BaseModel):
    """Something worth reviewing changed."""

    kind: TriggerKind
    files: List[str] = Field(default_factory=list)
    staged_state: Optional[StagedState] = Field(default=None)

    @classmethod
    def from_batch(cls, batch: Batch) -> "ReviewTrigger":
        """Build a trigger from a batch, de-duplicating paths in order."""
        files: List[str] = []
        seen = set()
        for path in batch.paths:
            if path not in seen:
                seen.add(path)
                files.append(path)
        return cls(kind=TriggerKind.FILE_BATCH, files=files)

    @classmethod
    def from_staged_state(cls, state: StagedState) -> "ReviewTrigger":
        return cls(
            kind=TriggerKind.STAGED_CHANGE,
            files=list(state.staged_files),
            staged_state=state,
        )


class ReviewRequest(BaseModel):
    """Single request sent to a generation provider."""

    system_prompt: str = Field(default="")
    context: str = Field(description="Diffs and runtime logs")
    task: str = Field(description="Instruction for the model")
    title: str = Field(default="AI Analysis Complete")

    def to_messages(self) -> List[dict]:
        """Render as chat messages in OpenAI format."""
        messages = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append(
            {"role": "user", "content": f"{self.context}\n\n{self.task}"}
        )
        return messages


class ReviewResult(BaseModel):
    """Outcome of one generation request."""

    title: str
    content: str = Field(default="")
    needs_fix: Optional[bool] = Field(default=None)
    review: str = Field(default="")
    error: Optional[str] = Field(default=None)
    latency_ms: int = Field(default=0)

    @property
    def ok(self) -> bool:
        return self.error is None
