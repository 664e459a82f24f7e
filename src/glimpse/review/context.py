"""Assemble review requests from diffs and runtime logs."""

from typing import List

from ..models import FileDiff, ReviewRequest, TriggerKind

FILE_CHANGE_HEADER = "=== FILE CHANGE REVIEW ==="
STAGED_CHANGE_HEADER = "=== STAGED CHANGE REVIEW ==="
LOGS_HEADER = "=== RUNTIME LOGS ==="

FILE_CHANGE_TASK = "Review these changes and flag bugs or risks. Be concise."
STAGED_CHANGE_TASK = "Review staged changes only. Flag bugs or risks. Be concise."

FILE_CHANGE_TITLE = "AI Analysis Complete"
STAGED_CHANGE_TITLE = "AI Staged Review Complete"


def build_context(kind: TriggerKind, diffs: List[FileDiff], logs: str) -> str:
    header = STAGED_CHANGE_HEADER if kind == TriggerKind.STAGED_CHANGE else FILE_CHANGE_HEADER
    parts = [header]
    for diff in diffs:
        parts.append(f"File: {diff.path}\n{diff.content}\n")
    parts.append(LOGS_HEADER)
    parts.append(logs)
    return "\n".join(parts)


def build_request(
    kind: TriggerKind,
    diffs: List[FileDiff],
    logs: str,
    system_prompt: str,
) -> ReviewRequest:
    """Build the single generation request for one trigger."""
    staged = kind == TriggerKind.STAGED_CHANGE
    return ReviewRequest(
        system_prompt=system_prompt,
        context=build_context(kind, diffs, logs),
        task=STAGED_CHANGE_TASK if staged else FILE_CHANGE_TASK,
        title=STAGED_CHANGE_TITLE if staged else FILE_CHANGE_TITLE,
    )
