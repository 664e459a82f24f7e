"""Interpret the model's review text."""

from typing import Tuple

NEED_FIX_YES = "NEED FIX: YES"
NEED_FIX_NO = "NEED FIX: NO"

NO_ISSUES_KEYWORDS = (
    "no issues",
    "looks good",
    "everything is fine",
    "no problems",
    "all good",
)


def parse_review(content: str) -> Tuple[bool, str]:
    """
    Decide whether a review asks for a fix.

    An explicit ``NEED FIX: YES`` / ``NEED FIX: NO`` header on the first
    non-empty line wins and is stripped from the review. Without a header,
    the review needs a fix unless it contains a "no issues" style phrase.

    Args:
        content: Raw model output

    Returns:
        (needs_fix, review text)

    Raises:
        ValueError: If content is empty
    """
    if not content.strip():
        raise ValueError("empty response")

    lines = content.split("\n")
    header_index, header = next(
        (i, line.strip()) for i, line in enumerate(lines) if line.strip()
    )

    upper = header.upper()
    if upper.startswith(NEED_FIX_YES):
        return True, "\n".join(lines[header_index + 1:]).strip()
    if upper.startswith(NEED_FIX_NO):
        return False, "\n".join(lines[header_index + 1:]).strip()

    lowered = content.lower()
    needs_fix = not any(keyword in lowered for keyword in NO_ISSUES_KEYWORDS)
    return needs_fix, content.strip()
