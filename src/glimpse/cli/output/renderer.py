"""Rich output rendering for reviews and status lines."""

import logging
from typing import Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule

from .themes import get_theme
from ...models import ReviewResult

logger = logging.getLogger(__name__)


class ReviewRenderer:
    """
    Terminal renderer for the reviewer.

    Review tasks finish in any order; each result is printed as one
    panel so concurrent completions do not interleave mid-review.
    """

    def __init__(self, theme: str = "glimpse", console: Optional[Console] = None):
        """
        Initialize renderer.

        Args:
            theme: Theme name
            console: Rich console (creates new if not provided)
        """
        self.console = console or Console()
        self.theme = get_theme(theme)

    def header(self, text: str) -> None:
        self.console.print(f"[{self.theme.header_color}]{text}[/]")
        self.console.print(Rule(style=self.theme.muted_color))

    def info(self, text: str) -> None:
        self.console.print(text, style=self.theme.info_color)

    def muted(self, text: str) -> None:
        self.console.print(text, style=self.theme.muted_color)

    def warning(self, text: str) -> None:
        self.console.print(text, style=self.theme.warning_color)

    def error(self, text: str) -> None:
        self.console.print(f"✗ {text}", style=self.theme.error_color)

    def success(self, text: str) -> None:
        self.console.print(f"✓ {text}", style=self.theme.success_color)

    def batch_header(self, count: int) -> None:
        noun = "file" if count == 1 else "files"
        self.console.print(
            f"[{self.theme.accent_color}]▶ {count} {noun} changed. Reviewing...[/]"
        )

    def staged_changed(self) -> None:
        self.console.print(
            f"[{self.theme.accent_color}]▶ Git staged state changed. Reviewing...[/]"
        )

    def provider_info(self, provider: str, model: str) -> None:
        self.muted(f"Analyzing with {provider} ({model})...")

    def review_result(self, result: ReviewResult) -> None:
        """Print a finished review or its error."""
        if result.error:
            self.error(f"{result.title}: {result.error}")
            return

        if result.needs_fix is None:
            verdict = ""
        elif result.needs_fix:
            verdict = f"[{self.theme.warning_color}]Needs fix[/]"
        else:
            verdict = f"[{self.theme.success_color}]Looks good[/]"

        subtitle = f"{verdict} · {result.latency_ms}ms" if verdict else f"{result.latency_ms}ms"
        self.console.print(
            Panel(
                Markdown(result.review or result.content, code_theme=self.theme.code_style),
                title=f"✓ {result.title}",
                subtitle=subtitle,
                border_style=self.theme.success_color,
            )
        )
