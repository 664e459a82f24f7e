"""Color themes for terminal output."""

from dataclasses import dataclass
from typing import Dict


@dataclass
class Theme:
    """Color theme definition."""

    name: str

    header_color: str
    info_color: str
    success_color: str
    warning_color: str
    error_color: str
    muted_color: str
    accent_color: str

    # Rich syntax highlighting theme for code blocks in reviews
    code_style: str


THEMES: Dict[str, Theme] = {
    "glimpse": Theme(
        name="glimpse",
        header_color="bold magenta",
        info_color="cyan",
        success_color="green",
        warning_color="yellow",
        error_color="bold red",
        muted_color="dim",
        accent_color="bold blue",
        code_style="monokai",
    ),
    "dracula": Theme(
        name="dracula",
        header_color="bold #bd93f9",
        info_color="#8be9fd",
        success_color="#50fa7b",
        warning_color="#ffb86c",
        error_color="bold #ff5555",
        muted_color="#6272a4",
        accent_color="bold #ff79c6",
        code_style="dracula",
    ),
    "plain": Theme(
        name="plain",
        header_color="bold",
        info_color="default",
        success_color="default",
        warning_color="default",
        error_color="bold",
        muted_color="dim",
        accent_color="bold",
        code_style="default",
    ),
}


def get_theme(name: str) -> Theme:
    """Get theme by name, falling back to the default."""
    return THEMES.get(name, THEMES["glimpse"])


def list_themes() -> list[str]:
    return list(THEMES.keys())
