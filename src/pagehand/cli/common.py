"""Shared helpers for pagehand CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from pagehand.config import PagehandConfig, PagehandConfigError

console = Console(stderr=True)


def find_config_path() -> Path | None:
    """Locate .pagehand/config.yaml by searching upward from cwd."""
    current = Path.cwd()
    for base in [current, *current.parents]:
        candidate = base / ".pagehand" / "config.yaml"
        if candidate.is_file():
            return candidate
    return None


def load_config(config_path: Path | None) -> PagehandConfig:
    """Load an explicit config file, the nearest .pagehand/config.yaml, or defaults.

    Exits with code 2 on configuration errors.
    """
    path = config_path or find_config_path()
    if path is None:
        return PagehandConfig()
    try:
        return PagehandConfig.from_file(path)
    except PagehandConfigError as exc:
        config_error(str(exc))


def config_error(message: str) -> NoReturn:
    console.print(Panel(f"[red]{escape(message)}[/red]", title="[red]Config Error[/red]", border_style="red"))
    raise typer.Exit(code=2)
