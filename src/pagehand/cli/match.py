"""pagehand match — Bind a target description to one of a page's affordances."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from pagehand.cli.common import load_config
from pagehand.engine.selector_matcher import SelectorMatch, match_selector

console = Console()


def match(
    target: str = typer.Argument(..., help='Target description, e.g. "submit".'),
    url: str = typer.Option(..., "--url", "-u", help="Page URL to collect affordances from."),
    action: str = typer.Option("click", "--action", "-a", help="Intended action (affects scoring)."),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml."),
) -> None:
    """Collect affordances from URL and print the best match for TARGET."""
    from pagehand.engine.browser_session import BrowserSession

    config = load_config(config_path)
    with BrowserSession(config) as session:
        session.open(url)
        affordances = session.collector.collect(config.max_affordances)

    result = match_selector(target, action, affordances)
    if not isinstance(result, SelectorMatch):
        console.print(
            Panel(
                f"No suitable element found for: {target}\n\n[dim]{result.suggestion}[/dim]",
                title="[yellow]No Match[/yellow]",
                border_style="yellow",
            )
        )
        raise typer.Exit(code=1)

    el = result.element
    console.print(
        Panel(
            f"[bold]Element:[/bold] {el.name} ({el.tag})\n"
            f"[bold]Selector:[/bold] [cyan]{el.selector}[/cyan]\n"
            f"[bold]Score:[/bold] {result.score}  [bold]Confidence:[/bold] {result.confidence}",
            title="[green]Match[/green]",
            border_style="green",
        )
    )
